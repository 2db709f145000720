import time
from datetime import timedelta

import pytest

from stall_passport.errors import Unauthorized
from stall_passport.security import TokenService, hash_password, verify_password


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_password_hash_round_trip():
    hashed = hash_password("s3cret", rounds=4)
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_with_garbage_hash():
    assert not verify_password("s3cret", "not-a-bcrypt-hash")


def test_session_token_yields_email():
    service = TokenService("secret")
    assert service.verify(service.issue("ann@x.com")) == "ann@x.com"


def test_session_token_valid_until_seven_days_elapse():
    clock = FakeClock()
    service = TokenService("secret", clock=clock)
    token = service.issue("ann@x.com")

    clock.now += timedelta(days=7).total_seconds() - 1
    assert service.verify(token) == "ann@x.com"

    clock.now += 1
    with pytest.raises(Unauthorized):
        service.verify(token)


def test_backdated_session_token_rejected_by_wall_clock():
    issued = time.time() - timedelta(days=7, minutes=1).total_seconds()
    token = TokenService("secret", clock=lambda: issued).issue("ann@x.com")
    with pytest.raises(Unauthorized):
        TokenService("secret").verify(token)


def test_session_token_wrong_secret():
    token = TokenService("secret").issue("ann@x.com")
    with pytest.raises(Unauthorized):
        TokenService("other-secret").verify(token)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_session_token(token):
    with pytest.raises(Unauthorized):
        TokenService("secret").verify(token)
