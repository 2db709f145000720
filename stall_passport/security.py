import time
from datetime import timedelta
from typing import Callable

import bcrypt
from jose import JWTError, jwt

from .errors import Unauthorized

ALGORITHM = "HS256"
SESSION_TTL = timedelta(days=7)


def hash_password(password: str, rounds: int = 10) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


class TokenService:
    """
    Stateless session tokens.

    Tokens are HS256 JWTs carrying the user's email plus ``iat``/``exp``
    claims; nothing is stored server-side, so validity is purely
    signature + expiry.
    """

    def __init__(self, secret: str, ttl: timedelta = SESSION_TTL, clock: Callable[[], float] = time.time) -> None:
        self._secret = secret
        self._ttl = ttl
        self._clock = clock

    def issue(self, email: str) -> str:
        issued_at = int(self._clock())
        payload = {
            "email": email,
            "iat": issued_at,
            "exp": issued_at + int(self._ttl.total_seconds()),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> str:
        try:
            # expiry is checked against the injected clock below
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM], options={"verify_exp": False})
        except JWTError:
            raise Unauthorized("Invalid token")

        exp = payload.get("exp")
        if not isinstance(exp, int) or exp <= self._clock():
            raise Unauthorized("Invalid token")

        email = payload.get("email")
        if not isinstance(email, str) or not email:
            raise Unauthorized("Invalid token")
        return email
