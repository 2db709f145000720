import secrets
import threading
import time
from typing import Callable, Dict, List, Tuple

from .errors import Conflict, InvalidToken, NotFound
from .models import User, VisitToken

VISIT_TOKEN_TTL_MS = 2 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


class CredentialStore:
    """In-memory users keyed by email."""

    def __init__(self) -> None:
        # email -> User
        self._users: Dict[str, User] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, email: str) -> bool:
        return email in self._users

    def create_user(self, name: str, email: str, password_hash: str) -> User:
        with self._lock:
            if email in self._users:
                raise Conflict("User already exists")
            user = User(name=name, email=email, passwordHash=password_hash)
            self._users[email] = user
            return user

    def get_user(self, email: str) -> User:
        user = self._users.get(email)
        if user is None:
            raise NotFound("User not found")
        return user

    def record_visit(self, email: str, stall: int) -> None:
        with self._lock:
            user = self.get_user(email)
            if stall in user.visited:
                raise Conflict("Stall already visited")
            user.visited.add(stall)

    def list_visits(self, email: str) -> List[int]:
        with self._lock:
            return sorted(self.get_user(email).visited)

    def clear_all_visits(self) -> None:
        with self._lock:
            for user in self._users.values():
                user.visited.clear()

    def all_users(self) -> List[User]:
        with self._lock:
            return list(self._users.values())

    def top_n(self, n: int) -> List[User]:
        # sorted() is stable, so ties keep signup order
        users = self.all_users()
        users.sort(key=lambda u: -len(u.visited))
        return users[:n]


class VisitTokenRegistry:
    """Short-lived, single-use tokens proving presence at a stall."""

    def __init__(self, ttl_ms: int = VISIT_TOKEN_TTL_MS, clock: Callable[[], int] = now_ms) -> None:
        # token -> VisitToken
        self._tokens: Dict[str, VisitToken] = {}
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._tokens)

    def generate(self, stall: int) -> Tuple[str, int]:
        token = secrets.token_urlsafe(16)
        exp = self._clock() + self._ttl_ms
        with self._lock:
            self._purge_expired_locked()
            self._tokens[token] = VisitToken(stall=stall, exp=exp)
        return token, exp

    def consume(self, token: str, stall: int) -> None:
        with self._lock:
            data = self._tokens.get(token)
            if data is None or data.exp < self._clock() or data.stall != stall:
                raise InvalidToken("Invalid token")
            del self._tokens[token]

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_expired_locked()

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()

    def _purge_expired_locked(self) -> int:
        now = self._clock()
        expired = [t for t, data in self._tokens.items() if data.exp < now]
        for t in expired:
            del self._tokens[t]
        return len(expired)
