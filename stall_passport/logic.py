import csv
import hmac
import io
from typing import FrozenSet, List, Optional, Tuple

from .allowlist import normalize_email
from .errors import BadRequest, Conflict, Forbidden, NotFound, Unauthorized
from .logger import get_logger
from .models import LeaderboardEntry, User
from .security import TokenService, hash_password, verify_password
from .storage import CredentialStore, VisitTokenRegistry

logger = get_logger(__name__)

LEADERBOARD_SIZE = 10
EXPORT_HEADER = "Name,Email,Visited_Count,Visited_Stalls"


class PassportService:
    """Owns all process state: users, pending visit tokens and the allow-list."""

    def __init__(
        self,
        allowlist: FrozenSet[str],
        tokens: TokenService,
        admin_key: str,
        users: Optional[CredentialStore] = None,
        visit_tokens: Optional[VisitTokenRegistry] = None,
        bcrypt_rounds: int = 10,
    ) -> None:
        self.allowlist = allowlist
        self.tokens = tokens
        self.users = users if users is not None else CredentialStore()
        self.visit_tokens = visit_tokens if visit_tokens is not None else VisitTokenRegistry()
        self._admin_key = admin_key
        self._bcrypt_rounds = bcrypt_rounds

    # ---------------------------
    # Auth
    # ---------------------------

    def signup(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> Tuple[str, str]:
        if not name or not email or not password:
            raise BadRequest("Missing fields")

        clean_email = normalize_email(email)
        if clean_email not in self.allowlist:
            raise Forbidden("Email not found in conference registration list")

        if clean_email in self.users:
            raise Conflict("User already exists")

        password_hash = hash_password(password, rounds=self._bcrypt_rounds)
        # create_user re-checks under the store lock in case of a concurrent signup
        self.users.create_user(name, clean_email, password_hash)
        logger.info("New signup: %s", clean_email)
        return self.tokens.issue(clean_email), name

    def login(self, email: Optional[str], password: Optional[str]) -> Tuple[str, str]:
        # Lookup uses the email exactly as given (no strip/lowercase), so a
        # login with different casing than the stored address is rejected.
        if not email or not password:
            raise Unauthorized("Invalid credentials")
        try:
            user = self.users.get_user(email)
        except NotFound:
            logger.warning("Login for unknown email: %s", email)
            raise Unauthorized("Invalid credentials")

        if not verify_password(password, user.passwordHash):
            logger.warning("Bad password for %s", email)
            raise Unauthorized("Invalid credentials")
        return self.tokens.issue(user.email), user.name

    def authenticate(self, authorization: Optional[str]) -> str:
        """Resolve an ``Authorization: Bearer <token>`` header to a known email."""
        if not authorization:
            raise Unauthorized("No token")
        parts = authorization.split(" ")
        if len(parts) < 2:
            raise Unauthorized("Invalid token")
        email = self.tokens.verify(parts[1])
        if email not in self.users:
            # token outlived the in-memory user (e.g. process restart)
            raise Unauthorized("Invalid token")
        return email

    # ---------------------------
    # Visits
    # ---------------------------

    def list_visits(self, email: str) -> List[int]:
        return self.users.list_visits(email)

    def generate_visit_token(self, stall: Optional[int]) -> Tuple[str, int]:
        if stall is None:
            raise BadRequest("Missing stall")
        return self.visit_tokens.generate(stall)

    def verify_visit(self, email: str, token: Optional[str], stall: Optional[int]) -> None:
        if not token or stall is None:
            raise BadRequest("Missing token or stall")
        # The token is spent even if the stall turns out to be a duplicate.
        self.visit_tokens.consume(token, stall)
        self.users.record_visit(email, stall)
        logger.info("Visit recorded: %s at stall %d", email, stall)

    def leaderboard(self, n: int = LEADERBOARD_SIZE) -> List[LeaderboardEntry]:
        return [LeaderboardEntry(name=u.name, count=len(u.visited)) for u in self.users.top_n(n)]

    # ---------------------------
    # Admin
    # ---------------------------

    def check_admin_key(self, key: Optional[str]) -> None:
        if not key or not hmac.compare_digest(key.encode("utf-8"), self._admin_key.encode("utf-8")):
            logger.warning("Rejected admin request with bad key")
            raise Forbidden("Forbidden")

    def reset(self) -> None:
        self.users.clear_all_visits()
        self.visit_tokens.clear()
        logger.info("Admin reset: all visits and pending visit tokens cleared")

    def export_csv(self) -> str:
        users = self.users.all_users()
        out = io.StringIO()
        out.write(EXPORT_HEADER + "\n")
        writer = csv.writer(out, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
        for user in users:
            writer.writerow([user.name, user.email, len(user.visited), _stalls_field(user)])
        logger.info("Admin export: %d users", len(users))
        return out.getvalue()


def _stalls_field(user: User) -> str:
    return " ".join(str(s) for s in sorted(user.visited))
