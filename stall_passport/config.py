import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field


def _origins(raw: str) -> List[str]:
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


class Settings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 10000
    jwt_secret: str = "iria-secret-key"
    admin_key: str = "iria-admin-key"
    allowlist_source: str = "registered_emails.txt"
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (and a local .env file)."""
        load_dotenv()
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "10000")),
            jwt_secret=os.getenv("JWT_SECRET", "iria-secret-key"),
            admin_key=os.getenv("ADMIN_KEY", "iria-admin-key"),
            allowlist_source=os.getenv("ALLOWLIST_SOURCE", "registered_emails.txt"),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "10")),
            cors_origins=_origins(os.getenv("CORS_ORIGINS", "*")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
