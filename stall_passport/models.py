from typing import List, Optional, Set
from pydantic import BaseModel, Field, field_validator


class User(BaseModel):
    name: str
    email: str  # lowercase-normalized at signup
    passwordHash: str
    visited: Set[int] = Field(default_factory=set)


class VisitToken(BaseModel):
    stall: int
    exp: int  # epoch milliseconds


# ---------------------------
# Requests
# ---------------------------

def _reject_bool(v):
    # JSON true/false would otherwise coerce to stall 1/0
    if isinstance(v, bool):
        raise ValueError("stall must be an integer")
    return v


class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class GenerateVisitTokenRequest(BaseModel):
    stall: Optional[int] = None

    @field_validator("stall", mode="before")
    @classmethod
    def stall_not_bool(cls, v):
        return _reject_bool(v)


class VerifyVisitRequest(BaseModel):
    token: Optional[str] = None
    stall: Optional[int] = None

    @field_validator("stall", mode="before")
    @classmethod
    def stall_not_bool(cls, v):
        return _reject_bool(v)


# ---------------------------
# Responses
# ---------------------------

class AuthResponse(BaseModel):
    token: str
    name: str


class VisitsResponse(BaseModel):
    visits: List[int]


class VisitTokenResponse(BaseModel):
    token: str
    exp: int


class OkResponse(BaseModel):
    ok: bool = True


class LeaderboardEntry(BaseModel):
    name: str
    count: int


class LeaderboardResponse(BaseModel):
    top: List[LeaderboardEntry]
