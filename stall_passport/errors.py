"""Errors raised by the passport service.

Each error carries the HTTP status it is rendered with; the message is
returned to the client as ``{"error": message}``.
"""


class PassportError(Exception):
    """Base error for the passport service"""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class BadRequest(PassportError):
    """Missing or malformed request fields"""
    status_code = 400


class Forbidden(PassportError):
    """Email not on the allow-list, or admin key mismatch"""
    status_code = 403


class Conflict(PassportError):
    """Duplicate user or duplicate stall visit"""
    status_code = 400


class Unauthorized(PassportError):
    """Bad credentials or missing/invalid/expired session token"""
    status_code = 401


class InvalidToken(PassportError):
    """Visit token missing, expired or issued for another stall"""
    status_code = 400


class NotFound(PassportError):
    status_code = 404
