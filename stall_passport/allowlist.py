"""
Allow-list of pre-registered attendee emails.

The list is a newline-delimited text source (a local file or an http(s)
URL), typically exported from the event's registration system. Exports that
are CSV shaped are tolerated: the first field containing an ``@`` is taken
as the email and header rows are skipped.
"""

from pathlib import Path
from typing import FrozenSet, Iterable

import requests

from .logger import get_logger

logger = get_logger(__name__)

FETCH_TIMEOUT_SECONDS = 10


def normalize_email(email: str) -> str:
    return email.strip().lower()


def parse_allowlist(lines: Iterable[str]) -> FrozenSet[str]:
    emails = set()
    for line in lines:
        for field in line.split(","):
            field = normalize_email(field.strip().strip('"'))
            if "@" in field:
                emails.add(field)
                break
    return frozenset(emails)


def _read_source(source: str) -> str:
    if source.startswith(("http://", "https://")):
        resp = requests.get(source, timeout=FETCH_TIMEOUT_SECONDS)
        resp.raise_for_status()
        return resp.text
    return Path(source).read_text(encoding="utf-8-sig")


def load_allowlist(source: str) -> FrozenSet[str]:
    """
    Load the allow-list once at startup.

    A source that cannot be read is logged and yields an empty allow-list;
    the service still starts, but every signup is then rejected.
    """
    try:
        text = _read_source(source)
    except (OSError, requests.RequestException) as e:
        logger.error("Failed to load allow-list from %s: %s", source, e)
        return frozenset()

    emails = parse_allowlist(text.splitlines())
    logger.info("Loaded %d registered emails from %s", len(emails), source)
    return emails
