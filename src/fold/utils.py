import secrets
from datetime import UTC, datetime
from uuid import uuid4


def now() -> datetime:
    return datetime.now(UTC)


def generate_id() -> str:
    """Opaque primary key for auth tables."""
    return uuid4().hex


def generate_token() -> str:
    return secrets.token_urlsafe(32)
