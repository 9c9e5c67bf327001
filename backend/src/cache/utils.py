"""Helpers shared by the caches."""
from uuid import UUID


def parse_uuid(value: str | UUID) -> UUID | None:
    """Parse an identifier coming from a token, URL or cache key; None if malformed."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(value)
    except (ValueError, AttributeError, TypeError):
        return None
