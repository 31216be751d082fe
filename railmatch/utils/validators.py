"""Deterministic validators and sanitizers used by services and API handlers."""

from __future__ import annotations

from railmatch.core.exceptions import ValidationError

MAX_COMMENT_LENGTH = 2000


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence/display."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    cleaned = cleaned[:max_len]
    return cleaned


def sanitize_comment(value: str | None) -> str | None:
    """Return a cleaned comment, or None when nothing meaningful remains."""
    cleaned = sanitize_text(value, max_len=MAX_COMMENT_LENGTH)
    return cleaned or None


def parse_entity_id(raw: object, name: str) -> int:
    """Parse a positive integer identifier or raise ValidationError."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError(f"{name} parameter is required")
    if isinstance(raw, bool):
        raise ValidationError(f"{name} must be a valid number")
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be a valid number") from exc
    if value < 1:
        raise ValidationError(f"{name} must be a positive number")
    return value


def parse_optional_entity_id(raw: object, name: str) -> int | None:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    return parse_entity_id(raw, name)
