from __future__ import annotations

import pytest

from railmatch.core.exceptions import ValidationError
from railmatch.utils.validators import parse_entity_id, parse_optional_entity_id, sanitize_comment, sanitize_text


def test_sanitize_text_strips_nulls_and_truncates():
    assert sanitize_text("  hi\x00 there ") == "hi there"
    assert sanitize_text(None) == ""
    assert len(sanitize_text("x" * 50, max_len=10)) == 10


def test_sanitize_comment_blank_is_none():
    assert sanitize_comment("   ") is None
    assert sanitize_comment(None) is None
    assert len(sanitize_comment("a" * 3000)) == 2000


def test_parse_entity_id_accepts_positive_numbers():
    assert parse_entity_id("42", "requestId") == 42
    assert parse_entity_id(7, "requestId") == 7


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        (None, "requestId parameter is required"),
        ("", "requestId parameter is required"),
        ("abc", "requestId must be a valid number"),
        ("0", "requestId must be a positive number"),
        ("-3", "requestId must be a positive number"),
        (True, "requestId must be a valid number"),
    ],
)
def test_parse_entity_id_rejects(raw, message):
    with pytest.raises(ValidationError) as exc:
        parse_entity_id(raw, "requestId")
    assert str(exc.value) == message


def test_parse_optional_entity_id():
    assert parse_optional_entity_id(None, "matchId") is None
    assert parse_optional_entity_id(" ", "matchId") is None
    assert parse_optional_entity_id("5", "matchId") == 5
