"""
Validation Tests

Article and identity validation report every violated rule at once.
"""

import pytest

from article_archive_server.core.errors import InvalidInput
from article_archive_server.models import IdentityTuple
from article_archive_server.validation import (
    ensure_valid_article,
    sanitize_input,
    validate_article,
    validate_identity,
)


def test_valid_article_has_no_errors(make_payload):
    assert validate_article(make_payload()) == []


def test_empty_article_reports_every_rule():
    errors = validate_article({})

    assert "Title is required" in errors
    assert "Valid URL is required" in errors
    assert "Article content is required (minimum 100 characters)" in errors
    assert "Website name is required" in errors
    assert len(errors) == 4


def test_title_too_long(make_payload):
    errors = validate_article(make_payload(title="x" * 201))
    assert errors == ["Title too long (max 200 characters)"]


def test_non_http_url_rejected(make_payload):
    errors = validate_article(make_payload(url="ftp://a.example/1"))
    assert errors == ["Valid URL is required"]


def test_short_content_rejected(make_payload):
    errors = validate_article(make_payload(content="   too short   "))
    assert errors == ["Article content is required (minimum 100 characters)"]


def test_oversized_content_rejected(make_payload):
    errors = validate_article(make_payload(content="x" * 50001))
    assert errors == ["Article content too large"]


def test_highlights_must_be_list_of_objects(make_payload):
    assert validate_article(make_payload(highlights="nope")) == ["Highlights must be a list"]
    assert validate_article(make_payload(highlights=["nope"])) == [
        "Each highlight must be an object"
    ]


def test_sanitize_input_strips_brackets_and_trims():
    assert sanitize_input("  <b>Title</b>  ") == "bTitle/b"
    assert sanitize_input(None) is None
    assert sanitize_input(5) == 5
    assert len(sanitize_input("a" * 20000)) == 10000


def test_ensure_valid_article_returns_sanitized_draft(make_payload):
    payload = make_payload(
        title="  <Breaking> news ",
        highlights=[{"text": "quoted", "note": "mine", "position": 12}],
    )

    draft = ensure_valid_article(payload)

    assert draft.title == "Breaking news"
    # Content is HTML and never sanitized
    assert draft.content == payload["content"]
    assert draft.highlights[0].text == "quoted"
    assert draft.highlights[0].model_dump()["position"] == 12


def test_ensure_valid_article_raises_with_all_errors():
    with pytest.raises(InvalidInput) as excinfo:
        ensure_valid_article({"title": "", "url": "nope"})

    assert len(excinfo.value.errors) == 4
    assert excinfo.value.status_code == 400


def test_ensure_valid_article_rejects_bad_timestamp(make_payload):
    with pytest.raises(InvalidInput) as excinfo:
        ensure_valid_article(make_payload(last_highlighted_at="yesterday-ish"))

    assert any("last_highlighted_at" in error for error in excinfo.value.errors)


def test_validate_identity():
    good = IdentityTuple(email="a@b.co", external_id="1", name="A")
    bad = IdentityTuple(email="not-an-email", external_id=" ", name="")

    assert validate_identity(good) == []
    assert validate_identity(bad) == [
        "Valid email is required",
        "Name is required",
        "External identity id is required",
    ]
