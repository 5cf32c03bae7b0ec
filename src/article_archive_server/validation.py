"""
Input Validation

Checks client-submitted article and identity payloads. Validation is
exhaustive: every violated rule is reported, in a fixed order, so a client can
fix all problems in one round trip.
"""

from __future__ import annotations

import re
from typing import Any, List, Mapping

from pydantic import ValidationError

from .config import settings
from .core.errors import InvalidInput
from .models import ArticleDraft, IdentityTuple


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

URL_PATTERN = re.compile(r"^https?://.+")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SANITIZED_MAX_LENGTH = 10000

# Fields passed through `sanitize_input`. Content is HTML and kept verbatim.
SANITIZED_FIELDS = ("title", "url", "website", "summary", "byline")


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def sanitize_input(value: Any) -> Any:
    """
    Trim a string, strip angle brackets and cap its length.

    Non-string values are returned unchanged.
    """
    if not isinstance(value, str):
        return value

    return value.strip().replace("<", "").replace(">", "")[:SANITIZED_MAX_LENGTH]


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


# ---------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------

def sanitize_article(payload: Mapping[str, Any]) -> dict:
    """Return a copy of `payload` with the text fields sanitized."""
    cleaned = dict(payload)
    for field in SANITIZED_FIELDS:
        if field in cleaned:
            cleaned[field] = sanitize_input(cleaned[field])
    return cleaned


def validate_article(payload: Mapping[str, Any]) -> List[str]:
    """
    Validate an article payload.

    Returns
    -------
    List[str]
        Human-readable violations. Empty when the payload is valid.
    """
    errors: List[str] = []

    title = _text(payload.get("title"))
    url = _text(payload.get("url"))
    content = _text(payload.get("content"))
    website = _text(payload.get("website"))

    if not title.strip():
        errors.append("Title is required")

    if len(title) > settings.max_title_length:
        errors.append(f"Title too long (max {settings.max_title_length} characters)")

    if not URL_PATTERN.match(url):
        errors.append("Valid URL is required")

    if len(content.strip()) < settings.min_content_length:
        errors.append(
            f"Article content is required (minimum {settings.min_content_length} characters)"
        )

    if len(content) > settings.max_article_size:
        errors.append("Article content too large")

    if not website.strip():
        errors.append("Website name is required")

    highlights = payload.get("highlights")
    if highlights is not None and not isinstance(highlights, list):
        errors.append("Highlights must be a list")
    elif highlights and not all(isinstance(h, dict) for h in highlights):
        errors.append("Each highlight must be an object")

    return errors


def ensure_valid_article(payload: Mapping[str, Any]) -> ArticleDraft:
    """
    Sanitize and validate `payload`, returning a typed draft.

    Raises
    ------
    InvalidInput
        Carrying every violated rule.
    """
    cleaned = sanitize_article(payload)
    errors = validate_article(cleaned)
    if errors:
        raise InvalidInput(errors)

    try:
        return ArticleDraft(
            title=cleaned["title"],
            url=cleaned["url"],
            website=cleaned["website"],
            content=cleaned["content"],
            summary=cleaned.get("summary") or None,
            highlights=cleaned.get("highlights") or [],
            byline=cleaned.get("byline") or None,
            reading_time=cleaned.get("reading_time") or None,
            last_highlighted_at=cleaned.get("last_highlighted_at") or None,
        )
    except ValidationError as exc:
        raise InvalidInput(
            [
                f"Invalid {'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            ]
        ) from exc


# ---------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------

def validate_identity(identity: IdentityTuple) -> List[str]:
    """Validate a verified identity before it is turned into a User."""
    errors: List[str] = []

    if not EMAIL_PATTERN.match(identity.email or ""):
        errors.append("Valid email is required")

    if not (identity.name or "").strip():
        errors.append("Name is required")

    if not (identity.external_id or "").strip():
        errors.append("External identity id is required")

    return errors
