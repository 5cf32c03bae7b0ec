"""
Record Identifiers

Ids have the form ``<prefix>_<millisecond-timestamp>_<random-suffix>``.
Uniqueness is probabilistic; collisions on write are not detected.
"""

from __future__ import annotations

import secrets
import string
import time

_ALPHABET = string.ascii_lowercase + string.digits
_SUFFIX_LENGTH = 9


def generate_id(prefix: str) -> str:
    """Return a new identifier such as ``article_1718000000000_k3j9x0abc``."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{prefix}_{millis}_{suffix}"
