"""Web-safe file name normalization."""

import re
import unicodedata

from image_storage.utils.constants import SANITIZE_ALLOWED_PUNCTUATION

_DISALLOWED_RE = re.compile(rf"[^a-z0-9{re.escape(SANITIZE_ALLOWED_PUNCTUATION)}]+")


def to_ascii(value: str) -> str:
    """Fold accented characters to their closest ASCII form."""
    normalized = unicodedata.normalize("NFKD", value)
    return normalized.encode("ascii", "ignore").decode("ascii")


def fix_name(name: str) -> str:
    """Turn an untrusted file name into a lower-case web-safe slug.

    Dots and underscores survive; every other run of characters outside
    ``[a-z0-9]`` collapses into a single ``-``.

    Example:
        >>> fix_name("Žluťoučký Kůň (1).JPG")
        'zlutoucky-kun-1-.jpg'
    """
    slug = _DISALLOWED_RE.sub("-", to_ascii(name).lower())
    return slug.strip("-")
