"""
Rubrik Review Desk — Text Processing Utilities
==============================================
Slug generation and small text helpers.
"""

import re
import secrets
import string
import unicodedata

_SLUG_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def slugify(text: str) -> str:
    """ASCII-fold, lowercase and hyphenate a string for use in URLs."""
    if not text:
        return ""
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    folded = re.sub(r"[^a-zA-Z0-9\s-]", "", folded).strip().lower()
    return re.sub(r"[\s_-]+", "-", folded).strip("-")


def random_suffix(length: int = 6) -> str:
    return "".join(secrets.choice(_SLUG_SUFFIX_ALPHABET) for _ in range(length))


def build_slug(slug: str | None, title: str, *, max_length: int = 255) -> str:
    """Normalise a supplied slug, or derive one from the title with a random suffix."""
    supplied = slugify(slug or "")
    if supplied:
        return supplied[:max_length]
    base = slugify(title) or "article"
    suffix = random_suffix()
    return f"{base[: max_length - len(suffix) - 1]}-{suffix}"


def truncate_text(text: str, max_length: int = 500) -> str:
    """Truncate text at a word boundary."""
    if not text or len(text) <= max_length:
        return text or ""
    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        truncated = truncated[:last_space]
    return truncated + "..."
