"""Utils package."""
from app.utils.text_processing import build_slug, slugify, truncate_text

__all__ = [
    "build_slug",
    "slugify",
    "truncate_text",
]
