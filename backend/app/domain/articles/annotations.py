"""
Annotation merge for the article `meta` bag.

Known sub-keys: `keywords`, `highlights`, `cover_path`, `cover_url`.
Anything else in the bag is carried forward untouched. Merging never reads
or writes lifecycle status.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

KEYWORD_MAX_LENGTH = 64

META_KEYWORDS = "keywords"
META_HIGHLIGHTS = "highlights"
META_COVER_PATH = "cover_path"
META_COVER_URL = "cover_url"


@dataclass(slots=True)
class AnnotationUpdate:
    keywords: list[Any] | None = None
    highlights: list[Any] | None = None
    cover_path: str | None = None
    cover_url: str | None = None
    cover_data_url: str | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.keywords is None
            and self.highlights is None
            and not self.cover_path
            and not self.cover_url
            and not self.cover_data_url
        )

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "AnnotationUpdate":
        data = dict(payload or {})
        keywords = data.get(META_KEYWORDS)
        highlights = data.get(META_HIGHLIGHTS)
        return cls(
            keywords=list(keywords) if isinstance(keywords, (list, tuple)) else None,
            highlights=list(highlights) if isinstance(highlights, (list, tuple)) else None,
            cover_path=data.get(META_COVER_PATH) or None,
            cover_url=data.get(META_COVER_URL) or None,
            cover_data_url=data.get("cover_data_url") or None,
        )


def normalize_keywords(values: Iterable[Any] | None, *, max_length: int = KEYWORD_MAX_LENGTH) -> list[str]:
    """Trim, drop empty or over-long entries, dedupe case-sensitively keeping first occurrence."""
    seen: dict[str, None] = {}
    for raw in values or []:
        if raw is None:
            continue
        keyword = str(raw).strip()
        if not keyword or len(keyword) > max_length:
            continue
        seen.setdefault(keyword, None)
    return list(seen)


def merge_annotations(
    meta: Mapping[str, Any] | None,
    update: AnnotationUpdate,
    *,
    keyword_max_length: int = KEYWORD_MAX_LENGTH,
) -> dict[str, Any]:
    merged: dict[str, Any] = copy.deepcopy(dict(meta or {}))

    if update.keywords is not None:
        merged[META_KEYWORDS] = normalize_keywords(update.keywords, max_length=keyword_max_length)

    if update.highlights is not None:
        merged[META_HIGHLIGHTS] = copy.deepcopy(list(update.highlights))

    # Cover fields are only replaced by a new value; absent means keep.
    if update.cover_path:
        merged[META_COVER_PATH] = update.cover_path
    if update.cover_url:
        merged[META_COVER_URL] = update.cover_url

    merged.pop("cover_data_url", None)
    return merged
