from __future__ import annotations

import re
from typing import Iterable, List, Optional


def _normalize_label(value: str) -> str:
    """Trim and collapse inner whitespace, preserving casing."""
    if not value:
        return ""
    return re.sub(r"\s+", " ", str(value).strip())


def merge_tags(*groups: Optional[Iterable[str]]) -> List[str]:
    """
    Union of tag lists for a topic.

    - Trims spaces, collapses inner whitespace
    - Drops empty labels
    - Deduplicates case-insensitively while preserving first-seen casing

    ``merge_tags(global_tags, category_tags)`` keeps the global tags first.
    """
    seen_lower = set()
    result: List[str] = []
    for group in groups:
        for raw in group or []:
            label = _normalize_label(raw)
            key = label.lower()
            if label and key not in seen_lower:
                seen_lower.add(key)
                result.append(label)
    return result
