"""
Title synthesis for Google+ posts.

Google+ posts have no titles, so one is made up from the first words of the
message.  Short posts do not work well as titles in practice, and the forum
enforces a minimum title length, so those fall back to a fixed
"Post by <author> on <date>" form.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .fragments import Link, Mention, PlainText, parse_fragment

_SENTENCE_END = (".",)
_CLAUSE_END = (",", ";", ":", "?")

# The first words are never used as a cut point.
_MIN_CUT_INDEX = 3


@dataclass(frozen=True)
class TitleConfig:
    min_words: int = 3
    max_words: int = 14
    min_chars: int = 12
    # forum maximum, longer than a good display shows anyway
    max_length: int = 254

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "TitleConfig":
        return cls(
            min_words=int(cfg.get("min_title_words", cls.min_words)),
            max_words=int(cfg.get("max_title_words", cls.max_words)),
            min_chars=int(cfg.get("min_title_characters", cls.min_chars)),
        )


def message_words(message: Optional[Sequence[Any]]) -> List[str]:
    """Only words, no markup: plain text and mention names split on
    whitespace, plus the display text of each link as one word."""
    words: List[str] = []
    for raw in message or []:
        fragment = parse_fragment(raw)
        if isinstance(fragment, PlainText):
            words.extend(fragment.text.split())
        elif isinstance(fragment, Mention):
            words.extend(fragment.name.split())
        elif isinstance(fragment, Link):
            if fragment.text:
                words.append(fragment.text)
    return words


def untitled(author_name: str, created_at: Any) -> str:
    return f"Post by {author_name} on {created_at}"


def _last_index_ending_with(words: List[str], suffixes) -> Optional[int]:
    last = None
    for i in range(_MIN_CUT_INDEX, len(words)):
        if words[i].endswith(suffixes):
            last = i
    return last


def synthesize_title(
    words: Sequence[str],
    author_name: str,
    created_at: Any,
    config: TitleConfig = TitleConfig(),
) -> str:
    words = list(words)
    if not words or len("".join(words)) < config.min_chars or len(words) < config.min_words:
        return untitled(author_name, created_at)

    words = words[: config.max_words]
    # prefer a full stop, fall back on other punctuation
    last = _last_index_ending_with(words, _SENTENCE_END)
    if last is None:
        last = _last_index_ending_with(words, _CLAUSE_END)
    if last is not None:
        words = words[: last + 1]

    chunks = re.findall(".{1,%d}" % config.max_length, " ".join(words))
    return chunks[0] if chunks else untitled(author_name, created_at)


def post_title(post: Dict[str, Any], created_at: Any, config: TitleConfig = TitleConfig()) -> str:
    author_name = (post.get("author") or {}).get("name", "")
    if not post.get("message"):
        # probably just posted an image and/or album
        return untitled(author_name, created_at)
    return synthesize_title(message_words(post["message"]), author_name, created_at, config)
