"""
Decoding of F+MG+E message fragments.

A Google+ message is exported as a list of ``[kind, text, extra]`` triples.
The third slot means something different for every kind: a style mapping for
plain text, the target URL for links, the Google user id for mentions.  This
module turns those triples into one small immutable class per kind so the
renderer never has to probe positions or dictionary keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, List, Optional, Sequence, Union

from gplus_import.utils.errors import UnknownFragmentKindError, UnknownStyleError


class FragmentKind(IntEnum):
    PLAIN_TEXT = 0
    NEWLINE = 1
    LINK = 2
    MENTION = 3
    HASHTAG = 4


class Style(Enum):
    NONE = None
    ITALIC = "italic"
    BOLD = "bold"
    STRIKETHROUGH = "strikethrough"


# Checked in this order; the exporter only ever sets one flag.
_STYLE_KEYS = (Style.ITALIC, Style.BOLD, Style.STRIKETHROUGH)


@dataclass(frozen=True)
class PlainText:
    text: str
    style: Style = Style.NONE
    kind = FragmentKind.PLAIN_TEXT


@dataclass(frozen=True)
class Newline:
    kind = FragmentKind.NEWLINE


@dataclass(frozen=True)
class Link:
    text: str
    url: str
    kind = FragmentKind.LINK


@dataclass(frozen=True)
class Mention:
    name: str
    user_id: Optional[str] = None
    kind = FragmentKind.MENTION

    @property
    def tombstoned(self) -> bool:
        # deleted G+ users show up with a null ID
        return self.user_id is None


@dataclass(frozen=True)
class Hashtag:
    tag: str
    kind = FragmentKind.HASHTAG


Fragment = Union[PlainText, Newline, Link, Mention, Hashtag]
FRAGMENT_TYPES = (PlainText, Newline, Link, Mention, Hashtag)


def parse_style(raw: Any) -> Style:
    """Map the exporter's style mapping (e.g. ``{"bold": true}``) to a :class:`Style`."""
    if raw is None:
        return Style.NONE
    if isinstance(raw, Style):
        return raw
    if isinstance(raw, dict):
        for style in _STYLE_KEYS:
            if raw.get(style.value):
                return style
    raise UnknownStyleError(raw)


def parse_fragment(raw: Union[Fragment, Sequence[Any]]) -> Fragment:
    """Decode one ``[kind, text, extra]`` triple.

    Already decoded fragments are returned unchanged.

    :raises UnknownFragmentKindError: if ``kind`` is not one of the five known codes.
    :raises UnknownStyleError: if a plain text style mapping sets no known flag.
    """
    if isinstance(raw, FRAGMENT_TYPES):
        return raw
    if not raw:
        raise UnknownFragmentKindError(raw)
    code = raw[0]
    text = raw[1] if len(raw) > 1 and raw[1] is not None else ""
    extra = raw[2] if len(raw) > 2 else None

    # bool is an int subclass; True must not decode as NEWLINE
    if isinstance(code, bool) or not isinstance(code, int):
        raise UnknownFragmentKindError(code)
    try:
        kind = FragmentKind(code)
    except ValueError:
        raise UnknownFragmentKindError(code) from None

    if kind is FragmentKind.PLAIN_TEXT:
        return PlainText(text, parse_style(extra))
    if kind is FragmentKind.NEWLINE:
        return Newline()
    if kind is FragmentKind.LINK:
        return Link(text, extra if extra is not None else text)
    if kind is FragmentKind.MENTION:
        return Mention(text, None if extra is None else str(extra))
    return Hashtag(text)


def parse_message(raw: Optional[Sequence[Any]]) -> List[Fragment]:
    """Decode a whole message, preserving fragment order."""
    return [parse_fragment(item) for item in (raw or [])]
