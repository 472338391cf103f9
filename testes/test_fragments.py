import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from gplus_import.parsers.fragments import (
    FragmentKind,
    Hashtag,
    Link,
    Mention,
    Newline,
    PlainText,
    Style,
    parse_fragment,
    parse_message,
)
from gplus_import.utils.errors import ContentDecodingError, UnknownFragmentKindError, UnknownStyleError


def test_plain_text_styles_decode_to_enum():
    assert parse_fragment([0, "x", None]) == PlainText("x", Style.NONE)
    assert parse_fragment([0, "x", {"italic": True}]).style is Style.ITALIC
    assert parse_fragment([0, "x", {"bold": True}]).style is Style.BOLD
    assert parse_fragment([0, "x", {"strikethrough": True}]).style is Style.STRIKETHROUGH


def test_plain_text_without_style_slot():
    assert parse_fragment([0, "hello"]) == PlainText("hello")


def test_unknown_style_is_fatal():
    with pytest.raises(UnknownStyleError):
        parse_fragment([0, "x", {"underline": True}])
    with pytest.raises(UnknownStyleError):
        parse_fragment([0, "x", {"bold": False}])


def test_each_kind_gets_its_own_fields():
    assert parse_fragment([1, "", None]) == Newline()
    assert parse_fragment([2, "example", "https://example.com"]) == Link("example", "https://example.com")
    assert parse_fragment([3, "Alice", "ext-42"]) == Mention("Alice", "ext-42")
    assert parse_fragment([4, "tag", None]) == Hashtag("tag")


def test_mention_without_id_is_tombstoned():
    mention = parse_fragment([3, "Bob", None])
    assert mention.tombstoned
    assert not parse_fragment([3, "Bob", 12345]).tombstoned
    assert parse_fragment([3, "Bob", 12345]).user_id == "12345"


def test_unknown_kind_is_fatal():
    with pytest.raises(UnknownFragmentKindError) as exc:
        parse_fragment([7, "x", None])
    assert exc.value.kind == 7
    assert isinstance(exc.value, ContentDecodingError)
    with pytest.raises(UnknownFragmentKindError):
        parse_fragment(["0", "x", None])


def test_parse_message_keeps_order():
    message = parse_message([[0, "a", None], [1, "", None], [4, "b", None]])
    assert [f.kind for f in message] == [FragmentKind.PLAIN_TEXT, FragmentKind.NEWLINE, FragmentKind.HASHTAG]
    assert parse_message(None) == []


def test_parsed_fragments_pass_through():
    fragment = Mention("Alice", "1")
    assert parse_fragment(fragment) is fragment
