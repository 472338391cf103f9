import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from gplus_import.parsers.markup import format_post_body, render_fragment, render_message
from gplus_import.utils.errors import UnknownFragmentKindError, UnknownStyleError, UnresolvedMentionError

ZWJ = chr(0x200D)
NBSP = chr(0xA0)


class FakeContext:
    def __init__(self, handles=None, permissive=False):
        self.handles = handles or {}
        self.permissive = permissive
        self.images = []

    def resolve_mention(self, user_id):
        return self.handles.get(user_id)

    def resolve_or_upload_image(self, url, text):
        self.images.append((url, text))
        return url


def test_styled_plain_text():
    ctx = FakeContext()
    assert render_fragment([0, "hello", {"bold": True}], ctx) == "<b>hello</b>"
    assert render_fragment([0, "hello", {"italic": True}], ctx) == "<i>hello</i>"
    assert render_fragment([0, "hello", {"strikethrough": True}], ctx) == "<s>hello</s>"
    assert render_fragment([0, "hello", None], ctx) == "hello"


def test_plain_text_is_cleaned():
    ctx = FakeContext()
    assert render_fragment([0, "a" + ZWJ + "b", None], ctx) == "ab"
    assert render_fragment([0, "a" + chr(0x80) + "b", None], ctx) == "ab"
    assert render_fragment([0, "a" + NBSP + "b", None], ctx) == "a b"


def test_unknown_style_raises():
    with pytest.raises(UnknownStyleError):
        render_fragment([0, "hello", {"blink": True}], FakeContext())


def test_newline_ignores_payload():
    assert render_fragment([1, "whatever", None], FakeContext()) == "\n"


def test_link_goes_through_image_resolution():
    ctx = FakeContext()
    assert render_fragment([2, "shown text", "https://example.com/a"], ctx) == "https://example.com/a"
    assert ctx.images == [("https://example.com/a", "shown text")]


def test_mention_resolved_keeps_trailing_space():
    ctx = FakeContext({"ext-42": "alice99"})
    assert render_fragment([3, "Alice", "ext-42"], ctx) == "@alice99 "


def test_tombstoned_mention():
    assert render_fragment([3, "Bob", None], FakeContext()) == "<b>+Bob</b>"


def test_unresolved_mention_is_fatal_unless_permissive():
    with pytest.raises(UnresolvedMentionError) as exc:
        render_fragment([3, "Carol", "ext-7"], FakeContext())
    assert exc.value.user_id == "ext-7"
    assert render_fragment([3, "Carol", "ext-7"], FakeContext(permissive=True)) == "<b>+Carol</b>"


def test_hashtag_hash_not_doubled():
    ctx = FakeContext()
    assert render_fragment([4, "python", None], ctx) == "#python"
    assert render_fragment([4, "#python", None], ctx) == "#python"


def test_unknown_kind_raises():
    with pytest.raises(UnknownFragmentKindError):
        render_fragment([9, "x", None], FakeContext())


def test_render_message_concatenates_in_order():
    ctx = FakeContext({"1": "ann"})
    message = [
        [0, "Hi", None],
        [3, "Ann", "1"],
        [0, "look", {"bold": True}],
        [1, "", None],
        [4, "news", None],
    ]
    assert render_message(message, ctx) == "Hi@ann <b>look</b>\n#news"


def test_post_level_images_are_appended():
    ctx = FakeContext()
    post = {
        "message": [[0, "Photos", None]],
        "image": {"proxy": "https://img/1"},
        "images": [{"proxy": "https://img/2"}, {"proxy": "https://img/3"}],
    }
    body = format_post_body(post, ctx)
    assert body == "Photos\nhttps://img/1\n\nhttps://img/2\n\nhttps://img/3\n"
    assert [url for url, _ in ctx.images] == ["https://img/1", "https://img/2", "https://img/3"]


def test_post_without_message():
    assert format_post_body({"image": {"proxy": "https://img/1"}}, FakeContext()) == "\nhttps://img/1\n"
