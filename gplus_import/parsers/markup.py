"""
Render decoded message fragments to forum markup.

Markdown does not nest reliably the same way as either Google+'s markup or
what users intended on Google+, so styled text is emitted as HTML tags.
Anything that needs state (mentions, images) is asked of the ``context``:

* ``context.resolve_mention(user_id)`` returns a forum username or ``None``;
* ``context.resolve_or_upload_image(url, text)`` returns image markup or the
  bare URL;
* ``context.permissive`` allows unresolved mentions (dry runs).
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from gplus_import.utils.errors import UnknownFragmentKindError, UnresolvedMentionError
from .fragments import Fragment, Hashtag, Link, Mention, Newline, PlainText, Style, parse_fragment


class RenderContext(Protocol):
    permissive: bool

    def resolve_mention(self, user_id: str) -> Optional[str]:
        ...

    def resolve_or_upload_image(self, url: str, text: str) -> str:
        ...


_STYLE_TAGS = {
    Style.ITALIC: "i",
    Style.BOLD: "b",
    # s more likely than del to represent user intent
    Style.STRIKETHROUGH: "s",
}

# Zero-width joiners are common after plus-references and break @name
# recognition; U+0080 shows up for no good reason.
_DROPPED_CHARS = re.compile("[\u200d\u0080]")


def clean_text(text: str) -> str:
    return _DROPPED_CHARS.sub("", text or "").replace("\xa0", " ")


def tombstone(name: str) -> str:
    return f"<b>+{name}</b>"


def render_fragment(fragment: Union[Fragment, Sequence[Any]], context: RenderContext) -> str:
    fragment = parse_fragment(fragment)

    if isinstance(fragment, PlainText):
        text = clean_text(fragment.text)
        if fragment.style is Style.NONE:
            return text
        tag = _STYLE_TAGS[fragment.style]
        return f"<{tag}>{text}</{tag}>"

    if isinstance(fragment, Newline):
        return "\n"

    if isinstance(fragment, Link):
        return context.resolve_or_upload_image(fragment.url, fragment.text)

    if isinstance(fragment, Mention):
        if fragment.tombstoned:
            return tombstone(fragment.name)
        handle = context.resolve_mention(fragment.user_id)
        if handle:
            # G+ occasionally doesn't put proper spaces after users
            return f"@{handle} "
        if not context.permissive:
            raise UnresolvedMentionError(fragment.name, fragment.user_id)
        return tombstone(fragment.name)

    if isinstance(fragment, Hashtag):
        tag = fragment.tag
        return tag if tag.startswith("#") else f"#{tag}"

    raise UnknownFragmentKindError(getattr(fragment, "kind", fragment))


def render_message(message: Optional[Sequence[Any]], context: RenderContext) -> str:
    return "".join(render_fragment(fragment, context) for fragment in (message or []))


def post_image_urls(post: Dict[str, Any]) -> List[str]:
    """Proxy URLs of the images attached to a post, in export order."""
    urls: List[str] = []
    # yes, both "image" and "images"
    image = post.get("image")
    if image and image.get("proxy"):
        urls.append(image["proxy"])
    for image in post.get("images") or []:
        if image and image.get("proxy"):
            urls.append(image["proxy"])
    return urls


def format_post_body(post: Dict[str, Any], context: RenderContext) -> str:
    """Markup for a post or comment: the message followed by attached images."""
    lines = [render_message(post.get("message"), context)]
    for url in post_image_urls(post):
        lines.append(f"\n{context.resolve_or_upload_image(url, url)}\n")
    return "".join(lines)
