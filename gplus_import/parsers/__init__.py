"""
Parsers and converters used by the import pipeline.

Currently this subpackage exposes ``parse_message`` (fragment decoding),
``render_message`` / ``format_post_body`` (fragment → markup) and
``synthesize_title`` / ``post_title`` (title heuristics).
"""

from .fragments import parse_fragment, parse_message
from .markup import format_post_body, render_fragment, render_message
from .titles import TitleConfig, post_title, synthesize_title

__all__ = [
    "parse_fragment",
    "parse_message",
    "format_post_body",
    "render_fragment",
    "render_message",
    "TitleConfig",
    "post_title",
    "synthesize_title",
]
