"""HTML rendering: inline tokens, block fragments and the full document."""

from .blocks import BLOCK_DEFAULTS, render_block
from .document import render_email
from .inline_formatting import expand_inline_tokens, parse_inline_formatting

__all__ = [
    "BLOCK_DEFAULTS",
    "expand_inline_tokens",
    "parse_inline_formatting",
    "render_block",
    "render_email",
]
