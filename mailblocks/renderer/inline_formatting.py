"""Expansion of inline formatting tokens into styled spans and links.

Grammar, one token kind per span and no nesting::

    {{bold:#HEX}}text{{/bold}}
    {{style:normal|semibold|bold|color:#HEX}}text{{/style}}
    {{link:URL|bold|color:#HEX}}text{{/link}}

Tokens are expanded in three fixed passes: bold, then style, then link. Each
pass works on the output of the previous one. Malformed tokens never raise;
they stay literal (bold) or collapse to their inner text (style, link).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..urls import is_valid_protocol

DEFAULT_LINK_COLOR = "#008867"

FONT_WEIGHTS = {"normal": 400, "semibold": 600, "bold": 700}

HEX_COLOR_RE = re.compile(r"^#([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")

_BOLD_TOKEN_RE = re.compile(r"\{\{bold:(#[0-9A-Fa-f]{3}|#[0-9A-Fa-f]{6})\}\}(.*?)\{\{/bold\}\}")
_ANY_BOLD_TOKEN_RE = re.compile(r"\{\{bold:([^}]*)\}\}(.*?)\{\{/bold\}\}")
_STYLE_TOKEN_RE = re.compile(r"\{\{style:([^}]+)\}\}(.*?)\{\{/style\}\}")
_LINK_TOKEN_RE = re.compile(r"\{\{link:([^}]+)\}\}(.*?)\{\{/link\}\}")

# Characters that could end an attribute value or open a tag.
_UNSAFE_URL_CHARS_RE = re.compile(r"[\s\"'<>`]")

WHATSAPP_LINK_PREFIX = "https://wa.me/"


@dataclass(frozen=True)
class RejectedToken:
    kind: str
    token: str
    reason: str


@dataclass(frozen=True)
class FormattingResult:
    html: str
    rejected: Tuple[RejectedToken, ...] = ()


def _parse_color(part: str) -> Optional[str]:
    if not part.startswith("color:"):
        return None
    value = part[len("color:") :]
    return value if HEX_COLOR_RE.match(value) else None


def parse_style_modifiers(modifiers: str) -> Tuple[Optional[str], Optional[str], bool]:
    """Return ``(weight, color, is_valid)`` for the modifier list of a style token.

    The list is valid when at least one recognised modifier is present; the
    last weight keyword wins.
    """

    weight = None
    color = None
    recognised = False
    for part in (piece.strip() for piece in modifiers.split("|")):
        if part in FONT_WEIGHTS:
            weight = part
            recognised = True
            continue
        parsed = _parse_color(part)
        if parsed:
            color = parsed
            recognised = True
    return weight, color, recognised


def parse_link_modifiers(modifiers: str) -> Tuple[str, bool, Optional[str]]:
    """Return ``(url, bold, color)`` for the modifier list of a link token; unknown modifiers are ignored."""

    parts = [piece.strip() for piece in modifiers.split("|")]
    url = parts[0]
    bold = False
    color = None
    for part in parts[1:]:
        if part == "bold":
            bold = True
            continue
        parsed = _parse_color(part)
        if parsed:
            color = parsed
    return url, bold, color


def is_safe_link_url(url: str) -> bool:
    """Whitelisted protocol and nothing that could escape the href attribute."""

    if not url or _UNSAFE_URL_CHARS_RE.search(url):
        return False
    return is_valid_protocol(url) or url.startswith(WHATSAPP_LINK_PREFIX)


def _expand_bold(text: str, rejected: List[RejectedToken]) -> str:
    result = _BOLD_TOKEN_RE.sub(
        lambda match: f'<span style="color:{match.group(1)};font-weight:700;">{match.group(2)}</span>',
        text,
    )
    # Whatever bold token is still present had an invalid color and stays literal.
    rejected.extend(
        RejectedToken("bold", match.group(0), "invalid color")
        for match in _ANY_BOLD_TOKEN_RE.finditer(result)
    )
    return result


def _expand_style(text: str, rejected: List[RejectedToken]) -> str:
    def replace(match: re.Match) -> str:
        modifiers, content = match.group(1), match.group(2)
        weight, color, valid = parse_style_modifiers(modifiers)
        if not valid:
            rejected.append(RejectedToken("style", match.group(0), "no recognised modifier"))
            return content

        styles = []
        if color:
            styles.append(f"color:{color}")
        if weight:
            styles.append(f"font-weight:{FONT_WEIGHTS[weight]}")
        return f'<span style="{";".join(styles)};">{content}</span>'

    return _STYLE_TOKEN_RE.sub(replace, text)


def _expand_links(text: str, rejected: List[RejectedToken]) -> str:
    def replace(match: re.Match) -> str:
        modifiers, content = match.group(1), match.group(2)
        url, bold, color = parse_link_modifiers(modifiers)
        if not is_safe_link_url(url):
            rejected.append(RejectedToken("link", match.group(0), "URL not allowed"))
            return content

        styles = [
            f"color:{color or DEFAULT_LINK_COLOR}",
            "text-decoration:none",
            f"font-weight:{700 if bold else 600}",
        ]
        return (
            f'<a href="{url}" style="{";".join(styles)};" '
            f'target="_blank" rel="noopener noreferrer">{content}</a>'
        )

    return _LINK_TOKEN_RE.sub(replace, text)


def expand_inline_tokens(text: str) -> FormattingResult:
    """Expand formatting tokens and report the ones that were neutralised."""

    if not text:
        return FormattingResult("")

    rejected: List[RejectedToken] = []
    result = _expand_bold(text, rejected)
    result = _expand_style(result, rejected)
    result = _expand_links(result, rejected)
    return FormattingResult(result, tuple(rejected))


def parse_inline_formatting(text: str) -> str:
    """Expand ``{{bold}}``, ``{{style}}`` and ``{{link}}`` tokens into inline HTML."""

    return expand_inline_tokens(text).html
