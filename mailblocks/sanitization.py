"""Whitelist sanitization for block text and inline HTML.

Everything here fails closed: tags, attributes, URLs and ``{{...}}`` tokens
that are not explicitly recognised as safe are dropped silently. Callers that
need to know what was removed use :func:`sanitize_html_detailed` or
:func:`get_sanitization_report`. The only raised error is
:class:`BlockSanitizationError`, for a button or image whose URL cannot be
used at all.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from html import escape
from typing import Dict, FrozenSet, Iterable, List, Literal, Mapping, Optional, Tuple

import bleach
import structlog

from .models import (
    Block,
    BlockType,
    ButtonBlock,
    DividerBlock,
    HighlightBoxBlock,
    ImageBlock,
    ParagraphBlock,
    TitleBlock,
)
from .template_config import HIGHLIGHT_BOX_PARSES_TOKENS
from .urls import is_valid_protocol, is_valid_url

logger = structlog.get_logger(__name__)


class SanitizationError(ValueError):
    """Base class for sanitization failures that must be surfaced."""


class BlockSanitizationError(SanitizationError):
    """A block field cannot be made safe and the block must not be sent as-is."""

    def __init__(self, block_id: str, field_name: str, value: str, reason: str) -> None:
        super().__init__(f"{reason} in block {block_id!r}: {value!r}")
        self.block_id = block_id
        self.field_name = field_name
        self.value = value
        self.reason = reason


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

INLINE_TAGS: Tuple[str, ...] = ("strong", "b", "em", "i", "u", "a", "br")

DANGEROUS_TAGS: FrozenSet[str] = frozenset(
    {
        "script",
        "iframe",
        "object",
        "embed",
        "form",
        "input",
        "button",
        "textarea",
        "style",
        "link",
        "meta",
        "base",
    }
)

DANGEROUS_ATTRIBUTES: FrozenSet[str] = frozenset(
    {
        "onload",
        "onerror",
        "onclick",
        "onmouseover",
        "onmouseout",
        "onmousemove",
        "onmouseenter",
        "onmouseleave",
        "onchange",
        "onfocus",
        "onblur",
        "onsubmit",
        "onkeydown",
        "onkeyup",
        "onkeypress",
        "ondblclick",
        "ondrag",
        "ondrop",
        "onwheel",
        "onscroll",
        "style",
        "class",
        "id",
    }
)

ALLOWED_ATTRIBUTES: Dict[str, Tuple[str, ...]] = {
    "a": ("href",),
    "img": ("src", "alt", "width", "height"),
}

URL_ATTRIBUTES: FrozenSet[str] = frozenset({"href", "src"})

PERSONALIZATION_TOKENS: FrozenSet[str] = frozenset({"firstName", "lastName", "email"})

FORMATTING_TOKEN_KINDS: Tuple[str, ...] = ("bold", "style", "link")


@dataclass(frozen=True)
class SanitizationConfig:
    """Per-block-type policy: which inline tags survive sanitization."""

    allowed_tags: FrozenSet[str]
    keep_formatting_tokens: bool = False
    strip_all_styles: bool = True
    escape_unsafe_characters: bool = True

    @property
    def allows_markup(self) -> bool:
        return bool(self.allowed_tags)


GLOBAL_SANITIZATION_CONFIG = SanitizationConfig(allowed_tags=frozenset(INLINE_TAGS))

_EMPHASIS_TAGS = frozenset({"strong", "b", "em", "i"})
_NO_TAGS: FrozenSet[str] = frozenset()

BLOCK_SANITIZATION_CONFIG: Dict[str, SanitizationConfig] = {
    "title": SanitizationConfig(allowed_tags=_EMPHASIS_TAGS, keep_formatting_tokens=True),
    "paragraph": SanitizationConfig(
        allowed_tags=frozenset(INLINE_TAGS), keep_formatting_tokens=True
    ),
    "image": SanitizationConfig(allowed_tags=_NO_TAGS),
    "button": SanitizationConfig(allowed_tags=_NO_TAGS),
    "divider": SanitizationConfig(allowed_tags=_NO_TAGS),
    "highlight-box": SanitizationConfig(
        allowed_tags=frozenset(INLINE_TAGS),
        keep_formatting_tokens=HIGHLIGHT_BOX_PARSES_TOKENS,
    ),
}


# ---------------------------------------------------------------------------
# Escaping
# ---------------------------------------------------------------------------

_UNSAFE_CHARS = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
    "/": "&#x2F;",
}
_UNSAFE_CHARS_RE = re.compile(r"[&<>\"'/]")


def escape_html(text: str) -> str:
    """Replace ``& < > " ' /`` with HTML entities in a single pass."""

    if not text:
        return ""
    return _UNSAFE_CHARS_RE.sub(lambda match: _UNSAFE_CHARS[match.group(0)], text)


_COMMON_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&nbsp;": " ",
}
_ENTITY_RE = re.compile(r"&[a-zA-Z0-9#]+;")


def strip_all_html(text: str) -> str:
    """Remove every tag and decode the common entities back to characters.

    The result is plain text and must be escaped again before it is embedded
    in HTML.
    """

    if not text:
        return ""
    stripped = bleach.clean(
        text,
        tags=set(),
        attributes={},
        strip=True,
        strip_comments=True,
    )
    return _ENTITY_RE.sub(lambda match: _COMMON_ENTITIES.get(match.group(0), match.group(0)), stripped)


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

# The body stops at the next "<" so an unterminated tag never makes the scan
# run past the following tag.
_TAG_RE = re.compile(r"<(/?)([A-Za-z][A-Za-z0-9]*)\b([^<>]*)>")
_ATTR_RE = re.compile(
    r"""([^\s"'<>/=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'=<>`]+)))?"""
)


@dataclass(frozen=True)
class Segment:
    """One item of tokenized input: a run of text or a single tag."""

    kind: Literal["text", "tag"]
    raw: str
    name: str = ""
    closing: bool = False
    self_closing: bool = False
    attributes: Tuple[Tuple[str, str], ...] = ()


def _parse_attributes(attr_text: str) -> Tuple[Tuple[str, str], ...]:
    pairs = []
    for match in _ATTR_RE.finditer(attr_text):
        value = next((group for group in match.group(2, 3, 4) if group is not None), "")
        pairs.append((match.group(1).lower(), value))
    return tuple(pairs)


def tokenize_html(html: str) -> List[Segment]:
    """Split ``html`` into text and tag segments in one left-to-right pass.

    A ``<`` that does not start a well-formed tag stays in the surrounding
    text segment.
    """

    segments: List[Segment] = []
    position = 0
    for match in _TAG_RE.finditer(html):
        if match.start() > position:
            segments.append(Segment("text", html[position : match.start()]))
        attr_text = match.group(3)
        segments.append(
            Segment(
                "tag",
                match.group(0),
                name=match.group(2).lower(),
                closing=bool(match.group(1)),
                self_closing=attr_text.rstrip().endswith("/"),
                attributes=_parse_attributes(attr_text),
            )
        )
        position = match.end()
    if position < len(html):
        segments.append(Segment("text", html[position:]))
    return segments


# ---------------------------------------------------------------------------
# HTML sanitizer
# ---------------------------------------------------------------------------

DropKind = Literal["dangerous_tag", "disallowed_tag", "attribute", "unsafe_url", "token"]


@dataclass(frozen=True)
class DroppedItem:
    kind: DropKind
    detail: str


@dataclass(frozen=True)
class SanitizedHtml:
    html: str
    dropped: Tuple[DroppedItem, ...] = ()


def _filter_attributes(
    tag: str,
    attributes: Iterable[Tuple[str, str]],
    allowed_attrs: Iterable[str],
    dropped: List[DroppedItem],
    token_marker: Optional[str] = None,
) -> Dict[str, str]:
    allowed = {name.lower() for name in allowed_attrs}
    clean: Dict[str, str] = {}
    for raw_name, value in attributes:
        name = raw_name.lower()
        if name in DANGEROUS_ATTRIBUTES or name.startswith("on") or name not in allowed:
            dropped.append(DroppedItem("attribute", f"{tag}.{name}"))
            continue
        if name in clean:
            continue
        # Formatting markers expand into markup, so they may only live in text.
        if token_marker and token_marker in value:
            dropped.append(DroppedItem("token", f"{tag}.{name}"))
            continue
        if name in URL_ATTRIBUTES and not is_valid_protocol(value):
            dropped.append(DroppedItem("unsafe_url", f"{tag}.{name}={value}"))
            continue
        clean[name] = escape_html(value)
    return clean


def sanitize_attributes(
    tag: str,
    attributes: Mapping[str, str],
    allowed_attrs: Optional[Iterable[str]] = None,
) -> Dict[str, str]:
    """Return the allowed attributes of ``tag`` with validated, escaped values.

    ``allowed_attrs`` defaults to the per-tag whitelist in
    :data:`ALLOWED_ATTRIBUTES`.
    """

    if allowed_attrs is None:
        allowed_attrs = ALLOWED_ATTRIBUTES.get(tag.lower(), ())
    return _filter_attributes(tag.lower(), attributes.items(), allowed_attrs, [])


def _rebuild_tag(segment: Segment, dropped: List[DroppedItem], token_marker: Optional[str]) -> str:
    if segment.closing:
        return f"</{segment.name}>"
    attributes = _filter_attributes(
        segment.name,
        segment.attributes,
        ALLOWED_ATTRIBUTES.get(segment.name, ()),
        dropped,
        token_marker,
    )
    rendered = "".join(f' {name}="{value}"' for name, value in attributes.items())
    closer = " />" if segment.self_closing else ">"
    return f"<{segment.name}{rendered}{closer}"


def sanitize_html_detailed(
    html: str,
    allowed_tags: Iterable[str],
    *,
    token_marker: Optional[str] = None,
) -> SanitizedHtml:
    """Sanitize ``html`` and report every tag, attribute and URL that was removed.

    Attribute values containing ``token_marker`` are dropped.
    """

    if not html:
        return SanitizedHtml("")

    allowed = {tag.lower() for tag in allowed_tags}
    dropped: List[DroppedItem] = []
    parts: List[str] = []

    for segment in tokenize_html(html):
        if segment.kind == "text":
            parts.append(escape_html(segment.raw))
        elif segment.name in DANGEROUS_TAGS:
            dropped.append(DroppedItem("dangerous_tag", segment.raw))
        elif segment.name not in allowed:
            dropped.append(DroppedItem("disallowed_tag", segment.raw))
        else:
            parts.append(_rebuild_tag(segment, dropped, token_marker))

    return SanitizedHtml("".join(parts), tuple(dropped))


def sanitize_html(html: str, allowed_tags: Iterable[str]) -> str:
    """Keep only ``allowed_tags`` with filtered attributes; escape all text.

    Disallowed tags lose their markup but not their inner text.
    """

    return sanitize_html_detailed(html, allowed_tags).html


# ---------------------------------------------------------------------------
# Personalization and formatting tokens
# ---------------------------------------------------------------------------

_BRACE_TOKEN_RE = re.compile(r"\{\{([^}]+)\}\}")
_FORMATTING_OPEN_RE = re.compile(r"^(bold|style|link):(.+)$", re.DOTALL)
_FORMATTING_CLOSE_RE = re.compile(r"^/(bold|style|link)$")


@dataclass(frozen=True)
class _MaskedText:
    text: str
    placeholders: Tuple[Tuple[str, str], ...] = ()
    dropped: Tuple[DroppedItem, ...] = ()
    formatting_marker: str = ""


def _placeholder_prefix(text: str) -> str:
    # Leading digit: "<" + placeholder never tokenizes as a tag.
    prefix = "0mbtoken"
    while prefix in text:
        prefix += "x"
    return prefix


def _mask_tokens(text: str, keep_formatting: bool) -> _MaskedText:
    """Swap whitelisted ``{{...}}`` tokens for placeholders; drop the rest.

    Formatting placeholders start with ``formatting_marker`` so the sanitizer
    can refuse them inside attribute values.
    """

    prefix = _placeholder_prefix(text)
    placeholders: List[Tuple[str, str]] = []
    formatting_marker = prefix + "f"
    dropped: List[DroppedItem] = []

    def replace(match: re.Match) -> str:
        body = match.group(1)
        name = body.strip()
        if name in PERSONALIZATION_TOKENS:
            kept = match.group(0)
            marker = prefix
        elif keep_formatting and _FORMATTING_CLOSE_RE.match(name):
            kept = match.group(0)
            marker = formatting_marker
        elif keep_formatting and _FORMATTING_OPEN_RE.match(body):
            kind, modifiers = _FORMATTING_OPEN_RE.match(body).groups()
            kept = "{{" + kind + ":" + escape(modifiers, quote=True) + "}}"
            marker = formatting_marker
        else:
            dropped.append(DroppedItem("token", match.group(0)))
            return ""
        placeholder = f"{marker}{len(placeholders)}z"
        placeholders.append((placeholder, kept))
        return placeholder

    masked = _BRACE_TOKEN_RE.sub(replace, text)
    return _MaskedText(masked, tuple(placeholders), tuple(dropped), formatting_marker)


def _restore_tokens(text: str, placeholders: Iterable[Tuple[str, str]]) -> str:
    for placeholder, original in placeholders:
        text = text.replace(placeholder, original)
    return text


# ---------------------------------------------------------------------------
# Block-level API
# ---------------------------------------------------------------------------


def _sanitize_text(text: str, block_type: BlockType) -> SanitizedHtml:
    config = BLOCK_SANITIZATION_CONFIG[block_type]
    masked = _mask_tokens(text, config.keep_formatting_tokens)

    if config.allows_markup:
        result = sanitize_html_detailed(
            masked.text, config.allowed_tags, token_marker=masked.formatting_marker
        )
        sanitized, dropped = result.html, list(result.dropped)
    else:
        dropped = [
            DroppedItem("dangerous_tag" if seg.name in DANGEROUS_TAGS else "disallowed_tag", seg.raw)
            for seg in tokenize_html(masked.text)
            if seg.kind == "tag"
        ]
        plain = strip_all_html(masked.text)
        sanitized = escape_html(plain) if config.escape_unsafe_characters else plain

    return SanitizedHtml(
        _restore_tokens(sanitized, masked.placeholders),
        tuple(masked.dropped) + tuple(dropped),
    )


def sanitize_text_content(text: str, block_type: BlockType) -> str:
    """Sanitize the text of a block according to its type's policy.

    ``{{firstName}}``, ``{{lastName}}`` and ``{{email}}`` survive untouched;
    any other ``{{...}}`` is removed unless the block type keeps inline
    formatting markers.
    """

    if not text:
        return ""
    result = _sanitize_text(text, block_type)
    if result.dropped:
        logger.debug(
            "sanitizer_removed_content",
            block_type=block_type,
            removed=len(result.dropped),
        )
    return result.html


def sanitize_button_label(label: str) -> str:
    """Button labels are plain text: strip markup, trim, escape."""

    if not label:
        return ""
    return escape_html(strip_all_html(label).strip())


def sanitize_image_alt(alt: str) -> str:
    """Alt text is plain text: strip markup, trim, escape."""

    if not alt:
        return ""
    return escape_html(strip_all_html(alt).strip())


def sanitize_block(block: Block, strict_urls: bool = True) -> Block:
    """Return a sanitized copy of ``block``.

    Raises :class:`BlockSanitizationError` when a button ``href`` is not a
    valid http(s)/mailto URL or an image ``src`` is not a valid HTTPS URL.
    With ``strict_urls=False`` the URL is left for the validator to report.
    """

    if isinstance(block, (TitleBlock, ParagraphBlock, HighlightBoxBlock)):
        return block.model_copy(
            update={"content": sanitize_text_content(block.content, block.type)}
        )

    if isinstance(block, ButtonBlock):
        if strict_urls and not is_valid_url(block.href):
            raise BlockSanitizationError(block.id, "href", block.href, "Invalid URL in button")
        return block.model_copy(update={"label": sanitize_button_label(block.label)})

    if isinstance(block, ImageBlock):
        if strict_urls and not is_valid_url(block.src, require_https=True):
            raise BlockSanitizationError(block.id, "src", block.src, "Invalid HTTPS URL for image")
        return block.model_copy(update={"alt": sanitize_image_alt(block.alt)})

    if isinstance(block, DividerBlock):
        return block

    raise TypeError(f"Unsupported block: {type(block).__name__}")


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

_DROP_MESSAGES = {
    "dangerous_tag": "Removed dangerous tag: {}",
    "disallowed_tag": "Removed disallowed tag: {}",
    "attribute": "Removed attribute: {}",
    "unsafe_url": "Removed unsafe URL: {}",
    "token": "Removed unsupported token: {}",
}


@dataclass
class SanitizationResult:
    """Outcome of sanitizing one piece of text, for debugging and user feedback."""

    success: bool
    original: str
    sanitized: str
    removed_count: int
    warnings: List[str] = field(default_factory=list)


def get_sanitization_report(original: str, block_type: BlockType) -> SanitizationResult:
    if not original:
        return SanitizationResult(True, original or "", "", 0)

    result = _sanitize_text(original, block_type)
    warnings = [_DROP_MESSAGES[item.kind].format(item.detail) for item in result.dropped]
    return SanitizationResult(
        success=not warnings,
        original=original,
        sanitized=result.html,
        removed_count=len(warnings),
        warnings=warnings,
    )
