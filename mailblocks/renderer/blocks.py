"""Table-based HTML renderers, one per block type.

Each renderer is a pure function of its block: optional fields fall back to
the per-type values in :data:`BLOCK_DEFAULTS`, invalid colors and padding
strings fall back the same way, and nothing is validated or rejected here.
Every fragment is a ``<table>`` so legacy email clients lay it out
consistently.
"""

from __future__ import annotations

import re
from html import escape
from typing import Any, Dict, Union

from ..models import (
    Block,
    ButtonBlock,
    DividerBlock,
    HighlightBoxBlock,
    ImageBlock,
    ParagraphBlock,
    TitleBlock,
)
from ..template_config import HIGHLIGHT_BOX_PARSES_TOKENS
from .inline_formatting import parse_inline_formatting

BLOCK_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "title": {"level": "h2", "color": "#1a1a1a", "padding_bottom": 20},
    "paragraph": {
        "color": "#334155",
        "line_height": 1.6,
        "padding_bottom": 16,
        "text_align": "left",
    },
    "image": {"max_width": 600, "border_radius": 0, "padding_bottom": 16},
    "button": {
        "background_color": "#006950",
        "text_color": "#ffffff",
        "padding": "10px 16px",
        "border_radius": 6,
        "margin_top": 12,
        "padding_bottom": 0,
        "align": "left",
    },
    "divider": {"color": "#e6e9ee", "height": 1, "margin": 16},
    "highlight-box": {
        "padding": "20px",
        "border_radius": 8,
        "padding_bottom": 20,
        "border_color": "transparent",
    },
}

TITLE_FONT_SIZES = {"h1": "28px", "h2": "24px", "h3": "20px"}

HEX_COLOR_RE = re.compile(r"^#([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")
_PADDING_RE = re.compile(r"^\d+(\.\d+)?(px|em|%)?( \d+(\.\d+)?(px|em|%)?){0,3}$")

TABLE_OPEN = '<table width="100%" cellpadding="0" cellspacing="0" border="0">'


def _value(block: Block, field_name: str) -> Any:
    value = getattr(block, field_name)
    return BLOCK_DEFAULTS[block.type][field_name] if value is None else value


def _color(block: Block, field_name: str) -> str:
    value = getattr(block, field_name)
    if value and (HEX_COLOR_RE.match(value) or value == "transparent"):
        return value
    return BLOCK_DEFAULTS[block.type][field_name]


def _padding(block: Union[ButtonBlock, HighlightBoxBlock]) -> str:
    value = block.padding
    if value and _PADDING_RE.match(value.strip()):
        return value.strip()
    return BLOCK_DEFAULTS[block.type]["padding"]


def _number(value: Union[int, float]) -> str:
    return f"{value:g}" if isinstance(value, float) else str(value)


def _styles(*declarations: str) -> str:
    return ";".join(declaration for declaration in declarations if declaration)


def _wrap(cell_styles: str, inner: str, table_open: str = TABLE_OPEN) -> str:
    return f'{table_open}<tr><td style="{cell_styles}">{inner}</td></tr></table>'


def render_title_block(block: TitleBlock) -> str:
    level = _value(block, "level")
    styles = _styles(
        f"font-size: {TITLE_FONT_SIZES.get(level, '24px')}",
        "font-weight: 700",
        f"color: {_color(block, 'color')}",
        f"padding-bottom: {_value(block, 'padding_bottom')}px",
        "margin-top: 0",
        "line-height: 1.3",
    )
    return _wrap(styles, parse_inline_formatting(block.content))


def render_paragraph_block(block: ParagraphBlock) -> str:
    styles = _styles(
        f"color: {_color(block, 'color')}",
        f"line-height: {_number(_value(block, 'line_height'))}",
        f"padding-bottom: {_value(block, 'padding_bottom')}px",
        "margin-top: 0",
        f"text-align: {_value(block, 'text_align')}",
    )
    return _wrap(styles, parse_inline_formatting(block.content))


def render_image_block(block: ImageBlock) -> str:
    border_radius = _value(block, "border_radius")
    img_styles = _styles(
        f"max-width: {_value(block, 'max_width')}px",
        "width: 100%",
        "height: auto",
        "display: block",
        f"border-radius: {border_radius}px" if border_radius > 0 else "",
    )

    attributes = f'src="{escape(block.src, quote=True)}" alt="{block.alt}"'
    if block.width is not None:
        attributes += f' width="{block.width}"'
    if block.height is not None:
        attributes += f' height="{block.height}"'
    img = f'<img {attributes} style="{img_styles}" />'

    cell_styles = _styles(
        f"padding-bottom: {_value(block, 'padding_bottom')}px",
        "margin-top: 0",
        "text-align: center",
    )
    return _wrap(cell_styles, img)


def render_button_block(block: ButtonBlock) -> str:
    """Button label is plain text and never goes through the token parser."""

    link_styles = _styles(
        f"background-color: {_color(block, 'background_color')}",
        f"color: {_color(block, 'text_color')}",
        f"padding: {_padding(block)}",
        "text-decoration: none",
        f"border-radius: {_value(block, 'border_radius')}px",
        "display: inline-block",
        "font-weight: bold",
        "border: none",
        "cursor: pointer",
    )
    cell_styles = _styles(
        f"margin-top: {_value(block, 'margin_top')}px",
        f"padding-bottom: {_value(block, 'padding_bottom')}px",
        f"text-align: {_value(block, 'align')}",
    )
    link = f'<a href="{escape(block.href, quote=True)}" style="{link_styles}">{block.label}</a>'
    return _wrap(cell_styles, link)


def render_divider_block(block: DividerBlock) -> str:
    # <hr> renders inconsistently in email clients; a bordered cell does not.
    color = _color(block, "color")
    height = _value(block, "height")
    margin = _value(block, "margin")
    return (
        f"{TABLE_OPEN}"
        f'<tr><td style="border-bottom: {height}px solid {color}; height: 0;"></td></tr>'
        f'<tr><td style="height: {margin}px;"></td></tr>'
        "</table>"
    )


def render_highlight_block(block: HighlightBoxBlock) -> str:
    background = block.background_color if HEX_COLOR_RE.match(block.background_color or "") else "transparent"
    border_color = _color(block, "border_color")

    container_styles = _styles(
        f"background-color: {background}",
        f"border-radius: {_value(block, 'border_radius')}px",
        f"padding-bottom: {_value(block, 'padding_bottom')}px",
        "margin-top: 0",
    )
    if border_color != "transparent":
        container_styles += f";border: 1px solid {border_color}"
    if block.border_left and border_color != "transparent":
        container_styles += f";border-left: 4px solid {border_color}"

    content = parse_inline_formatting(block.content) if HIGHLIGHT_BOX_PARSES_TOKENS else block.content
    cell_styles = _styles(f"padding: {_padding(block)}", "word-wrap: break-word")
    table_open = (
        '<table width="100%" cellpadding="0" cellspacing="0" border="0" '
        f'style="{container_styles}">'
    )
    return _wrap(cell_styles, content, table_open)


_RENDERERS = {
    TitleBlock: render_title_block,
    ParagraphBlock: render_paragraph_block,
    ImageBlock: render_image_block,
    ButtonBlock: render_button_block,
    DividerBlock: render_divider_block,
    HighlightBoxBlock: render_highlight_block,
}


def render_block(block) -> str:
    """Dispatch ``block`` to the renderer for its type."""

    renderer = _RENDERERS.get(type(block))
    if renderer is None:
        raise TypeError(f"Unknown block type: {getattr(block, 'type', type(block).__name__)}")
    return renderer(block)
