"""Per-template block rules enforced by the validator."""

from __future__ import annotations

from typing import Dict

from .models import BlockConstraint, TemplateConfiguration

ALL_BLOCK_TYPES = ["title", "paragraph", "image", "button", "divider", "highlight-box"]

# Highlight boxes are rendered without the inline token parser, so their
# stored content does not keep formatting markers either.
HIGHLIGHT_BOX_PARSES_TOKENS = False


class UnknownTemplateError(ValueError):
    """Raised when a template type has no registered configuration."""


def _constraint(minimum: int, maximum: int, required: bool) -> BlockConstraint:
    return BlockConstraint(min=minimum, max=maximum, required=required)


# Marketing email for a fund launch; needs a strong call to action.
OPEN_FUND_CONFIG = TemplateConfiguration(
    template_type="open-fund",
    allowed_block_types=ALL_BLOCK_TYPES,
    block_constraints={
        "title": _constraint(1, 2, True),
        "paragraph": _constraint(2, 5, True),
        "image": _constraint(0, 3, False),
        "button": _constraint(1, 2, True),
        "divider": _constraint(0, 2, False),
        "highlight-box": _constraint(0, 1, False),
    },
    max_total_blocks=15,
    allow_reordering=True,
    require_block_order=["title", "paragraph", "image", "paragraph", "button", "highlight-box"],
    mandatory_blocks=["title", "paragraph", "button"],
    help_section_required=True,
    compliance_section_required=True,
)

# Fund closure notice; more formal, no hard CTA.
CLOSE_FUND_CONFIG = TemplateConfiguration(
    template_type="close-fund",
    allowed_block_types=ALL_BLOCK_TYPES,
    block_constraints={
        "title": _constraint(0, 1, False),
        "paragraph": _constraint(2, 4, True),
        "image": _constraint(0, 2, False),
        "button": _constraint(0, 1, False),
        "divider": _constraint(0, 1, False),
        "highlight-box": _constraint(0, 1, False),
    },
    max_total_blocks=12,
    allow_reordering=True,
    require_block_order=["paragraph", "divider", "paragraph", "highlight-box"],
    mandatory_blocks=["paragraph"],
    help_section_required=True,
    compliance_section_required=True,
)

# Performance updates; longer form, always with at least one chart image.
NEWSLETTER_CONFIG = TemplateConfiguration(
    template_type="newsletter",
    allowed_block_types=ALL_BLOCK_TYPES,
    block_constraints={
        "title": _constraint(1, 2, True),
        "paragraph": _constraint(3, 8, True),
        "image": _constraint(1, 4, True),
        "button": _constraint(0, 2, False),
        "divider": _constraint(0, 3, False),
        "highlight-box": _constraint(0, 2, False),
    },
    max_total_blocks=20,
    allow_reordering=True,
    require_block_order=["title", "image", "paragraph", "divider", "paragraph", "button"],
    mandatory_blocks=["title", "paragraph", "image"],
    help_section_required=True,
    compliance_section_required=True,
)

TEMPLATE_CONFIG_REGISTRY: Dict[str, TemplateConfiguration] = {
    "open-fund": OPEN_FUND_CONFIG,
    "close-fund": CLOSE_FUND_CONFIG,
    "newsletter": NEWSLETTER_CONFIG,
}

BLOCK_CONSTRAINT_MESSAGES: Dict[str, str] = {
    "title": "Section heading (appears once or twice)",
    "paragraph": "Text content with optional inline formatting",
    "image": "Responsive image with alt text",
    "button": "Call-to-action button",
    "divider": "Visual separator line",
    "highlight-box": "Featured callout box",
}


def get_template_config(template_type: str) -> TemplateConfiguration:
    """Look up the rules for ``template_type``."""

    try:
        return TEMPLATE_CONFIG_REGISTRY[template_type]
    except KeyError:
        raise UnknownTemplateError(f"Unknown template type: {template_type}") from None
