"""Pydantic models for email documents, body blocks and template rules."""

from datetime import datetime, timezone
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TemplateType = Literal["open-fund", "close-fund", "newsletter"]

BlockType = Literal["title", "paragraph", "image", "button", "divider", "highlight-box"]

AllowedInlineTag = Literal["strong", "b", "em", "i", "u", "a", "br"]

TextAlign = Literal["left", "center", "right"]

Severity = Literal["error", "warning"]


class _Model(BaseModel):
    """Immutable base accepting both snake_case names and the editor's camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ---------------------------------------------------------------------------
# Body blocks
# ---------------------------------------------------------------------------


class TitleBlock(_Model):
    """Section heading."""

    type: Literal["title"] = "title"
    id: str
    content: str = Field(description="Plain text or sanitized inline HTML")
    level: Literal["h1", "h2", "h3"] = "h2"
    color: Optional[str] = None
    padding_bottom: Optional[int] = None


class ParagraphBlock(_Model):
    """Body text with optional inline formatting tokens."""

    type: Literal["paragraph"] = "paragraph"
    id: str
    content: str
    color: Optional[str] = None
    line_height: Optional[float] = None
    padding_bottom: Optional[int] = None
    text_align: Optional[TextAlign] = None


class ImageBlock(_Model):
    """Responsive image; ``alt`` is required for accessibility."""

    type: Literal["image"] = "image"
    id: str
    src: str = Field(description="Image URL, must be HTTPS")
    alt: str
    width: Optional[int] = None
    height: Optional[int] = None
    max_width: Optional[int] = None
    border_radius: Optional[int] = None
    padding_bottom: Optional[int] = None


class ButtonBlock(_Model):
    """Call-to-action link styled as a button."""

    type: Literal["button"] = "button"
    id: str
    label: str = Field(description="Plain text only")
    href: str
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    padding: Optional[str] = Field(default=None, description='CSS shorthand, e.g. "12px 24px"')
    border_radius: Optional[int] = None
    margin_top: Optional[int] = None
    padding_bottom: Optional[int] = None
    align: Optional[TextAlign] = None


class DividerBlock(_Model):
    """Horizontal separator."""

    type: Literal["divider"] = "divider"
    id: str
    color: Optional[str] = None
    height: Optional[int] = None
    margin: Optional[int] = None


class HighlightBoxBlock(_Model):
    """Callout box with a background color."""

    type: Literal["highlight-box"] = "highlight-box"
    id: str
    content: str
    background_color: str
    border_color: Optional[str] = None
    border_left: Optional[bool] = None
    padding: Optional[str] = None
    padding_bottom: Optional[int] = None
    border_radius: Optional[int] = None


Block = Annotated[
    Union[TitleBlock, ParagraphBlock, ImageBlock, ButtonBlock, DividerBlock, HighlightBoxBlock],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Fixed sections
# ---------------------------------------------------------------------------


class EmailHeader(_Model):
    logo_url: str = ""
    logo_height: Optional[int] = None
    show_dark_mode_variant: bool = False


class ContactItem(_Model):
    type: Literal["email", "phone", "whatsapp"]
    label: str
    value: str
    href: str


class HelpSection(_Model):
    title: str = ""
    description: str = ""
    contact_items: List[ContactItem] = Field(default_factory=list)
    image_url: Optional[str] = None


class ComplianceSection(_Model):
    text: str = ""
    sandbox_number: Optional[str] = None
    background_color: Optional[str] = None


class SocialLink(_Model):
    platform: Literal["instagram", "twitter", "linkedin", "facebook", "whatsapp", "email"]
    url: str


class EmailFooter(_Model):
    logo_url: str = ""
    company_name: str = ""
    address: str = ""
    social_links: List[SocialLink] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationIssue(_Model):
    """Single validator finding, e.g. ``MAX_BLOCKS_EXCEEDED``."""

    code: str
    message: str
    severity: Severity
    block_id: Optional[str] = None
    block_type: Optional[BlockType] = None


class BlockConstraint(_Model):
    min: int
    max: int
    required: bool


class TemplateConfiguration(_Model):
    """Rules the validator enforces for one template type."""

    template_type: TemplateType
    allowed_block_types: List[BlockType]
    block_constraints: Dict[BlockType, BlockConstraint]
    max_total_blocks: int
    allow_reordering: bool
    require_block_order: Optional[List[Union[BlockType, Literal["any"]]]] = None
    mandatory_blocks: List[BlockType]
    help_section_required: bool
    compliance_section_required: bool


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmailDocument(_Model):
    """Complete email: variable body blocks plus the fixed template sections."""

    id: str
    template_type: TemplateType
    version: int = 1
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    blocks: List[Block] = Field(default_factory=list)

    header: EmailHeader
    help_section: Optional[HelpSection] = None
    compliance_section: Optional[ComplianceSection] = None
    footer: EmailFooter

    personalization_variables: Optional[Dict[str, str]] = None

    is_valid: Optional[bool] = None
    validation_errors: List[ValidationIssue] = Field(default_factory=list)
