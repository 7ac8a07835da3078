"""Rule-based validation of email documents against their template configuration."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple

from .models import (
    ButtonBlock,
    EmailDocument,
    HighlightBoxBlock,
    ImageBlock,
    ParagraphBlock,
    TemplateConfiguration,
    TitleBlock,
    ValidationIssue,
)
from .template_config import get_template_config

HEX_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")

# Color-valued fields per block type, checked by the color format rule.
COLOR_FIELDS: Dict[str, Tuple[str, ...]] = {
    "title": ("color",),
    "paragraph": ("color",),
    "image": (),
    "button": ("background_color", "text_color"),
    "divider": ("color",),
    "highlight-box": ("background_color", "border_color"),
}

_COLOR_LABELS = {
    "color": "color",
    "background_color": "background color",
    "text_color": "text color",
    "border_color": "border color",
}


@dataclass(frozen=True)
class ValidationContext:
    template_config: TemplateConfiguration
    email: EmailDocument
    strict: bool = False


@dataclass(frozen=True)
class ValidationRule:
    name: str
    description: str
    validate: Callable[[ValidationContext], List[ValidationIssue]]


def _issue(code: str, message: str, severity: str = "error", block=None, block_type=None) -> ValidationIssue:
    return ValidationIssue(
        code=code,
        message=message,
        severity=severity,
        block_id=block.id if block is not None else None,
        block_type=block.type if block is not None else block_type,
    )


def _is_blank(value: str | None) -> bool:
    return not value or not value.strip()


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _check_block_type_allowed(context: ValidationContext) -> List[ValidationIssue]:
    config = context.template_config
    return [
        _issue(
            "BLOCK_TYPE_NOT_ALLOWED",
            f'Block type "{block.type}" is not allowed in {config.template_type} template',
            block=block,
        )
        for block in context.email.blocks
        if block.type not in config.allowed_block_types
    ]


def _check_block_counts(context: ValidationContext) -> List[ValidationIssue]:
    counts = Counter(block.type for block in context.email.blocks)
    issues: List[ValidationIssue] = []

    for block_type, constraint in context.template_config.block_constraints.items():
        count = counts.get(block_type, 0)
        if count < constraint.min:
            issues.append(
                _issue(
                    "MIN_BLOCKS_NOT_MET",
                    f"Minimum {constraint.min} {block_type} block(s) required. Found: {count}",
                    "error" if constraint.required else "warning",
                    block_type=block_type,
                )
            )
        if count > constraint.max:
            issues.append(
                _issue(
                    "MAX_BLOCKS_EXCEEDED",
                    f"Maximum {constraint.max} {block_type} block(s) allowed. Found: {count}",
                    block_type=block_type,
                )
            )
    return issues


def _check_total_blocks(context: ValidationContext) -> List[ValidationIssue]:
    limit = context.template_config.max_total_blocks
    total = len(context.email.blocks)
    if total > limit:
        return [
            _issue(
                "MAX_TOTAL_BLOCKS_EXCEEDED",
                f"Maximum {limit} total blocks allowed. Found: {total}",
            )
        ]
    return []


def _check_mandatory_blocks(context: ValidationContext) -> List[ValidationIssue]:
    present = {block.type for block in context.email.blocks}
    return [
        _issue(
            "MANDATORY_BLOCK_MISSING",
            f'Mandatory block type "{block_type}" is missing',
            block_type=block_type,
        )
        for block_type in context.template_config.mandatory_blocks
        if block_type not in present
    ]


def _check_block_order(context: ValidationContext) -> List[ValidationIssue]:
    config = context.template_config
    if config.allow_reordering or not config.require_block_order:
        return []

    order = config.require_block_order
    issues: List[ValidationIssue] = []
    last_index = -1
    for block in context.email.blocks:
        index = next(
            (i for i, expected in enumerate(order) if expected in ("any", block.type)),
            -1,
        )
        if index < last_index:
            issues.append(
                _issue(
                    "BLOCK_ORDER_VIOLATION",
                    f'Block "{block.type}" appears out of order. Expected order: {" → ".join(order)}',
                    "error" if context.strict else "warning",
                    block=block,
                )
            )
        if index >= 0:
            last_index = index
    return issues


def _check_fixed_sections(context: ValidationContext) -> List[ValidationIssue]:
    config = context.template_config
    issues: List[ValidationIssue] = []
    if config.help_section_required and context.email.help_section is None:
        issues.append(_issue("HELP_SECTION_MISSING", "Help section is required for this template"))
    if config.compliance_section_required and context.email.compliance_section is None:
        issues.append(
            _issue("COMPLIANCE_SECTION_MISSING", "Compliance section is required for this template")
        )
    return issues


def _check_unique_ids(context: ValidationContext) -> List[ValidationIssue]:
    seen = set()
    issues: List[ValidationIssue] = []
    for block in context.email.blocks:
        if block.id in seen:
            issues.append(_issue("DUPLICATE_BLOCK_ID", f"Duplicate block ID: {block.id}", block=block))
        seen.add(block.id)
    return issues


def _check_block_content(context: ValidationContext) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []

    for block in context.email.blocks:
        if isinstance(block, TitleBlock) and _is_blank(block.content):
            issues.append(_issue("EMPTY_TITLE", "Title block cannot be empty", block=block))

        elif isinstance(block, ParagraphBlock) and _is_blank(block.content):
            issues.append(_issue("EMPTY_PARAGRAPH", "Paragraph block cannot be empty", block=block))

        elif isinstance(block, ImageBlock):
            if _is_blank(block.src):
                issues.append(
                    _issue("MISSING_IMAGE_SRC", "Image block must have a source URL", block=block)
                )
            elif not block.src.startswith("https://"):
                issues.append(
                    _issue("INVALID_IMAGE_PROTOCOL", "Image URL must use HTTPS protocol", block=block)
                )
            if _is_blank(block.alt):
                issues.append(
                    _issue(
                        "MISSING_IMAGE_ALT",
                        "Image block must have alt text for accessibility",
                        block=block,
                    )
                )

        elif isinstance(block, ButtonBlock):
            if _is_blank(block.label):
                issues.append(_issue("EMPTY_BUTTON_LABEL", "Button block must have a label", block=block))
            if _is_blank(block.href):
                issues.append(_issue("MISSING_BUTTON_HREF", "Button block must have a URL", block=block))
            elif not block.href.startswith(("https://", "http://")):
                issues.append(
                    _issue(
                        "INVALID_BUTTON_PROTOCOL",
                        "Button URL must use HTTP or HTTPS protocol",
                        block=block,
                    )
                )

        elif isinstance(block, HighlightBoxBlock):
            if _is_blank(block.content):
                issues.append(_issue("EMPTY_HIGHLIGHT_BOX", "Highlight box cannot be empty", block=block))
            if not block.background_color:
                issues.append(
                    _issue(
                        "MISSING_HIGHLIGHT_COLOR",
                        "Highlight box must have a background color",
                        "warning",
                        block=block,
                    )
                )

    return issues


def _check_color_format(context: ValidationContext) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for block in context.email.blocks:
        for field_name in COLOR_FIELDS[block.type]:
            value = getattr(block, field_name)
            if value and not HEX_COLOR_RE.match(value):
                issues.append(
                    _issue(
                        "INVALID_COLOR_FORMAT",
                        f"Invalid {_COLOR_LABELS[field_name]} format: {value}. "
                        "Use hex format like #FF5733",
                        block=block,
                    )
                )
    return issues


block_type_allowed_rule = ValidationRule(
    "BLOCK_TYPE_ALLOWED", "Block type is allowed for this template", _check_block_type_allowed
)
block_count_constraint_rule = ValidationRule(
    "BLOCK_COUNT_CONSTRAINT", "Block count respects per-type min/max constraints", _check_block_counts
)
total_block_count_rule = ValidationRule(
    "TOTAL_BLOCK_COUNT", "Total block count does not exceed template maximum", _check_total_blocks
)
mandatory_blocks_rule = ValidationRule(
    "MANDATORY_BLOCKS", "All mandatory block types are present", _check_mandatory_blocks
)
block_id_uniqueness_rule = ValidationRule(
    "BLOCK_ID_UNIQUENESS", "All block IDs are unique", _check_unique_ids
)
block_content_validation_rule = ValidationRule(
    "BLOCK_CONTENT", "Block content is valid per block type", _check_block_content
)
color_format_rule = ValidationRule(
    "COLOR_FORMAT", "All color values are valid hex colors", _check_color_format
)
block_order_rule = ValidationRule(
    "BLOCK_ORDER", "Blocks are in the recommended order", _check_block_order
)
fixed_sections_rule = ValidationRule(
    "FIXED_SECTIONS", "Required fixed sections are present", _check_fixed_sections
)

# Order check runs late since the other findings matter more.
VALIDATION_RULES: List[ValidationRule] = [
    block_type_allowed_rule,
    block_count_constraint_rule,
    total_block_count_rule,
    mandatory_blocks_rule,
    block_id_uniqueness_rule,
    block_content_validation_rule,
    color_format_rule,
    block_order_rule,
    fixed_sections_rule,
]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def validate(
    document: EmailDocument,
    template_config: TemplateConfiguration,
    strict: bool = False,
) -> List[ValidationIssue]:
    """Run every rule; outside strict mode only errors are returned."""

    context = ValidationContext(template_config=template_config, email=document, strict=strict)
    issues = [issue for rule in VALIDATION_RULES for issue in rule.validate(context)]
    if not strict:
        return [issue for issue in issues if issue.severity == "error"]
    return issues


def validate_email_document(document: EmailDocument, strict: bool = False) -> List[ValidationIssue]:
    """Validate ``document`` against the registered config for its template type."""

    return validate(document, get_template_config(document.template_type), strict)


def is_email_document_valid(document: EmailDocument, strict: bool = False) -> bool:
    return not validate_email_document(document, strict)


@dataclass
class ValidationSummary:
    is_valid: bool
    error_count: int
    warning_count: int
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)


def get_validation_summary(document: EmailDocument, strict: bool = False) -> ValidationSummary:
    """Split findings into errors and warnings.

    Warnings are always listed; they only count toward ``warning_count`` in
    strict mode.
    """

    issues = validate_email_document(document, strict=True)
    errors = [issue for issue in issues if issue.severity == "error"]
    warnings = [issue for issue in issues if issue.severity == "warning"]
    return ValidationSummary(
        is_valid=not errors,
        error_count=len(errors),
        warning_count=len(warnings) if strict else 0,
        errors=errors,
        warnings=warnings,
    )
