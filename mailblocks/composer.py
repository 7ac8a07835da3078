"""High-level helpers: build a sanitized, validated document and report on it."""

from __future__ import annotations

import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import structlog
from pydantic import TypeAdapter

from . import settings
from .models import (
    Block,
    ComplianceSection,
    ContactItem,
    EmailDocument,
    EmailFooter,
    EmailHeader,
    HelpSection,
    SocialLink,
    ValidationIssue,
)
from .sanitization import BlockSanitizationError, sanitize_block
from .template_config import get_template_config
from .validator import get_validation_summary, validate

logger = structlog.get_logger(__name__)

_BLOCK_ADAPTER = TypeAdapter(Block)

WHATSAPP_GREETING = (
    "Halo%20tim%20NOBI%2C%20saya%20butuh%20bantuan%20mengenai...%20Mohon%20dibantu%20ya.%20Terima%20kasih."
)

REPORT_WIDTH = 56

BLOCK_SANITIZATION_FAILED = "BLOCK_SANITIZATION_FAILED"


def default_header() -> EmailHeader:
    return EmailHeader(logo_url=settings.HEADER_LOGO_URL, logo_height=settings.HEADER_LOGO_HEIGHT)


def default_help_section() -> HelpSection:
    return HelpSection(
        title=settings.HELP_TITLE,
        description=settings.HELP_DESCRIPTION,
        contact_items=[
            ContactItem(
                type="email",
                label="Email",
                value=settings.CONTACT_EMAIL,
                href=f"mailto:{settings.CONTACT_EMAIL}",
            ),
            ContactItem(
                type="whatsapp",
                label="WhatsApp",
                value=settings.CONTACT_WHATSAPP_DISPLAY,
                href=f"https://wa.me/{settings.CONTACT_WHATSAPP_NUMBER}",
            ),
        ],
        image_url=settings.HELP_IMAGE_URL,
    )


def default_compliance_section() -> ComplianceSection:
    return ComplianceSection(
        text=settings.COMPLIANCE_TEXT,
        sandbox_number=settings.COMPLIANCE_SANDBOX_NUMBER,
    )


def default_footer() -> EmailFooter:
    return EmailFooter(
        logo_url=settings.FOOTER_LOGO_URL,
        company_name=settings.COMPANY_NAME,
        address=settings.COMPANY_ADDRESS,
        social_links=[
            SocialLink(platform="email", url=f"mailto:{settings.CONTACT_EMAIL}"),
            SocialLink(platform="instagram", url=settings.INSTAGRAM_URL),
            SocialLink(
                platform="whatsapp",
                url=f"https://wa.me/{settings.CONTACT_WHATSAPP_NUMBER}?text={WHATSAPP_GREETING}",
            ),
        ],
    )


def _coerce_block(raw: Union[Dict[str, Any], Any]):
    if isinstance(raw, dict):
        return _BLOCK_ADAPTER.validate_python(raw)
    return raw


def _sanitize_blocks(blocks: Iterable[Any]) -> Tuple[List[Any], List[ValidationIssue]]:
    sanitized = []
    failures: List[ValidationIssue] = []
    for block in blocks:
        try:
            sanitized.append(sanitize_block(block))
        except BlockSanitizationError as exc:
            # Keep the block with clean text fields and record the failure.
            logger.warning(
                "block_sanitization_failed",
                block_id=exc.block_id,
                field=exc.field_name,
                error=str(exc),
            )
            failures.append(
                ValidationIssue(
                    code=BLOCK_SANITIZATION_FAILED,
                    message=str(exc),
                    severity="error",
                    block_id=exc.block_id,
                    block_type=block.type,
                )
            )
            sanitized.append(sanitize_block(block, strict_urls=False))
    return sanitized, failures


def sanitization_failures(document: EmailDocument) -> List[ValidationIssue]:
    """Issues recorded for blocks whose URL could not be made safe."""

    return [issue for issue in document.validation_errors if issue.code == BLOCK_SANITIZATION_FAILED]


def create_email(
    template_type: str,
    blocks: Iterable[Union[Dict[str, Any], Any]],
    personalization_variables: Optional[Dict[str, str]] = None,
) -> EmailDocument:
    """Build a complete :class:`EmailDocument` from raw blocks.

    ``blocks`` may be block models or dicts using either snake_case or the
    editor's camelCase keys. Every block is sanitized, the fixed sections
    are filled from configuration and the result is validated; errors are
    recorded on the document rather than raised. A button or image URL that
    fails sanitization is recorded as ``BLOCK_SANITIZATION_FAILED``.

    Raises:
        UnknownTemplateError: ``template_type`` has no configuration.
        pydantic.ValidationError: a block dict does not match any block type.
    """

    config = get_template_config(template_type)
    sanitized_blocks, failures = _sanitize_blocks(_coerce_block(raw) for raw in blocks)

    document = EmailDocument(
        id=str(uuid.uuid4()),
        template_type=config.template_type,
        blocks=sanitized_blocks,
        header=default_header(),
        help_section=default_help_section(),
        compliance_section=default_compliance_section(),
        footer=default_footer(),
        personalization_variables=personalization_variables,
    )

    errors = failures + validate(document, config, strict=False)
    logger.info(
        "email_created",
        email_id=document.id,
        template_type=template_type,
        block_count=len(sanitized_blocks),
        error_count=len(errors),
    )
    return document.model_copy(update={"is_valid": not errors, "validation_errors": errors})


def generate_report(document: EmailDocument) -> str:
    """Plain-text validation report, warnings included."""

    summary = get_validation_summary(document, strict=True)
    rule = "─" * REPORT_WIDTH
    lines = [
        "EMAIL VALIDATION REPORT",
        rule,
        f"Template Type:  {document.template_type}",
        f"Status:         {'VALID' if summary.is_valid else 'INVALID'}",
        f"Blocks:         {len(document.blocks)}",
        f"Errors:         {summary.error_count}",
        f"Warnings:       {summary.warning_count}",
        "",
    ]

    if summary.errors:
        lines += [f"ERRORS ({summary.error_count}):", rule]
        for issue in summary.errors:
            lines += [f"  [{issue.code}]", f"  {issue.message}"]
            if issue.block_id:
                lines.append(f"  Block: {issue.block_id}")
            lines.append("")

    if summary.warnings:
        lines += [f"WARNINGS ({summary.warning_count}):", rule]
        for issue in summary.warnings:
            lines += [f"  [{issue.code}]", f"  {issue.message}", ""]

    if summary.is_valid:
        lines.append("All validation checks passed!")

    return "\n".join(lines) + "\n"
