"""Block-based HTML email composer exposing helpers used by the HTTP entry point."""

from .composer import (
    create_email,
    default_compliance_section,
    default_footer,
    default_header,
    default_help_section,
    generate_report,
    sanitization_failures,
)
from .models import Block, EmailDocument, TemplateConfiguration, ValidationIssue
from .renderer import parse_inline_formatting, render_block, render_email
from .sanitization import (
    BlockSanitizationError,
    SanitizationError,
    escape_html,
    get_sanitization_report,
    sanitize_block,
    sanitize_html,
    sanitize_text_content,
    strip_all_html,
)
from .template_config import UnknownTemplateError, get_template_config
from .urls import is_valid_protocol, is_valid_url
from .validator import (
    get_validation_summary,
    is_email_document_valid,
    validate,
    validate_email_document,
)

__all__ = [
    "Block",
    "BlockSanitizationError",
    "EmailDocument",
    "SanitizationError",
    "TemplateConfiguration",
    "UnknownTemplateError",
    "ValidationIssue",
    "create_email",
    "default_compliance_section",
    "default_footer",
    "default_header",
    "default_help_section",
    "escape_html",
    "generate_report",
    "get_sanitization_report",
    "get_template_config",
    "get_validation_summary",
    "is_email_document_valid",
    "is_valid_protocol",
    "is_valid_url",
    "parse_inline_formatting",
    "render_block",
    "render_email",
    "sanitization_failures",
    "sanitize_block",
    "sanitize_html",
    "sanitize_text_content",
    "strip_all_html",
    "validate",
    "validate_email_document",
]
