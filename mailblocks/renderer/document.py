"""Assembly of a complete HTML email from an :class:`EmailDocument`."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

import structlog
from jinja2 import Environment, FileSystemLoader, TemplateNotFound
from premailer import transform

from .. import settings
from ..models import ComplianceSection, EmailDocument
from .blocks import HEX_COLOR_RE, render_block

logger = structlog.get_logger(__name__)

EMAIL_TEMPLATE_NAME = "email.html.j2"
PACKAGE_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

DEFAULT_COMPLIANCE_BACKGROUND = "#e4f4f0"
DEFAULT_HELP_TITLE = "Butuh Bantuan untuk Mulai?"
SOCIAL_ICON_SLOT_PX = 37

CONTACT_ICONS = {
    "email": "icon-mail.png",
    "phone": "icon-phone.png",
    "whatsapp": "icon-phone.png",
}

SOCIAL_PLATFORMS = ("instagram", "twitter", "linkedin", "facebook", "email", "whatsapp")


def contact_icon_url(contact_type: str) -> str:
    icon = CONTACT_ICONS.get(contact_type)
    return f"{settings.CONTACT_ICON_BASE_URL}/{icon}" if icon else ""


def social_icon_url(platform: str) -> str:
    if platform not in SOCIAL_PLATFORMS:
        return ""
    return f"{settings.SOCIAL_ICON_BASE_URL}/{platform}.png"


def _template_directories() -> List[str]:
    directories = []
    if settings.TEMPLATES_DIR:
        override = Path(settings.TEMPLATES_DIR).expanduser()
        if override.is_dir():
            directories.append(str(override))
        else:
            logger.warning("template_dir_override_missing", path=str(override))
    directories.append(str(PACKAGE_TEMPLATES_DIR))
    return directories


@lru_cache(maxsize=1)
def get_template_environment() -> Environment:
    """Create (or retrieve cached) Jinja2 environment.

    Autoescape stays off: block HTML is rendered and sanitized before it
    reaches the template, and URL attributes are escaped explicitly with
    ``|e``.
    """

    try:
        loader = FileSystemLoader(_template_directories())
        env = Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)
        env.globals.update(contact_icon=contact_icon_url, social_icon=social_icon_url)
        return env
    except Exception as exc:  # noqa: BLE001
        logger.error("template_env_init_failed", error=str(exc))
        raise


def _compliance_background(compliance: ComplianceSection) -> str:
    color = compliance.background_color
    return color if color and HEX_COLOR_RE.match(color) else DEFAULT_COMPLIANCE_BACKGROUND


def _inline_css(html: str) -> str:
    try:
        return transform(
            html,
            base_url="",
            disable_validation=True,
            keep_style_tags=False,
            remove_classes=True,
            strip_important=False,
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("inline_css_failed", error=str(exc))
        return html


def render_email(document: EmailDocument, *, inline_css: bool = False) -> str:
    """Render ``document`` into one complete HTML string.

    Body blocks are joined with newlines between the fixed header and the
    help, compliance and footer sections. An empty body still produces the
    full skeleton. With ``inline_css`` the ``<style>`` rules are moved into
    ``style`` attributes by premailer.
    """

    environment = get_template_environment()
    try:
        template = environment.get_template(EMAIL_TEMPLATE_NAME)
    except TemplateNotFound:
        logger.error("template_not_found", requested=EMAIL_TEMPLATE_NAME, search_paths=_template_directories())
        raise

    logger.info(
        "rendering_email",
        email_id=document.id,
        template_type=document.template_type,
        block_count=len(document.blocks),
    )

    body_html = "\n".join(render_block(block) for block in document.blocks)

    header = document.header
    footer = document.footer
    compliance = document.compliance_section or ComplianceSection(
        text=settings.COMPLIANCE_TEXT,
        sandbox_number=settings.COMPLIANCE_SANDBOX_NUMBER,
    )
    social_count = len(footer.social_links)

    html = template.render(
        document=document,
        header=header,
        header_logo_height=header.logo_height if header.logo_height is not None else settings.HEADER_LOGO_HEIGHT,
        header_fallback_text=footer.company_name or settings.COMPANY_NAME,
        body_html=body_html,
        help_section=document.help_section,
        default_help_title=DEFAULT_HELP_TITLE,
        compliance=compliance,
        compliance_background=_compliance_background(compliance),
        footer=footer,
        footer_company_name=footer.company_name or settings.COMPANY_NAME,
        social_max_width=f"{social_count * SOCIAL_ICON_SLOT_PX}px" if social_count else "0",
    ).strip()

    if inline_css:
        return _inline_css(html)
    return html
