"""Configuration and brand defaults for the mailblocks composer."""

import os

from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_bool(name: str, default: bool) -> bool:
    return _env(name, "true" if default else "false").lower() in {"1", "true", "yes", "on"}


# Logging
LOG_LEVEL = _env("MAILBLOCKS_LOG_LEVEL", "INFO")
JSON_LOGS = _env_bool("MAILBLOCKS_JSON_LOGS", True)

# Optional override for the directory holding email.html.j2
TEMPLATES_DIR = os.getenv("MAILBLOCKS_TEMPLATES_DIR", "").strip()

# Header
HEADER_LOGO_URL = _env(
    "MAILBLOCKS_HEADER_LOGO_URL", "https://nobi.id/icons/logo-nobi-dana-kripto-black.png"
)
HEADER_LOGO_HEIGHT = int(_env("MAILBLOCKS_HEADER_LOGO_HEIGHT", "32"))

# Help section
HELP_TITLE = _env("MAILBLOCKS_HELP_TITLE", "Butuh Bantuan untuk Mulai?")
HELP_DESCRIPTION = _env(
    "MAILBLOCKS_HELP_DESCRIPTION",
    "Tim kami siap bantu kamu! Kalau ada pertanyaan atau kendala saat registrasi "
    "dan verifikasi, langsung aja hubungi kami via:",
)
HELP_IMAGE_URL = _env("MAILBLOCKS_HELP_IMAGE_URL", "https://nobi.id/images/hubungi-kami.png")
CONTACT_EMAIL = _env("MAILBLOCKS_CONTACT_EMAIL", "halo@nobi.id")
CONTACT_WHATSAPP_DISPLAY = _env("MAILBLOCKS_CONTACT_WHATSAPP_DISPLAY", "+62 811-8826-624")
CONTACT_WHATSAPP_NUMBER = _env("MAILBLOCKS_CONTACT_WHATSAPP_NUMBER", "628118826624")

# Compliance
COMPLIANCE_TEXT = _env(
    "MAILBLOCKS_COMPLIANCE_TEXT", "PT Dana Kripto Indonesia sebagai peserta sandbox OJK"
)
COMPLIANCE_SANDBOX_NUMBER = _env("MAILBLOCKS_COMPLIANCE_SANDBOX_NUMBER", "S-196/IK.01/2025")

# Footer
FOOTER_LOGO_URL = _env("MAILBLOCKS_FOOTER_LOGO_URL", "https://nobi.id/icons/logo-nobi-dana-kripto.png")
COMPANY_NAME = _env("MAILBLOCKS_COMPANY_NAME", "PT. Dana Kripto Indonesia")
COMPANY_ADDRESS = _env(
    "MAILBLOCKS_COMPANY_ADDRESS", "The Plaza Office Tower - 7th Floor, Jakarta, Indonesia"
)
INSTAGRAM_URL = _env("MAILBLOCKS_INSTAGRAM_URL", "https://www.instagram.com/nobidanakripto/")

# Static icon hosting used by the help and footer sections
SOCIAL_ICON_BASE_URL = _env(
    "MAILBLOCKS_SOCIAL_ICON_BASE_URL", "https://cdn.tools.unlayer.com/social/icons/circle-black"
).rstrip("/")
CONTACT_ICON_BASE_URL = _env("MAILBLOCKS_CONTACT_ICON_BASE_URL", "https://nobi.id/icons").rstrip("/")
