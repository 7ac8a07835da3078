"""Shared fixtures for mailblocks tests."""

import pytest

from mailblocks.composer import (
    default_compliance_section,
    default_footer,
    default_header,
    default_help_section,
)
from mailblocks.models import EmailDocument


@pytest.fixture
def open_fund_blocks():
    """Raw editor payload that satisfies every open-fund constraint."""
    return [
        {"type": "title", "id": "title-1", "content": "Kenalan dengan {{bold:#008867}}NOBI{{/bold}}"},
        {"type": "paragraph", "id": "para-1", "content": "Halo {{firstName}}, produk baru sudah hadir."},
        {
            "type": "paragraph",
            "id": "para-2",
            "content": "Baca {{link:https://nobi.id/blog|bold}}selengkapnya{{/link}}.",
            "textAlign": "center",
        },
        {"type": "button", "id": "button-1", "label": "Mulai Investasi", "href": "https://nobi.id/app"},
    ]


@pytest.fixture
def make_document():
    """Factory for documents carrying the configured fixed sections."""

    def _make(blocks=(), template_type="open-fund", **overrides):
        fields = {
            "id": "email-1",
            "template_type": template_type,
            "blocks": list(blocks),
            "header": default_header(),
            "help_section": default_help_section(),
            "compliance_section": default_compliance_section(),
            "footer": default_footer(),
        }
        fields.update(overrides)
        return EmailDocument(**fields)

    return _make
