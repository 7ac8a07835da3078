"""Tests for document composition and the validation report."""

import pytest
from pydantic import ValidationError

from mailblocks import settings
from mailblocks.composer import (
    create_email,
    default_compliance_section,
    default_footer,
    default_header,
    default_help_section,
    generate_report,
    sanitization_failures,
)
from mailblocks.models import ButtonBlock, ParagraphBlock, TitleBlock
from mailblocks.template_config import UnknownTemplateError


class TestDefaultSections:
    """Fixed sections filled from settings."""

    def test_header(self):
        header = default_header()
        assert header.logo_url == settings.HEADER_LOGO_URL
        assert header.logo_height == settings.HEADER_LOGO_HEIGHT

    def test_help_section(self):
        help_section = default_help_section()
        assert [item.type for item in help_section.contact_items] == ["email", "whatsapp"]
        assert help_section.contact_items[0].href == f"mailto:{settings.CONTACT_EMAIL}"
        assert help_section.contact_items[1].href.startswith("https://wa.me/")

    def test_compliance_and_footer(self):
        assert default_compliance_section().sandbox_number == settings.COMPLIANCE_SANDBOX_NUMBER
        footer = default_footer()
        assert footer.company_name == settings.COMPANY_NAME
        assert [link.platform for link in footer.social_links] == ["email", "instagram", "whatsapp"]


class TestCreateEmail:
    """End-to-end composition without rendering."""

    def test_valid_payload(self, open_fund_blocks):
        document = create_email("open-fund", open_fund_blocks, {"firstName": "Budi"})
        assert document.is_valid
        assert document.validation_errors == []
        assert document.template_type == "open-fund"
        assert document.personalization_variables == {"firstName": "Budi"}
        assert len(document.blocks) == 4
        assert document.blocks[2].text_align == "center"
        assert document.help_section is not None
        assert document.compliance_section is not None

    def test_blocks_are_sanitized(self):
        blocks = [
            TitleBlock(id="t", content="<script>x</script>Hi {{bogus}}"),
            ParagraphBlock(id="p1", content="<b onclick='y'>A</b> {{bold:#008867}}B{{/bold}}"),
            ParagraphBlock(id="p2", content="C"),
            ButtonBlock(id="b", label="<i>Go</i>", href="https://nobi.id"),
        ]
        document = create_email("open-fund", blocks)
        assert document.blocks[0].content == "xHi "
        assert document.blocks[1].content == "<b>A</b> {{bold:#008867}}B{{/bold}}"
        assert document.blocks[3].label == "Go"

    def test_ids_are_unique_per_call(self, open_fund_blocks):
        assert create_email("open-fund", open_fund_blocks).id != create_email("open-fund", open_fund_blocks).id

    def test_bad_button_url_is_kept_and_reported(self, open_fund_blocks):
        open_fund_blocks[3] = {
            "type": "button",
            "id": "button-1",
            "label": "<b>Klik</b>",
            "href": "javascript:alert(1)",
        }
        document = create_email("open-fund", open_fund_blocks)
        assert not document.is_valid
        assert document.blocks[3].href == "javascript:alert(1)"
        assert document.blocks[3].label == "Klik"
        assert [issue.code for issue in document.validation_errors] == [
            "BLOCK_SANITIZATION_FAILED",
            "INVALID_BUTTON_PROTOCOL",
        ]
        (failure,) = sanitization_failures(document)
        assert failure.block_id == "button-1"
        assert failure.block_type == "button"

    def test_constraint_violations_are_recorded(self):
        document = create_email("newsletter", [{"type": "paragraph", "id": "p", "content": "x"}])
        codes = {issue.code for issue in document.validation_errors}
        assert not document.is_valid
        assert {"MIN_BLOCKS_NOT_MET", "MANDATORY_BLOCK_MISSING"} <= codes

    def test_unknown_template(self):
        with pytest.raises(UnknownTemplateError):
            create_email("promo", [])

    def test_malformed_block(self):
        with pytest.raises(ValidationError):
            create_email("open-fund", [{"type": "carousel", "id": "c"}])


class TestGenerateReport:
    """Plain-text report."""

    def test_valid_report(self, open_fund_blocks):
        report = generate_report(create_email("open-fund", open_fund_blocks))
        assert "Template Type:  open-fund" in report
        assert "Status:         VALID" in report
        assert "Blocks:         4" in report
        assert "All validation checks passed!" in report

    def test_invalid_report_lists_errors(self):
        report = generate_report(create_email("close-fund", []))
        assert "Status:         INVALID" in report
        assert "ERRORS (" in report
        assert "[MANDATORY_BLOCK_MISSING]" in report
        assert "All validation checks passed!" not in report
