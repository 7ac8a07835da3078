"""Tests for the bold/style/link token parser."""

import pytest

from mailblocks.renderer.inline_formatting import (
    expand_inline_tokens,
    is_safe_link_url,
    parse_inline_formatting,
    parse_link_modifiers,
    parse_style_modifiers,
)


def _link(href, text, color="#008867", weight=600):
    return (
        f'<a href="{href}" style="color:{color};text-decoration:none;font-weight:{weight};" '
        f'target="_blank" rel="noopener noreferrer">{text}</a>'
    )


def _bold(color, text):
    return f'<span style="color:{color};font-weight:700;">{text}</span>'


# (input, expected) pairs for the documented token grammar
FORMATTING_CASES = [
    (
        "NOBI Dana Kripto: Solusi Investasi Kripto yang {{bold:#008867}}#SemudahItu{{/bold}}",
        "NOBI Dana Kripto: Solusi Investasi Kripto yang " + _bold("#008867", "#SemudahItu"),
    ),
    (
        "Start {{bold:#FF0000}}red text{{/bold}} middle {{bold:#0000FF}}blue text{{/bold}} end",
        f"Start {_bold('#FF0000', 'red text')} middle {_bold('#0000FF', 'blue text')} end",
    ),
    ("No formatting here", "No formatting here"),
    (
        "Invalid {{bold:NOTACOLOR}}text{{/bold}} should stay as is",
        "Invalid {{bold:NOTACOLOR}}text{{/bold}} should stay as is",
    ),
    (
        "Valid 3-char hex {{bold:#F0F}}text{{/bold}} works",
        f"Valid 3-char hex {_bold('#F0F', 'text')} works",
    ),
    (
        "Visit {{link:https://example.com}}our website{{/link}} for more",
        f"Visit {_link('https://example.com', 'our website')} for more",
    ),
    (
        "Email us {{link:mailto:hello@example.com}}here{{/link}} anytime",
        f"Email us {_link('mailto:hello@example.com', 'here')} anytime",
    ),
    (
        "Chat {{link:https://wa.me/1234567890}}on WhatsApp{{/link}} now",
        f"Chat {_link('https://wa.me/1234567890', 'on WhatsApp')} now",
    ),
    ("Invalid {{link:javascript:alert(1)}}attack{{/link}} blocked", "Invalid attack blocked"),
    ("Invalid {{link:data:text/html}}data{{/link}} blocked", "Invalid data blocked"),
    (
        "Both {{bold:#008867}}bold{{/bold}} and {{link:https://example.com}}link{{/link}} work",
        f"Both {_bold('#008867', 'bold')} and {_link('https://example.com', 'link')} work",
    ),
    (
        "Combined {{link:https://example.com|bold|color:#FF0000}}bold red link{{/link}} test",
        f"Combined {_link('https://example.com', 'bold red link', '#FF0000', 700)} test",
    ),
    (
        "Just {{link:https://example.com|color:#0000FF}}colored link{{/link}} no bold",
        f"Just {_link('https://example.com', 'colored link', '#0000FF')} no bold",
    ),
    (
        "Invalid {{link:https://example.com|invalid}}modifier{{/link}} ignored",
        f"Invalid {_link('https://example.com', 'modifier')} ignored",
    ),
    (
        "Text with {{style:bold}}strong emphasis{{/style}} word",
        'Text with <span style="font-weight:700;">strong emphasis</span> word',
    ),
    (
        "Text with {{style:color:#FF0000}}red text{{/style}} here",
        'Text with <span style="color:#FF0000;">red text</span> here',
    ),
    (
        "Text with {{style:semibold|color:#008867}}styled{{/style}} word",
        'Text with <span style="color:#008867;font-weight:600;">styled</span> word',
    ),
    ("Invalid {{style:invalid}}token{{/style}} ignored", "Invalid token ignored"),
]


class TestParseInlineFormatting:
    """Expansion of the three token kinds."""

    @pytest.mark.parametrize("source, expected", FORMATTING_CASES)
    def test_documented_cases(self, source, expected):
        assert parse_inline_formatting(source) == expected

    def test_bold_exact_output(self):
        assert (
            parse_inline_formatting("{{bold:#008867}}text{{/bold}}")
            == '<span style="color:#008867;font-weight:700;">text</span>'
        )

    def test_link_without_bold_uses_semibold(self):
        output = parse_inline_formatting("{{link:https://example.com}}x{{/link}}")
        assert "font-weight:600" in output

    def test_order_of_bold_and_link_does_not_matter(self):
        link_first = parse_inline_formatting(
            "{{link:https://example.com}}l{{/link}} {{bold:#FF0000}}b{{/bold}}"
        )
        bold_first = parse_inline_formatting(
            "{{bold:#FF0000}}b{{/bold}} {{link:https://example.com}}l{{/link}}"
        )
        assert link_first == f"{_link('https://example.com', 'l')} {_bold('#FF0000', 'b')}"
        assert bold_first == f"{_bold('#FF0000', 'b')} {_link('https://example.com', 'l')}"

    def test_last_weight_wins(self):
        assert (
            parse_inline_formatting("{{style:bold|normal}}x{{/style}}")
            == '<span style="font-weight:400;">x</span>'
        )

    def test_unclosed_token_stays_literal(self):
        assert parse_inline_formatting("{{bold:#FF0000}}open") == "{{bold:#FF0000}}open"

    def test_link_with_attribute_breaking_characters_is_unwrapped(self):
        assert parse_inline_formatting('{{link:https://e.com/" onclick="x}}y{{/link}}') == "y"

    def test_personalization_tokens_untouched(self):
        text = "Hi {{firstName}}, {{bold:#008867}}welcome{{/bold}}"
        assert parse_inline_formatting(text) == f"Hi {{{{firstName}}}}, {_bold('#008867', 'welcome')}"

    def test_empty(self):
        assert parse_inline_formatting("") == ""


class TestExpandInlineTokens:
    """Side channel listing neutralised tokens."""

    def test_reports_rejections(self):
        result = expand_inline_tokens(
            "{{bold:red}}a{{/bold}} {{style:huge}}b{{/style}} {{link:javascript:x}}c{{/link}}"
        )
        assert result.html == "{{bold:red}}a{{/bold}} b c"
        assert [token.kind for token in result.rejected] == ["bold", "style", "link"]

    def test_clean_input_has_no_rejections(self):
        assert expand_inline_tokens("{{bold:#fff}}ok{{/bold}}").rejected == ()


class TestModifiers:
    """Modifier parsing helpers."""

    def test_style_modifiers(self):
        assert parse_style_modifiers("semibold|color:#008867") == ("semibold", "#008867", True)
        assert parse_style_modifiers("color:red") == (None, None, False)

    def test_link_modifiers(self):
        assert parse_link_modifiers("https://x.com|bold|color:#123") == ("https://x.com", True, "#123")
        assert parse_link_modifiers("https://x.com|wat") == ("https://x.com", False, None)

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://example.com", True),
            ("mailto:a@b.c", True),
            ("https://wa.me/628118826624", True),
            ("javascript:alert(1)", False),
            ("https://e.com/a b", False),
            ("https://e.com/'x", False),
            ("", False),
        ],
    )
    def test_is_safe_link_url(self, url, expected):
        assert is_safe_link_url(url) is expected
