"""Tests for protocol and URL whitelisting."""

import pytest

from mailblocks.urls import is_valid_protocol, is_valid_url


class TestIsValidProtocol:
    """Prefix check used for href/src attributes."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com",
            "HTTPS://EXAMPLE.COM",
            "http://example.com/path?q=1",
            "mailto:halo@nobi.id",
            "  https://example.com",
        ],
    )
    def test_accepts_whitelisted_protocols(self, url):
        assert is_valid_protocol(url)

    @pytest.mark.parametrize(
        "url",
        [
            "javascript:alert(1)",
            "JavaScript:alert(1)",
            "data:text/html;base64,PHNjcmlwdD4=",
            "vbscript:msgbox(1)",
            "file:///etc/passwd",
            "ftp://example.com",
            "//example.com",
            "",
            None,
        ],
    )
    def test_rejects_everything_else(self, url):
        assert not is_valid_protocol(url)


class TestIsValidUrl:
    """Stricter parse-based check used for buttons and images."""

    def test_accepts_absolute_urls(self):
        assert is_valid_url("https://nobi.id/app")
        assert is_valid_url("http://localhost:8080/path")
        assert is_valid_url("mailto:halo@nobi.id")

    def test_require_https(self):
        assert is_valid_url("https://cdn.nobi.id/banner.png", require_https=True)
        assert not is_valid_url("http://cdn.nobi.id/banner.png", require_https=True)
        assert not is_valid_url("mailto:halo@nobi.id", require_https=True)

    @pytest.mark.parametrize(
        "url",
        [
            "https://",
            "mailto:",
            "https://exa mple.com",
            " https://example.com",
            "https://example.com:notaport/",
            "javascript:alert(1)",
            "example.com",
            "",
        ],
    )
    def test_rejects_malformed_urls(self, url):
        assert not is_valid_url(url)
