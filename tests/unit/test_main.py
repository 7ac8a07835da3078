"""Tests for the HTTP entry point routing."""

import json

import main


class StubRequest:
    """Minimal stand-in for the Flask request handed over by functions-framework."""

    def __init__(self, path, method="POST", payload=None):
        self.path = path
        self.method = method
        self._payload = payload
        self.headers = {}

    def get_json(self, silent=False):
        return self._payload


class TestRouting:
    """Path and method dispatch."""

    def test_health_check(self):
        body, status = main.main_handler(StubRequest("/", method="GET"))
        assert status == 200
        assert body["status"] == "healthy"
        assert body["service"] == "mailblocks"

    def test_unknown_path(self):
        _, status = main.main_handler(StubRequest("/nope"))
        assert status == 404

    def test_wrong_method(self):
        assert main.main_handler(StubRequest("/render", method="GET"))[1] == 405
        assert main.main_handler(StubRequest("/", method="POST"))[1] == 405


class TestRender:
    """POST /render."""

    def test_renders_html(self, open_fund_blocks):
        payload = {"templateType": "open-fund", "blocks": open_fund_blocks}
        html, status, headers = main.main_handler(StubRequest("/render/", payload=payload))
        assert status == 200
        assert headers["Content-Type"].startswith("text/html")
        assert html.startswith("<!DOCTYPE html>")
        assert "Mulai Investasi" in html

    def test_malformed_payload(self):
        body, status = main.main_handler(StubRequest("/render", payload=None))
        assert status == 400
        assert "error" in body

    def test_missing_blocks(self):
        body, status = main.main_handler(StubRequest("/render", payload={"templateType": "open-fund"}))
        assert status == 400
        assert body["error"] == "blocks must be a list"

    def test_unknown_template(self):
        body, status = main.main_handler(
            StubRequest("/render", payload={"templateType": "promo", "blocks": []})
        )
        assert status == 400
        assert "promo" in body["error"]

    def test_invalid_block_shape(self):
        body, status = main.main_handler(
            StubRequest("/render", payload={"templateType": "open-fund", "blocks": [{"type": "carousel"}]})
        )
        assert status == 400
        assert body["error"] == "Invalid blocks"
        json.dumps(body)

    def test_strict_rejects_invalid_document(self):
        payload = {"templateType": "open-fund", "blocks": [], "strict": True}
        body, status = main.main_handler(StubRequest("/render", payload=payload))
        assert status == 422
        assert {"code", "message", "severity", "blockId", "blockType"} <= set(body["issues"][0])

    def test_lenient_renders_invalid_document(self):
        payload = {"templateType": "open-fund", "blocks": []}
        _, status, _ = main.main_handler(StubRequest("/render", payload=payload))
        assert status == 200

    def test_unsafe_button_url_is_never_rendered(self, open_fund_blocks):
        open_fund_blocks[3]["href"] = "javascript:alert(1)"
        payload = {"templateType": "open-fund", "blocks": open_fund_blocks, "strict": False}
        body, status = main.main_handler(StubRequest("/render", payload=payload))
        assert status == 422
        assert [issue["code"] for issue in body["issues"]] == ["BLOCK_SANITIZATION_FAILED"]
        assert body["issues"][0]["blockId"] == "button-1"

    def test_cli_refuses_unsafe_image_url(self, open_fund_blocks, tmp_path, capsys):
        open_fund_blocks.append({"type": "image", "id": "img-1", "src": "http://cdn.nobi.id/a.png", "alt": "A"})
        payload_file = tmp_path / "payload.json"
        payload_file.write_text(json.dumps({"templateType": "open-fund", "blocks": open_fund_blocks}))

        assert main.main([str(payload_file)]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "[BLOCK_SANITIZATION_FAILED]" in captured.err


class TestValidateEndpoint:
    """POST /validate."""

    def test_summary(self):
        payload = {
            "templateType": "open-fund",
            "blocks": [{"type": "highlight-box", "id": "h", "content": "x", "backgroundColor": ""}],
            "strict": True,
        }
        body, status = main.main_handler(StubRequest("/validate", payload=payload))
        assert status == 200
        assert body["isValid"] is False
        assert body["warningCount"] == 1
        assert body["warnings"][0]["code"] == "MISSING_HIGHLIGHT_COLOR"
        assert body["errorCount"] == len(body["errors"])
