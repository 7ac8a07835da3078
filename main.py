#!/usr/bin/env python3
"""
Mailblocks - HTTP entry point
Composes block-based emails: sanitize → validate → render HTML
"""

import json
import os
import sys
from datetime import datetime

import functions_framework
import structlog
from pydantic import ValidationError

from mailblocks import (
    UnknownTemplateError,
    create_email,
    get_validation_summary,
    render_email,
    sanitization_failures,
)
from mailblocks.logging_utils import setup_logging

setup_logging()
logger = structlog.get_logger(__name__)

HTML_HEADERS = {"Content-Type": "text/html; charset=utf-8"}


class PayloadError(ValueError):
    """Request body is missing or has the wrong shape."""


def _read_payload(request):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise PayloadError("Request body must be a JSON object")

    template_type = payload.get("templateType")
    if not isinstance(template_type, str) or not template_type:
        raise PayloadError("templateType is required")

    blocks = payload.get("blocks")
    if not isinstance(blocks, list):
        raise PayloadError("blocks must be a list")

    variables = payload.get("personalizationVariables")
    if variables is not None and not isinstance(variables, dict):
        raise PayloadError("personalizationVariables must be an object")

    return payload, template_type, blocks, variables


def _build_document(request):
    """Return ``(payload, document, None)`` or ``(None, None, error_response)``."""
    try:
        payload, template_type, blocks, variables = _read_payload(request)
        return payload, create_email(template_type, blocks, variables), None
    except (PayloadError, UnknownTemplateError) as exc:
        logger.warning("invalid_payload", error=str(exc))
        return None, None, ({"error": str(exc)}, 400)
    except ValidationError as exc:
        logger.warning("invalid_blocks", error_count=exc.error_count())
        return None, None, (
            {"error": "Invalid blocks", "details": json.loads(exc.json(include_url=False))},
            400,
        )


def handle_render(request):
    """Compose the email and return it as HTML."""
    payload, document, error = _build_document(request)
    if error:
        return error

    # Unsafe button or image URLs are never rendered, strict or not.
    rejected = sanitization_failures(document)
    if rejected:
        logger.warning("render_rejected_unsafe_url", email_id=document.id, error_count=len(rejected))
        return {
            "error": "Email contains unsafe URLs",
            "issues": [issue.model_dump(by_alias=True) for issue in rejected],
        }, 422

    strict = bool(payload.get("strict", False))
    if strict and not document.is_valid:
        logger.info("render_rejected", email_id=document.id, error_count=len(document.validation_errors))
        return {
            "error": "Email failed validation",
            "issues": [issue.model_dump(by_alias=True) for issue in document.validation_errors],
        }, 422

    try:
        html = render_email(document, inline_css=bool(payload.get("inlineCss", False)))
    except Exception as exc:  # noqa: BLE001
        logger.error("render_failed", email_id=document.id, error=str(exc))
        return {"error": "Rendering failed"}, 500

    return html, 200, HTML_HEADERS


def handle_validate(request):
    """Compose the email and return its validation summary."""
    payload, document, error = _build_document(request)
    if error:
        return error

    summary = get_validation_summary(document, strict=bool(payload.get("strict", False)))
    return {
        "isValid": summary.is_valid,
        "errorCount": summary.error_count,
        "warningCount": summary.warning_count,
        "errors": [issue.model_dump(by_alias=True) for issue in summary.errors],
        "warnings": [issue.model_dump(by_alias=True) for issue in summary.warnings],
    }, 200


ROUTES = {
    "/render": handle_render,
    "/validate": handle_validate,
}


# Main Cloud Function endpoint with routing
@functions_framework.http
def main_handler(request):
    """Main HTTP endpoint that routes to different functions based on path"""

    path = request.path.rstrip("/")
    method = request.method

    logger.info("http_request", method=method, path=path, timestamp=datetime.now().isoformat())

    if path == "" or path == "/":
        # Health check
        if method == "GET":
            return {
                "status": "healthy",
                "service": "mailblocks",
                "timestamp": datetime.now().isoformat(),
            }, 200
        return {"error": "Method not allowed"}, 405

    handler = ROUTES.get(path)
    if handler is None:
        return {"error": "Not found"}, 404
    if method != "POST":
        return {"error": "Method not allowed"}, 405
    return handler(request)


def main(argv=None):
    """Render a JSON payload file to HTML on stdout."""
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: main.py <payload.json>", file=sys.stderr)
        return 2

    with open(args[0], encoding="utf-8") as handle:
        payload = json.load(handle)

    document = create_email(
        payload["templateType"],
        payload.get("blocks", []),
        payload.get("personalizationVariables"),
    )
    if not document.is_valid:
        for issue in document.validation_errors:
            print(f"[{issue.code}] {issue.message}", file=sys.stderr)
    if sanitization_failures(document):
        return 1

    print(render_email(document, inline_css=bool(payload.get("inlineCss", False))))
    return 0


if __name__ == "__main__":
    # Check if running in Cloud Functions/Cloud Run (has PORT environment variable)
    if os.getenv("PORT") or os.getenv("FUNCTION_TARGET"):
        print("Running in cloud environment (Functions Framework)")
    else:
        sys.exit(main())
