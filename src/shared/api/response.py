"""Response error extraction for backend API calls.

Parses fest backend error responses into human-readable messages.
Handles the response shapes the backend produces:

- Validation (422): {"detail": [{"loc": [...], "msg": "...", "type": "..."}]}
- Route errors (400/404/500): {"error": "msg", "details": "longer explanation"}
- Field errors: {"error": {"field": "msg"}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from httpx import Response


def extract_error_detail(response: Response) -> str:
    """Extract a human-readable error message from an API error response.

    Returns a compact string suitable for toasts and log lines.
    Gracefully handles unparseable bodies and missing fields.
    """
    try:
        body = response.json()
    except ValueError:
        # Not JSON: return raw text, truncated
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if not isinstance(body, dict):
        return str(body)[:300]

    return envelope_error(body) or str(body)[:300]


def envelope_error(body: dict[str, Any]) -> str | None:
    """Return the error message carried by a JSON envelope, if any."""
    if "detail" in body and isinstance(body["detail"], list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    if "detail" in body and isinstance(body["detail"], str):
        return body["detail"]

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            message = " | ".join(f"{k}: {v}" for k, v in error.items())
        else:
            message = str(error)
        details = body.get("details")
        if details and details != message:
            return f"{message} ({details})"
        return message

    if "message" in body and body.get("success") is False:
        return str(body["message"])

    return None
