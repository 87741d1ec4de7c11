"""Response error extraction for load test observability.

Parses storefront API error responses into human-readable messages.
Handles two response shapes:

- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "...", "type": "..."}]}
- Domain errors (400/404/503): {"error": "msg"} or {"error": {"field": ["msg"]}}
"""

from __future__ import annotations

from json import JSONDecodeError


def extract_error_detail(response) -> str:
    """Extract a compact error message from an API error response."""
    try:
        body = response.json()
    except (JSONDecodeError, ValueError):
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if "detail" in body and isinstance(body["detail"], list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            return " | ".join(f"{k}: {v}" for k, v in error.items())
        return str(error)

    return str(body)[:300]
