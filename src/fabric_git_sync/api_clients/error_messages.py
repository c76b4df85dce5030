"""Error message extraction for Fabric REST API failures.

Precedence, first non-empty wins:

1. structured error body: ``{"errorCode", "message"}`` or
   ``{"error": {"code", "message"}}``
2. raw response text
3. message of the transport exception
4. ``HTTP <status>``
"""

import json
from typing import Any, Dict, Optional


def parse_error_body(response: Any) -> Optional[Dict[str, Any]]:
    """Return the JSON error object of a response, or None if there is none."""
    if response is None:
        return None
    try:
        data = response.json()
    except (ValueError, json.JSONDecodeError):
        return None
    return data if isinstance(data, dict) else None


def _format_structured_error(body: Dict[str, Any]) -> Optional[str]:
    nested = body.get("error")
    if isinstance(nested, dict):
        code = nested.get("code") or nested.get("errorCode")
        message = nested.get("message")
    else:
        code = body.get("errorCode")
        message = body.get("message")

    if code and message:
        return f"{code}: {message}"
    return message or code or None


def extract_error_message(
    response: Any = None, error: Optional[BaseException] = None
) -> str:
    """Build a human readable message for a failed request.

    Args:
        response: Response object exposing json(), text and status_code
        error: Transport exception raised while sending the request

    Returns:
        Error message following the documented precedence
    """
    body = parse_error_body(response)
    if body:
        structured = _format_structured_error(body)
        if structured:
            return structured

    if response is not None:
        try:
            text = response.text
        except Exception:
            text = ""
        if text and text.strip():
            return text.strip()

    if error is not None and str(error):
        return str(error)

    status_code = getattr(response, "status_code", None)
    if status_code is not None:
        return f"HTTP {status_code}"
    return "Unknown error"
