"""Response formatting bridge -- maps :class:`httpx.Response` to the output system.

After an API call completes, :func:`format_api_response` writes the status
line to stderr and routes the decoded body through
:meth:`~lwcli.output.OutputManager.format_response`. Used by
``lwcli integration show --raw`` to dump the payload exactly as returned.
"""

from __future__ import annotations

from typing import Any

import httpx

from lwcli.output import get_output


def format_api_response(response: httpx.Response) -> None:
    """Print the status line to stderr and the decoded body to stdout."""
    output = get_output()
    output.info(f"HTTP {response.status_code} {response.reason_phrase or ''}".rstrip())

    content_type = response.headers.get("content-type", "application/json")
    data = extract_response_data(response)
    if data is not None:
        output.format_response(data, content_type)


def extract_response_data(response: httpx.Response) -> Any:
    """Return the JSON-decoded body, the raw text when it is not JSON, or ``None`` when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def error_message(response: httpx.Response) -> str:
    """Pull a human-readable message out of an error response body.

    Lacework errors carry ``{"message": ...}``; other services use ``error``
    or ``detail``. Falls back to the first 200 characters of the body.
    """
    data = extract_response_data(response)
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or data.get("detail") or "")
    if data is None:
        return ""
    return str(data)[:200]
