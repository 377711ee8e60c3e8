"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Response body decoding: structured JSON or raw text.
"""

from __future__ import annotations

from typing import Any

from .errors import ResponseFormatError
from .types import HttpResponse, ResponseType


def is_structured_content_type(content_type: str) -> bool:
    """True for `application/json`, `application/*+json`, `text/json`, ..."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type.endswith("/json") or media_type.endswith("+json")


def decode_response(response: HttpResponse, response_type: ResponseType) -> Any:
    """Decode one response body according to `response_type`."""
    if response_type == "auto":
        response_type = (
            "json" if is_structured_content_type(response.content_type) else "text"
        )
    try:
        if response_type == "json":
            return response.json()
        return response.text()
    except (ValueError, LookupError) as e:
        raise ResponseFormatError(
            f"Could not decode {response_type} body (status {response.status})"
        ) from e
