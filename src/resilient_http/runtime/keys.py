"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/keys.py.
"""

from __future__ import annotations

import hashlib
import json

from ..types import RequestOptions


def call_key(address: str, options: RequestOptions) -> str:
    """Build deterministic scheduling key for address + method/body/headers."""
    body = options.body
    if isinstance(body, bytes):
        body = body.hex()
    payload = {
        "address": address,
        "method": options.method.upper(),
        "headers": sorted((k.lower(), v) for k, v in options.headers.items()),
        "body": body,
    }
    normalized = json.dumps(payload, ensure_ascii=True, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()
