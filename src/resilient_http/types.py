"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

This module defines the request/response value types shared by the transport,
retry executor, scheduler and client.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Literal, TypeAlias

JSONPrimitive: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]

ResponseType = Literal["json", "text", "auto"]


@dataclass(frozen=True, slots=True)
class RequestOptions:
    """Request shape handed to the transport on every attempt."""

    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | str | None = None
    timeout_s: float | None = 30.0

    def with_changes(self, **changes: Any) -> "RequestOptions":
        """Return a copy with selected fields replaced."""
        return replace(self, **changes)

    def body_bytes(self) -> bytes | None:
        if self.body is None:
            return None
        if isinstance(self.body, bytes):
            return self.body
        return self.body.encode("utf-8")


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """Status/headers/body triple returned by one transport call."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    url: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default

    @property
    def content_type(self) -> str:
        return (self.header("content-type") or "").lower()

    def text(self) -> str:
        charset = "utf-8"
        for part in self.content_type.split(";")[1:]:
            name, _, value = part.strip().partition("=")
            if name == "charset" and value:
                charset = value.strip('"')
        return self.body.decode(charset, errors="replace")

    def json(self) -> JSONValue:
        return json.loads(self.text())


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Decoded value plus the raw response that produced it."""

    value: Any
    response: HttpResponse
    attempts: int = 1
