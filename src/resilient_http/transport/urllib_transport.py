"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Default transport built on ``urllib.request``.
"""

from __future__ import annotations

import asyncio
import socket
import urllib.error
import urllib.request

from ..errors import TransportFailure
from ..types import HttpResponse, RequestOptions


class UrllibTransport:
    """Blocking urllib calls pushed to a worker thread."""

    def __init__(self, *, default_headers: dict[str, str] | None = None) -> None:
        self._default_headers = dict(default_headers or {})

    async def send(self, address: str, options: RequestOptions) -> HttpResponse:
        return await asyncio.to_thread(self.http_request, address, options)

    def http_request(self, address: str, options: RequestOptions) -> HttpResponse:
        headers = {**self._default_headers, **dict(options.headers)}
        req = urllib.request.Request(
            address,
            data=options.body_bytes(),
            method=options.method.upper(),
            headers=headers,
        )
        try:
            with urllib.request.urlopen(req, timeout=options.timeout_s) as resp:  # noqa: S310
                return HttpResponse(
                    status=resp.status,
                    headers=dict(resp.headers.items()),
                    body=resp.read(),
                    url=resp.geturl(),
                )
        except urllib.error.HTTPError as e:
            try:
                body = e.read()
            except OSError:
                body = b""
            return HttpResponse(
                status=e.code,
                headers=dict(e.headers.items()) if e.headers is not None else {},
                body=body,
                url=address,
            )
        except urllib.error.URLError as e:
            raise TransportFailure(f"Network error calling '{address}': {e.reason}") from e
        except (socket.timeout, TimeoutError) as e:
            raise TransportFailure(f"Timed out calling '{address}'") from e
        except OSError as e:
            raise TransportFailure(f"I/O error calling '{address}': {e}") from e
