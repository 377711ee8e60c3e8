"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: transport/__init__.py.
"""

from .contracts import HttpTransport
from .urllib_transport import UrllibTransport

__all__ = [
    "HttpTransport",
    "UrllibTransport",
]
