"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/__init__.py.
"""

from .contracts import FetchConfig, merge_config
from .keys import call_key
from .retry import RetryExecutor, classify_error
from .scheduler import RequestScheduler

__all__ = [
    "FetchConfig",
    "merge_config",
    "call_key",
    "RetryExecutor",
    "classify_error",
    "RequestScheduler",
]
