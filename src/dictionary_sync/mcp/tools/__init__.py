"""MCP tool handlers for dictionary sync operations.

Wraps ``DictionaryHandler`` operations with async handlers, formatted
reports, and structured error responses.
"""

from .dictionary import DICTIONARY_SPECS, DICTIONARY_TOOLS
from .errors import build_error_response, translate_sync_error
from .registry import ToolRegistry, ToolSpec

ALL_SPECS: list[ToolSpec] = list(DICTIONARY_SPECS)

__all__ = [
    "ALL_SPECS",
    "DICTIONARY_SPECS",
    "DICTIONARY_TOOLS",
    "ToolRegistry",
    "ToolSpec",
    "build_error_response",
    "translate_sync_error",
]
