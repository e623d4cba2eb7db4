"""Tests for mcp/tools/errors.py -- error response builders.

Covers:
- build_error_response() structure and format
- translate_sync_error() mapping of each SyncError subclass
"""

import mcp.types as types
import pytest

from dictionary_sync.errors import (
    CycleDetectedError,
    DanglingReferenceError,
    FileOperationError,
    MalformedInputError,
    StoreOperationError,
    SyncError,
)
from dictionary_sync.mcp.tools.errors import (
    build_error_response,
    translate_sync_error,
)


def _get_error_text(result: types.CallToolResult) -> str:
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


class TestBuildErrorResponse:
    """Tests for build_error_response()."""

    def test_is_error_with_single_text(self):
        result = build_error_response("file_error", "Cannot write", "Check folder")
        assert result.isError is True
        assert len(result.content) == 1

    def test_error_format(self):
        result = build_error_response(
            "malformed_input", "Bad XML", "Fix the file"
        )
        assert (
            _get_error_text(result)
            == "Error (malformed_input): Bad XML\n\nAction: Fix the file"
        )


class TestTranslateSyncError:
    """Tests for translate_sync_error()."""

    @pytest.mark.parametrize(
        "error,error_type",
        [
            (MalformedInputError("bad"), "malformed_input"),
            (DanglingReferenceError("bad"), "store_integrity"),
            (CycleDetectedError("bad"), "store_integrity"),
            (StoreOperationError("bad"), "store_error"),
            (FileOperationError("bad"), "file_error"),
            (SyncError("bad"), "server_error"),
        ],
    )
    def test_error_types(self, error, error_type):
        text = _get_error_text(translate_sync_error(error))
        assert text.startswith(f"Error ({error_type}): bad")
        assert "Action:" in text
