"""Error response builders for MCP tool handlers.

Structured error responses carry a corrective action so an agent can
recover without human help.
"""

import mcp.types as types

from ...errors import (
    CycleDetectedError,
    DanglingReferenceError,
    FileOperationError,
    MalformedInputError,
    StoreOperationError,
    SyncError,
)


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (validation_error, malformed_input,
            store_integrity, store_error, file_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("file_error", "Cannot write x.config", "Check folder permissions.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def translate_sync_error(error: SyncError) -> types.CallToolResult:
    """Translate a ``SyncError`` into a structured error response."""
    message = str(error)
    match error:
        case MalformedInputError():
            return build_error_response(
                "malformed_input",
                message,
                "Check the file is a well-formed <DictionaryItem> document "
                "and that every item has a Key attribute.",
            )
        case DanglingReferenceError() | CycleDetectedError():
            return build_error_response(
                "store_integrity",
                message,
                "Repair the parent links of the affected items, then retry.",
            )
        case StoreOperationError():
            return build_error_response(
                "store_error",
                message,
                "Use dictionary_status to inspect the store, then retry.",
            )
        case FileOperationError():
            return build_error_response(
                "file_error",
                message,
                "Check the sync folder exists and is writable.",
            )
        case _:
            return build_error_response(
                "server_error", message, "Retry the operation or check the logs."
            )
