"""MCP tool handlers for dictionary synchronisation.

Defines five tools:

- ``dictionary_import`` -- create-only import of one file.
- ``dictionary_import_all`` -- create-only import of the whole folder.
- ``dictionary_export_all`` -- export every root item to disk.
- ``dictionary_report`` -- read-only staleness report for one file or all.
- ``dictionary_status`` -- store size, pending deletes, tracked actions.

Imports run with synchronisation paused so the items they create are not
immediately re-exported over the file being imported.

None of the tools edits or deletes items, so the save and delete reactors
are never driven by a tool call.  They stay subscribed to the served
store for the life of the server and react to changes made by whatever
process embeds that store (see ``lifespan.build_context``).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import mcp.types as types

from ...core.async_utils import run_sync, run_sync_limited
from ...file_handler import validate_file_path
from ...sync.reporter import (
    format_outcomes,
    format_tracked_actions,
    outcomes_to_json,
)
from .registry import ToolSpec

if TYPE_CHECKING:
    from ...sync.models import SyncOutcome
    from ..lifespan import SyncContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

_FILE_PATH_PROPERTY = {
    "type": "string",
    "description": "Absolute path to a dictionary .config file",
}

DICTIONARY_TOOLS: list[types.Tool] = [
    types.Tool(
        name="dictionary_import",
        description=(
            "Import one dictionary file. Create-only: items that already "
            "exist are never modified, only missing items are created."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {"file_path": _FILE_PATH_PROPERTY},
            "required": ["file_path"],
        },
    ),
    types.Tool(
        name="dictionary_import_all",
        description=(
            "Create-only import of every dictionary file in the sync folder."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
    types.Tool(
        name="dictionary_export_all",
        description=(
            "Export every root dictionary item, with its full subtree, to "
            "one file per root in the sync folder."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
    types.Tool(
        name="dictionary_report",
        description=(
            "Report whether importing a dictionary file (or every file when "
            "file_path is omitted) would change the store. Read-only."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {"file_path": _FILE_PATH_PROPERTY},
            "required": [],
        },
    ),
    types.Tool(
        name="dictionary_status",
        description=(
            "Show store size, roots awaiting re-export after a delete, and "
            "pending tracked actions."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _outcome_result(
    title: str, outcomes: list[SyncOutcome]
) -> types.CallToolResult:
    return types.CallToolResult(
        content=[
            types.TextContent(
                type="text", text=format_outcomes(title, outcomes)
            )
        ],
        structuredContent=outcomes_to_json(outcomes),
    )


def _require_file_path(args: dict[str, Any]) -> str:
    file_path = args.get("file_path")
    if not file_path:
        raise ValueError("file_path is required")
    return file_path


def _paused_import(context: SyncContext, func, *args):
    with context.handler.pause.paused():
        result = func(*args)
    context.save_snapshot()
    return result


# ---------------------------------------------------------------------------
# Individual handlers
# ---------------------------------------------------------------------------


async def _handle_import(
    context: SyncContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``dictionary_import`` tool."""
    path = validate_file_path(_require_file_path(args))
    outcome = await run_sync_limited(
        _paused_import, context, context.handler.import_file, path
    )
    return _outcome_result(f"Import {path.name}", [outcome])


async def _handle_import_all(
    context: SyncContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``dictionary_import_all`` tool."""
    outcomes = await run_sync_limited(
        _paused_import, context, context.handler.import_all
    )
    return _outcome_result("Import all", outcomes)


async def _handle_export_all(
    context: SyncContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``dictionary_export_all`` tool."""
    outcomes = await run_sync_limited(context.handler.export_all)
    return _outcome_result("Export all", outcomes)


async def _handle_report(
    context: SyncContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``dictionary_report`` tool."""
    file_path = args.get("file_path")
    if file_path:
        path = validate_file_path(file_path)
        outcome = await run_sync(context.handler.report_item, path)
        return _outcome_result(f"Report {path.name}", [outcome])

    outcomes = await run_sync(context.handler.report_all)
    return _outcome_result("Report all", outcomes)


async def _handle_status(
    context: SyncContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``dictionary_status`` tool."""
    handler = context.handler
    actions = handler.tracker.actions()
    pending = handler.delete_coordinator.pending.snapshot()
    item_count = len(context.store)

    lines = [
        "Dictionary sync status",
        f"  Folder:        {handler.folder}",
        f"  Items:         {item_count}",
        f"  Events:        {'registered' if handler.events_registered else 'not registered'}",
        f"  Paused:        {handler.pause.is_paused}",
        f"  Pending roots: {', '.join(pending) if pending else 'none'}",
        "",
        format_tracked_actions(actions),
    ]

    structured = {
        "folder": str(handler.folder),
        "items": item_count,
        "events_registered": handler.events_registered,
        "paused": handler.pause.is_paused,
        "pending_roots": pending,
        "tracked_actions": [a.model_dump(mode="json") for a in actions],
    }

    return types.CallToolResult(
        content=[types.TextContent(type="text", text="\n".join(lines))],
        structuredContent=structured,
    )


DICTIONARY_SPECS: list[ToolSpec] = [
    ToolSpec(tool=DICTIONARY_TOOLS[0], handler=_handle_import),
    ToolSpec(tool=DICTIONARY_TOOLS[1], handler=_handle_import_all),
    ToolSpec(tool=DICTIONARY_TOOLS[2], handler=_handle_export_all),
    ToolSpec(tool=DICTIONARY_TOOLS[3], handler=_handle_report),
    ToolSpec(tool=DICTIONARY_TOOLS[4], handler=_handle_status),
]
