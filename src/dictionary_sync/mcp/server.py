"""MCP server for dictionary synchronisation using stdio transport.

Exposes the create-only dictionary handler (import, export, report and
status) as MCP tools so an agent can keep a folder of dictionary files
and the node store in step.

Transport: stdio
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import os
import sys

import mcp.server.stdio
import mcp.types as types
import yaml
from dotenv import load_dotenv
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..config_loader import load_unified_config
from ..config_schema import LoggingConfig
from ..logger import DEFAULT_LOG_FILE, setup_logging
from .lifespan import SyncContext, server_lifespan
from .tools import ALL_SPECS, ToolRegistry, build_error_response

logger = logging.getLogger(__name__)

# Initialize server instance
server = Server("dictionary-sync")

# Global context (initialized in lifespan)
_context: SyncContext | None = None

# Global registry instance (initialized in main)
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_context() -> SyncContext:
    """Get the global SyncContext instance.

    Raises:
        RuntimeError: If the context is not initialized
    """
    if _context is None:
        raise RuntimeError(
            "SyncContext not initialized. Server lifespan not started."
        )
    return _context


def set_context(context: SyncContext | None) -> None:
    global _context
    _context = context


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List the registered dictionary tools."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch."""
    context = get_context()
    try:
        return await get_registry().call_tool(name, arguments, context)
    except ValueError as e:
        # Unknown or filtered-out tool name
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


def _logging_section() -> LoggingConfig:
    """Return the ``logging`` section of the config files.

    Falls back to defaults when the files cannot be read; the same error
    is reported by ``server_lifespan`` once logging is set up.
    """
    try:
        return load_unified_config().logging
    except (OSError, ValueError, yaml.YAMLError):
        return LoggingConfig()


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Args:
        config_overrides: Optional dict with values from the command line
            (folder, archive_folder, snapshot, debug, log_file, read_only).
    """
    overrides = dict(config_overrides or {})
    log_file = overrides.pop("log_file", None)
    read_only = overrides.pop("read_only", False)

    # Must run before stdio_server so nothing reaches stdout
    load_dotenv()
    logging_config = _logging_section()
    setup_logging(
        mode="mcp",
        debug=overrides.get("debug", False),
        log_file=log_file or os.getenv("LOG_FILE") or logging_config.file,
        level=logging_config.level,
    )

    registry = ToolRegistry(ALL_SPECS, read_only=read_only)
    logger.info(
        "Registered %d tools (of %d total)",
        registry.tool_count(),
        len(ALL_SPECS),
    )
    if read_only:
        print(
            f"Read-only mode ({registry.tool_count()} of "
            f"{len(ALL_SPECS)} tools enabled)",
            file=sys.stderr,
        )
    set_registry(registry)

    # set_context() is called here, not in the lifespan, so running this
    # file as __main__ does not update a second copy of the module.
    async with server_lifespan(config_overrides=overrides or None) as ctx:
        set_context(ctx["context"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="dictionary-sync",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_context(None)
            set_registry(None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Dictionary Sync - MCP server for create-only dictionary import/export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with defaults (from .env or .dictionary_sync/config.yml)
  dictionary-sync

  # Use a specific sync folder and persist the store between runs
  dictionary-sync --folder ./uSync/data --snapshot ./store.json

  # Only expose report and status tools
  dictionary-sync --read-only

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr.
        """,
    )
    parser.add_argument(
        "--folder",
        help="Sync folder root (takes precedence over DICTIONARY_SYNC_FOLDER and config files)",
    )
    parser.add_argument(
        "--archive-folder",
        help="Archive folder for deleted roots (default: <folder>/_archive)",
    )
    parser.add_argument(
        "--snapshot",
        help="JSON file the node store is loaded from and saved to",
    )
    parser.add_argument(
        "--log-file",
        help=f"Log file path (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Only register tools that do not modify the store or the sync folder",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"dictionary-sync version {__version__}",
    )
    return parser


def overrides_from_args(args: argparse.Namespace) -> dict:
    """Collect the options that were actually given on the command line."""
    config_overrides = {}
    if args.folder:
        config_overrides["folder"] = args.folder
    if args.archive_folder:
        config_overrides["archive_folder"] = args.archive_folder
    if args.snapshot:
        config_overrides["snapshot"] = args.snapshot
    if args.log_file:
        config_overrides["log_file"] = args.log_file
    if args.read_only:
        config_overrides["read_only"] = True
    if args.debug:
        config_overrides["debug"] = True
    return config_overrides


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args()
    config_overrides = overrides_from_args(args)

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
