"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from dotenv import load_dotenv

from ..config import Config, load_config
from ..config_loader import discover_config_files, load_unified_config
from ..config_schema import to_fallbacks
from ..core.async_utils import init_semaphore
from ..core.store import InMemoryNodeStore
from ..errors import SyncError
from ..sync.handler import DictionaryHandler

logger = logging.getLogger(__name__)


@dataclass
class SyncContext:
    """Everything a tool handler needs: config, store, and handler."""

    config: Config
    store: InMemoryNodeStore
    handler: DictionaryHandler

    def save_snapshot(self) -> None:
        """Persist the store if a snapshot path is configured."""
        path = self.config.snapshot_path
        if path is None:
            return
        self.store.save_snapshot(path)
        logger.debug("Store snapshot written to %s", path)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


def build_context(config: Config) -> SyncContext:
    """Load the store snapshot and wire a ``DictionaryHandler`` to it."""
    if config.snapshot_path is not None:
        store = InMemoryNodeStore.load_snapshot(
            config.snapshot_path, config.locales
        )
    else:
        store = InMemoryNodeStore(config.locales)

    handler = DictionaryHandler(
        store,
        config.folder_path,
        archive_folder=config.archive_path,
        category=config.category,
        max_depth=config.max_depth,
    )
    handler.register_events()
    return SyncContext(config=config, store=store, handler=handler)


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env file (so values are available for env var lookups and YAML interpolation)
    - Load YAML config files if present (as fallback values)
    - Merge all sources via load_config(): CLI > env vars > .env > YAML > defaults
    - Load the store snapshot and register the handler for store events

    On shutdown:
    - Unregister store events
    - Write the store snapshot

    Args:
        config_overrides: Optional dict with config values from CLI
            (folder, archive_folder, snapshot, debug)

    Yields:
        Dict with 'context' key containing the initialized SyncContext

    Raises:
        RuntimeError: If configuration is invalid or the snapshot cannot be loaded.
    """
    logger.info("MCP server starting...")
    _stderr_print("Dictionary Sync MCP Server starting...")

    try:
        # 1. Load .env early (before YAML, so ${VAR} interpolation can use .env values)
        load_dotenv()

        # 2. Load YAML config if present, flatten sync/store sections as fallbacks
        yaml_fallbacks: dict[str, Any] | None = None
        config_files = discover_config_files()
        sources = []

        if config_files:
            yaml_fallbacks = to_fallbacks(load_unified_config())
            sources.append(f"config file: {config_files[0]}")

        # 3. Single call to load_config with all sources merged
        overrides = config_overrides or {}
        config = load_config(
            folder=overrides.get("folder"),
            archive_folder=overrides.get("archive_folder"),
            snapshot=overrides.get("snapshot"),
            debug=overrides.get("debug", False),
            yaml_fallbacks=yaml_fallbacks,
        )

        if overrides:
            sources.append("CLI arguments")
        sources.append("environment variables")
        source_desc = ", ".join(sources)
        logger.info("Configuration loaded from: %s", source_desc)
        _stderr_print(f"  Configuration loaded from: {source_desc}")
        logger.info("Sync folder: %s", config.folder)
        _stderr_print(f"  Sync folder: {config.folder}")
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print(
            "  Check DICTIONARY_SYNC_FOLDER and .dictionary_sync/config.yml."
        )
        raise RuntimeError(f"Configuration error: {e}") from e

    try:
        context = build_context(config)
    except SyncError as e:
        logger.error("Failed to load store: %s", e)
        _stderr_print("ERROR: Store snapshot could not be loaded.")
        _stderr_print(f"  {e}")
        raise RuntimeError(f"Store load failed: {e}") from e

    init_semaphore(1)
    _stderr_print(
        f"  Items: {len(context.store)}, locales: "
        f"{', '.join(sorted(context.store.all_locales())) or 'none'}"
    )
    _stderr_print("Server ready. Waiting for MCP client connection...")

    try:
        yield {"context": context}
    finally:
        logger.info("MCP server shutting down")
        context.handler.unregister_events()
        try:
            context.save_snapshot()
        except OSError as e:
            logger.error("Failed to write store snapshot: %s", e)
            _stderr_print(f"ERROR: Store snapshot not written: {e}")
        _stderr_print("Dictionary Sync MCP Server shutting down.")
