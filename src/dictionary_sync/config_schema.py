"""Unified configuration schema for dictionary_sync.

Defines Pydantic models for the config file structure with dedicated
sections for the sync folder, the node store, and logging, plus an
adapter producing fallback values for ``config.load_config()``.

Usage:
    from dictionary_sync.config_schema import build_config, to_fallbacks

    unified = build_config(load_hierarchical_config())
    config = load_config(yaml_fallbacks=to_fallbacks(unified))
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class SyncConfig(BaseModel):
    """Where dictionary files are written and read.

    All fields have defaults so an empty config file is valid.
    """

    folder: str = Field(
        default="uSync/data", description="Sync folder root"
    )
    archive_folder: str | None = Field(
        default=None,
        description="Archive folder (default: <folder>/_archive)",
    )
    category: str = Field(
        default="DictionaryItem",
        description="Sub-folder holding dictionary files",
    )
    max_depth: int = Field(
        default=64,
        ge=1,
        le=1000,
        description="Maximum nesting depth accepted on import (1-1000)",
    )

    model_config = {"frozen": True}


class StoreConfig(BaseModel):
    """Node store settings.

    Attributes:
        snapshot: JSON snapshot file the in-memory store is loaded from
            and saved to.  ``None`` keeps the store purely in memory.
        locales: Locales to register on top of those in the snapshot.
    """

    snapshot: str | None = Field(
        default=None, description="Store snapshot path"
    )
    locales: list[str] = Field(
        default_factory=list, description="Recognised locale ISO codes"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            ``None`` keeps the mode default.
        file: Optional log file path.
    """

    level: str | None = Field(default=None, description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    sync: SyncConfig = Field(default_factory=SyncConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


# ---------------------------------------------------------------------------
# Adapter: UnifiedConfig -> load_config() fallbacks
# ---------------------------------------------------------------------------


def to_fallbacks(unified: UnifiedConfig) -> dict:
    """Flatten the ``sync`` and ``store`` sections into the fallback dict
    accepted by ``config.load_config(yaml_fallbacks=...)``.

    ``None`` values are dropped so they never mask a built-in default.
    """
    merged = {
        **unified.sync.model_dump(),
        **unified.store.model_dump(),
    }
    return {k: v for k, v in merged.items() if v is not None}
