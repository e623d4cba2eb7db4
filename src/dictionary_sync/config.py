"""Runtime configuration for the dictionary sync server.

Reads sync folder and store settings from CLI args, environment
variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    DICTIONARY_SYNC_FOLDER: Sync folder root (default: uSync/data)
    DICTIONARY_SYNC_ARCHIVE: Archive folder (default: <folder>/_archive)
    DICTIONARY_SYNC_SNAPSHOT: Store snapshot JSON file (optional)
    DICTIONARY_SYNC_LOCALES: Comma-separated locale ISO codes (optional)
    DICTIONARY_SYNC_MAX_DEPTH: Maximum import nesting depth (default: 64)
    DICTIONARY_SYNC_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "uSync/data"
DEFAULT_CATEGORY = "DictionaryItem"
DEFAULT_MAX_DEPTH = 64


@dataclass
class Config:
    folder: str
    archive_folder: str | None = None
    category: str = DEFAULT_CATEGORY
    snapshot: str | None = None
    locales: list[str] = field(default_factory=list)
    max_depth: int = DEFAULT_MAX_DEPTH
    debug: bool = False

    @property
    def folder_path(self) -> Path:
        return Path(self.folder)

    @property
    def archive_path(self) -> Path | None:
        return Path(self.archive_folder) if self.archive_folder else None

    @property
    def snapshot_path(self) -> Path | None:
        return Path(self.snapshot) if self.snapshot else None


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If a path is empty, the category is not a plain
            directory name, or max_depth is out of range.
    """
    config.folder = config.folder.strip()
    if not config.folder:
        raise ValueError(
            "Sync folder cannot be empty. Set DICTIONARY_SYNC_FOLDER or 'sync.folder'."
        )

    if config.archive_folder is not None:
        config.archive_folder = config.archive_folder.strip() or None

    if (
        not config.category
        or "/" in config.category
        or "\\" in config.category
        or config.category in (".", "..")
    ):
        raise ValueError(
            f"Invalid category '{config.category}': must be a plain directory name"
        )

    if not (1 <= config.max_depth <= 1000):
        raise ValueError(
            f"Invalid max_depth '{config.max_depth}': must be a number between 1 and 1000"
        )

    if config.snapshot is None:
        logger.warning(
            "No store snapshot configured; dictionary items live in memory only."
        )


def load_config(
    folder: str | None = None,
    archive_folder: str | None = None,
    snapshot: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        folder: Override sync folder.
        archive_folder: Override archive folder.
        snapshot: Override store snapshot path.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flattened values from the YAML ``sync`` and
            ``store`` sections, used when CLI arg and env var are unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If a value is invalid.
    """
    fb = yaml_fallbacks or {}

    # --- String fields: CLI > env > YAML > default ---

    final_folder = (
        folder
        or os.getenv("DICTIONARY_SYNC_FOLDER")
        or fb.get("folder")
        or DEFAULT_FOLDER
    )
    final_archive = (
        archive_folder
        or os.getenv("DICTIONARY_SYNC_ARCHIVE")
        or fb.get("archive_folder")
    )
    final_snapshot = (
        snapshot
        or os.getenv("DICTIONARY_SYNC_SNAPSHOT")
        or fb.get("snapshot")
    )

    locales_raw = os.getenv("DICTIONARY_SYNC_LOCALES")
    if locales_raw is not None:
        final_locales = [
            part.strip() for part in locales_raw.split(",") if part.strip()
        ]
    else:
        final_locales = list(fb.get("locales", []))

    # --- Boolean fields: CLI > env > YAML > default ---

    def get_bool_env(key: str) -> bool | None:
        """Return True/False from env var, or None if unset."""
        val = os.getenv(key)
        if val is None:
            return None
        return val.lower() in ("true", "1", "yes", "on")

    if debug:
        final_debug = True
    else:
        env_debug = get_bool_env("DICTIONARY_SYNC_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    # --- Numeric fields: env > YAML > default ---

    max_depth_raw = os.getenv("DICTIONARY_SYNC_MAX_DEPTH")
    if max_depth_raw is not None:
        try:
            final_max_depth = int(max_depth_raw)
        except ValueError:
            raise ValueError(
                f"Invalid DICTIONARY_SYNC_MAX_DEPTH '{max_depth_raw}': must be a number between 1 and 1000"
            ) from None
    elif "max_depth" in fb:
        final_max_depth = int(fb["max_depth"])
    else:
        final_max_depth = DEFAULT_MAX_DEPTH

    config = Config(
        folder=final_folder,
        archive_folder=final_archive,
        category=fb.get("category") or DEFAULT_CATEGORY,
        snapshot=final_snapshot,
        locales=final_locales,
        max_depth=final_max_depth,
        debug=final_debug,
    )

    validate_config(config)

    return config
