"""
Locate and read the dictionary-sync YAML configuration.

Three places are searched, highest precedence first:

1. the file named by ``DICTIONARY_SYNC_CONFIG``
2. ``.dictionary_sync/config.yml`` (or ``config.yaml``) in the working directory
3. ``~/.config/dictionary_sync/config.yml``

Only the ``sync``, ``store`` and ``logging`` sections are read.  Files are
merged section by section and key by key, so a project file that only sets
``sync.folder`` keeps the ``sync.max_depth`` of the user file.  Every file
is validated against ``UnifiedConfig`` on its own, so an invalid value is
reported together with the file it came from.

While parsing, string values expand ``${NAME}`` and ``${NAME:-fallback}``
from the environment, and ``!include other.yml`` is replaced by the
content of that file (relative paths resolve against the including file).

Usage:
    from dictionary_sync.config_loader import load_unified_config

    unified = load_unified_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config_schema import UnifiedConfig, build_config

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DICTIONARY_SYNC_CONFIG"
PROJECT_DIR = ".dictionary_sync"
SECTIONS = ("sync", "store", "logging")

_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<fallback>.*?))?\}")


def expand_env(text: str) -> str:
    """Expand ``${NAME}`` / ``${NAME:-fallback}`` references in *text*.

    An unset or empty variable yields its fallback, or ``""`` without one.
    """
    return _REFERENCE.sub(
        lambda m: os.environ.get(m["name"]) or m["fallback"] or "", text
    )


class _ConfigYamlLoader(yaml.SafeLoader):
    """SafeLoader that expands env references and follows ``!include``.

    ``chain`` holds the files being read, outermost first; it locates
    relative includes and catches include loops.
    """

    def __init__(self, stream, chain: tuple[Path, ...]) -> None:
        super().__init__(stream)
        self.chain = chain

    def construct_env_str(self, node: yaml.ScalarNode) -> str:
        return expand_env(self.construct_scalar(node))

    def construct_include(self, node: yaml.ScalarNode) -> Any:
        target = Path(expand_env(self.construct_scalar(node))).expanduser()
        if not target.is_absolute():
            target = self.chain[-1].parent / target
        return read_yaml(target.resolve(), self.chain)


_ConfigYamlLoader.add_constructor(
    "tag:yaml.org,2002:str", _ConfigYamlLoader.construct_env_str
)
_ConfigYamlLoader.add_constructor("!include", _ConfigYamlLoader.construct_include)


def read_yaml(path: Path, chain: tuple[Path, ...] = ()) -> Any:
    """Parse one YAML file, following its includes.

    Raises:
        FileNotFoundError: If *path* (or an included file) is missing.
        ValueError: If an include refers back to a file being read.
    """
    if path in chain:
        loop = " -> ".join(str(p) for p in (*chain, path))
        raise ValueError(f"Circular include detected: {loop}")
    if not path.is_file():
        origin = f" (included from {chain[-1]})" if chain else ""
        raise FileNotFoundError(f"Config file not found: {path}{origin}")

    with path.open(encoding="utf-8") as fh:
        loader = _ConfigYamlLoader(fh, (*chain, path))
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


def discover_config_files() -> list[Path]:
    """Existing config files, highest precedence first."""
    explicit = os.environ.get(CONFIG_ENV_VAR)
    candidates = [Path(explicit).expanduser().resolve()] if explicit else []
    project = Path.cwd() / PROJECT_DIR
    candidates += [
        project / "config.yml",
        project / "config.yaml",
        Path.home() / ".config" / "dictionary_sync" / "config.yml",
    ]
    return [p for p in candidates if p.is_file()]


def read_sections(path: Path) -> dict[str, dict[str, Any]]:
    """Read the known sections of one config file and validate them.

    A file whose top level is not a mapping is skipped with a warning, as
    are unknown top-level keys.

    Raises:
        ValueError: If a section is not a mapping or holds invalid values.
    """
    data = read_yaml(path.resolve())
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring %s: top level is a %s, not a mapping",
            path,
            type(data).__name__,
        )
        return {}

    unknown = sorted(str(k) for k in data if k not in SECTIONS)
    if unknown:
        logger.warning(
            "Ignoring unknown section(s) in %s: %s", path, ", ".join(unknown)
        )

    sections: dict[str, dict[str, Any]] = {}
    for name in SECTIONS:
        body = data.get(name)
        if body is None:
            continue
        if not isinstance(body, dict):
            raise ValueError(f"{path}: section '{name}' must be a mapping")
        sections[name] = body

    try:
        build_config(sections)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration in {path}: {exc}") from exc
    return sections


def load_hierarchical_config() -> dict[str, dict[str, Any]]:
    """Merge the sections of every discovered file.

    Returns an empty dict when no config file exists.
    """
    merged: dict[str, dict[str, Any]] = {}
    for path in reversed(discover_config_files()):
        logger.debug("Reading config %s", path)
        for name, body in read_sections(path).items():
            merged.setdefault(name, {}).update(body)
    return merged


def load_unified_config() -> UnifiedConfig:
    """Discover, merge and validate the config files in one step."""
    return build_config(load_hierarchical_config())
