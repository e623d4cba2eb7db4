"""File handler module: path validation and atomic writes.

Provides the file I/O infrastructure shared by the file repository and
the MCP tools.  Functions are synchronous; callers in async code wrap
them with ``run_sync()``.
"""

import os
import tempfile
from pathlib import Path

# =============================================================================
# Path Validation
# =============================================================================


def validate_file_path(path_str: str) -> Path:
    """Validate and resolve an input file path.

    Args:
        path_str: Absolute path string to an existing file.

    Returns:
        Resolved Path object pointing to the real file.

    Raises:
        ValueError: If path is relative, doesn't exist, or is not a file.
    """
    path = Path(path_str)
    if not path.is_absolute():
        raise ValueError(f"Path must be absolute: {path_str}")
    resolved = path.resolve()
    if not resolved.exists():
        raise ValueError(f"File not found: {path_str}")
    if not resolved.is_file():
        raise ValueError(f"Path is not a file: {path_str}")
    return resolved


def validate_inside(path: Path, base_dir: Path) -> Path:
    """Ensure *path* resolves to a location under *base_dir*.

    Args:
        path: Candidate path.
        base_dir: Directory the path must stay within.

    Returns:
        The resolved path.

    Raises:
        ValueError: If the resolved path escapes *base_dir*.
    """
    resolved = path.resolve()
    base_resolved = base_dir.resolve()
    if not resolved.is_relative_to(base_resolved):
        raise ValueError(
            f"Path is outside base directory: {resolved} not under {base_resolved}"
        )
    return resolved


# =============================================================================
# File Write
# =============================================================================


def write_file(path: Path, content: bytes) -> int:
    """Write bytes to a file atomically, creating parent directories.

    The content goes to a temporary file in the target directory which
    then replaces *path*, so readers never see a partial document.

    Args:
        path: Path to the output file.
        content: Bytes to write.

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return len(content)
