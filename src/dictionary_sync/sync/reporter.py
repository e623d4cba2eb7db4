"""Outcome formatting functions.

Provides human-readable and machine-readable output for sync operations:

- ``format_outcomes`` -- summary plus per-change sections.
- ``format_tracked_actions`` -- pending actions recorded by the tracker.
- ``outcomes_to_json`` -- structured dict for MCP tool output.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .models import ChangeType

if TYPE_CHECKING:
    from .models import SyncOutcome, TrackedAction

# Display order and section titles for successful outcomes
_SECTIONS: list[tuple[ChangeType, str]] = [
    (ChangeType.IMPORT, "Imported"),
    (ChangeType.UPDATE, "Would update"),
    (ChangeType.EXPORT, "Exported"),
    (ChangeType.DELETE, "Deleted"),
]

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_outcomes(title: str, outcomes: Sequence[SyncOutcome]) -> str:
    """Format a list of outcomes as human-readable text.

    Sections are only included when they contain at least one outcome.
    Unchanged items are summarised by count only.

    Args:
        title: Header line, e.g. ``"Export all"``.
        outcomes: Outcomes to report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = [title, ""]

    counts = Counter(o.change for o in outcomes)
    errors = [o for o in outcomes if not o.success]
    lines.append(
        f"Processed {len(outcomes)} items: "
        f"{counts[ChangeType.IMPORT]} imported, "
        f"{counts[ChangeType.EXPORT]} exported, "
        f"{counts[ChangeType.UPDATE]} to update, "
        f"{counts[ChangeType.DELETE]} deleted, "
        f"{len(errors)} errors"
    )
    lines.append("")

    for change, label in _SECTIONS:
        section = [o for o in outcomes if o.success and o.change == change]
        if not section:
            continue
        lines.append(f"{label}:")
        for o in section:
            target = f" -> {o.file_name}" if o.file_name else ""
            lines.append(f"  {o.key}{target}")
        lines.append("")

    if errors:
        lines.append("Errors:")
        for o in errors:
            lines.append(f"  {o.key}: {o.error}")
        lines.append("")

    unchanged = counts[ChangeType.NO_CHANGE]
    if unchanged > 0:
        lines.append(f"Unchanged: {unchanged} items")
        lines.append("")

    notes = sorted({o.message for o in outcomes if o.message})
    for note in notes:
        lines.append(f"Note: {note}")

    return "\n".join(lines).rstrip()


def format_tracked_actions(actions: Sequence[TrackedAction]) -> str:
    if not actions:
        return "No pending actions."
    lines = [f"{len(actions)} pending action(s):"]
    for a in actions:
        lines.append(f"  [{a.action.value}] {a.key} ({a.recorded_at})")
    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def outcomes_to_json(outcomes: Sequence[SyncOutcome]) -> dict:
    """Convert outcomes to a structured dict for JSON serialisation.

    Suitable for MCP ``structuredContent`` output.

    Args:
        outcomes: The outcomes.

    Returns:
        Dict with counts and per-outcome details.
    """
    counts = Counter(o.change.value for o in outcomes)
    return {
        "counts": {
            "total": len(outcomes),
            "errors": sum(1 for o in outcomes if not o.success),
            **{change.value: counts[change.value] for change in ChangeType},
        },
        "results": [
            o.model_dump(mode="json", exclude_none=True) for o in outcomes
        ],
    }
