"""Tracker of pending per-item actions (deletes, out-of-sync markers).

A delete of a root item is recorded here so the surrounding system can
replay it on other environments; a later successful export of the same
key clears every action recorded against it.
"""

from __future__ import annotations

import logging
import threading

from .models import ITEM_TYPE, ActionType, TrackedAction

logger = logging.getLogger(__name__)


class ActionTracker:
    """Thread-safe list of ``TrackedAction`` records."""

    def __init__(self) -> None:
        self._actions: list[TrackedAction] = []
        self._lock = threading.Lock()

    def add_action(
        self, action: ActionType, key: str, item_type: str = ITEM_TYPE
    ) -> TrackedAction:
        """Record *action* for *key*, replacing an identical pending one."""
        record = TrackedAction(action=action, key=key, item_type=item_type)
        with self._lock:
            self._actions = [
                a
                for a in self._actions
                if not (
                    a.action == action
                    and a.key == key
                    and a.item_type == item_type
                )
            ]
            self._actions.append(record)
        logger.info("Tracked %s action for %s", action.value, key)
        return record

    def remove_actions(self, key: str, item_type: str = ITEM_TYPE) -> int:
        """Drop every action recorded for *key*.  Returns how many."""
        with self._lock:
            before = len(self._actions)
            self._actions = [
                a
                for a in self._actions
                if not (a.key == key and a.item_type == item_type)
            ]
            removed = before - len(self._actions)
        if removed:
            logger.debug("Cleared %d tracked action(s) for %s", removed, key)
        return removed

    def actions(self, key: str | None = None) -> list[TrackedAction]:
        with self._lock:
            if key is None:
                return list(self._actions)
            return [a for a in self._actions if a.key == key]
