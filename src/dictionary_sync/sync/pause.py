"""Process-wide "synchronisation paused" flag.

The surrounding system pauses synchronisation while it drives bulk store
mutations itself (for example an import), so the save/delete reactors do
not feed those mutations back into exports.  The reactors only read it.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class SyncPause:
    """Thread-safe pause flag with a context manager helper."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def is_paused(self) -> bool:
        return self._event.is_set()

    def pause(self) -> None:
        self._event.set()

    def resume(self) -> None:
        self._event.clear()

    @contextmanager
    def paused(self) -> Iterator[None]:
        """Pause for the duration of the ``with`` block.

        A flag that was already set when the block started is left set.
        """
        was_paused = self.is_paused
        self.pause()
        try:
            yield
        finally:
            if not was_paused:
                self.resume()
