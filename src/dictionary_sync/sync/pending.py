"""Thread-safe set of root keys awaiting re-export after a child delete."""

from __future__ import annotations

import threading
from collections.abc import Hashable, Iterable
from uuid import UUID


def batch_token(node_ids: Iterable[UUID]) -> frozenset[UUID]:
    """Identify a delete batch by the ids of the items it removes.

    The deleting and deleted notifications of one store delete carry the
    same items, so both phases derive the same token.
    """
    return frozenset(node_ids)


class PendingDeleteSet:
    """Insertion-ordered set of root keys with per-batch ownership.

    Each queued key remembers the delete batches that queued it.  A batch's
    ``drain`` releases only its own claims and returns the keys no other
    in-flight batch still holds, so a root is re-exported once the last
    batch touching it has committed.  Keys queued without a batch are
    released by any drain.  ``drain()`` with no batch flushes everything.
    """

    def __init__(self) -> None:
        self._owners: dict[str, set[Hashable]] = {}
        self._lock = threading.Lock()

    def add(self, key: str, batch: Hashable | None = None) -> bool:
        """Queue *key* for *batch*.  Returns False if it was already queued."""
        with self._lock:
            owners = self._owners.get(key)
            if owners is None:
                self._owners[key] = {batch}
                return True
            owners.add(batch)
            return False

    def drain(self, batch: Hashable | None = None) -> list[str]:
        """Release *batch*'s claims and return the keys now free to flush."""
        with self._lock:
            if batch is None:
                keys = list(self._owners)
                self._owners.clear()
                return keys

            keys = []
            for key, owners in self._owners.items():
                owners.discard(batch)
                owners.discard(None)
                if not owners:
                    keys.append(key)
            for key in keys:
                del self._owners[key]
        return keys

    def snapshot(self) -> list[str]:
        with self._lock:
            return list(self._owners)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._owners

    def __len__(self) -> int:
        with self._lock:
            return len(self._owners)
