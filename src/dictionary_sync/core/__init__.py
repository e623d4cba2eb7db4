"""Node store, change notification channels and async helpers."""

from .async_utils import run_sync
from .events import EventChannel, Subscription
from .models import Node
from .store import InMemoryNodeStore, NodeStore

__all__ = [
    "EventChannel",
    "InMemoryNodeStore",
    "Node",
    "NodeStore",
    "Subscription",
    "run_sync",
]
