"""Create-only synchronisation of dictionary trees between a node store and disk."""

__version__ = "0.1.0"
