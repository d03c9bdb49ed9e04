"""Storage abstractions for work records."""

from .json_store import SessionStore, write_atomic

__all__ = ["SessionStore", "write_atomic"]
