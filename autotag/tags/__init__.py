"""In-memory tag storage."""

from autotag.tags.store import MemoryTag, MemoryTagStore

__all__ = ["MemoryTag", "MemoryTagStore"]
