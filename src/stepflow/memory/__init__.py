"""Per-user skill memory.

A memory is a serialized preference addressed by (package, user, key):

    states
    ├── key          # e.g. "budget"
    ├── value        # JSON bytes
    ├── package_id   # skill namespace, e.g. "shopping"
    └── user_id

Writes are upserts, so the last write for a key wins. Sequencers read and
write memories through the MemoryBackend protocol; MemoryStore is the
SQLAlchemy implementation.
"""

from stepflow.memory.base import MemoryBackend
from stepflow.memory.entry import Memory
from stepflow.memory.store import MemoryStore

__all__ = [
    "Memory",
    "MemoryBackend",
    "MemoryStore",
]
