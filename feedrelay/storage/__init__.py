"""
FeedRelay Storage Layer
=======================

File-backed persistence of the delivery checkpoint.
"""

from .checkpoint_store import CheckpointStore

__all__ = [
    "CheckpointStore",
]
