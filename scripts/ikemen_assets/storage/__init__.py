"""
Storage backends for the asset toolkit.
A live directory (read/write) and a frozen file snapshot (read-only) behind one contract.
"""

from .base import (
    StorageRoot, StorageEntry, EntryKind,
    normalize_asset_path, split_asset_path, split_parent
)
from .directory import DirectoryRoot
from .snapshot import SnapshotRoot
from .selection import open_root, select_root

__all__ = [
    "StorageRoot",
    "StorageEntry",
    "EntryKind",
    "DirectoryRoot",
    "SnapshotRoot",
    "open_root",
    "select_root",
    "normalize_asset_path",
    "split_asset_path",
    "split_parent",
]
