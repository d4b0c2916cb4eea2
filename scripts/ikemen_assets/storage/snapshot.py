"""
Enumerated root: a frozen flat list of files gathered once at selection time.

Paths carry a synthetic top-level folder (the name of the directory the user
picked, as a browser reports it in ``webkitRelativePath``). The prefix is
stripped whenever a true relative path is needed and the hierarchy is rebuilt
from the flat list on every call.
"""

import os
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..errors import CapabilityDenied, NotFound, map_os_error
from .base import EntryKind, StorageEntry, StorageRoot, split_asset_path

logger = logging.getLogger(__name__)


class SnapshotRoot(StorageRoot):
    """Read-only root over (prefixed path, content) pairs."""

    def __init__(self, files: Iterable[Tuple[str, bytes]], name: Optional[str] = None):
        self._files: Tuple[Tuple[str, bytes], ...] = tuple(
            (path.replace("\\", "/"), bytes(content)) for path, content in files
        )
        self._name = name

    @classmethod
    def from_directory(cls, path: Union[str, Path]) -> "SnapshotRoot":
        """
        Gather every file below a directory into a snapshot.

        Each path is prefixed with the directory's own name.

        Raises:
            NotFound: If the path is not a directory
            PermissionDenied: If a file cannot be read
        """
        root = Path(path)
        if not root.is_dir():
            raise NotFound(str(root))

        files = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for filename in sorted(filenames):
                full_path = Path(dirpath) / filename
                relative = full_path.relative_to(root).as_posix()
                try:
                    files.append((f"{root.name}/{relative}", full_path.read_bytes()))
                except OSError as e:
                    raise map_os_error(e, relative) from e

        logger.debug(f"Snapshot of {root} holds {len(files)} files")
        return cls(files, name=root.name)

    @staticmethod
    def _strip_prefix(path: str) -> List[str]:
        segments = [segment for segment in path.split("/") if segment]
        if len(segments) >= 2:
            return segments[1:]
        return segments

    def _relative_files(self) -> Dict[str, bytes]:
        relative: Dict[str, bytes] = {}
        for path, content in self._files:
            key = "/".join(self._strip_prefix(path))
            relative.setdefault(key, content)
        return relative

    @property
    def name(self) -> str:
        if self._name:
            return self._name
        for path, _ in self._files:
            segments = [segment for segment in path.split("/") if segment]
            if len(segments) >= 2:
                return segments[0]
        return "snapshot"

    @property
    def can_write(self) -> bool:
        return False

    @property
    def paths(self) -> List[str]:
        """True relative paths of every file in the snapshot."""
        return sorted(self._relative_files())

    def list_entries(self, relative_dir: str = "") -> List[StorageEntry]:
        try:
            prefix = split_asset_path(relative_dir)
        except ValueError:
            raise NotFound(relative_dir)

        depth = len(prefix)
        entries: Dict[str, EntryKind] = {}
        for path in self._relative_files():
            segments = path.split("/")
            if len(segments) <= depth or segments[:depth] != prefix:
                continue
            child = segments[depth]
            if len(segments) == depth + 1:
                entries.setdefault(child, EntryKind.FILE)
            else:
                entries[child] = EntryKind.DIRECTORY

        if prefix and not entries:
            raise NotFound(relative_dir)
        return [StorageEntry(name, kind) for name, kind in sorted(entries.items())]

    def read_file(self, relative_path: str) -> bytes:
        try:
            key = "/".join(split_asset_path(relative_path))
        except ValueError:
            raise NotFound(relative_path)
        content = self._relative_files().get(key)
        if content is None:
            raise NotFound(relative_path)
        return content

    def write_file(self, relative_path: str, data: bytes) -> None:
        raise CapabilityDenied(relative_path, "snapshot roots are read-only")

    def ensure_subdirectory(self, relative_path: str) -> str:
        raise CapabilityDenied(relative_path, "snapshot roots are read-only")

    def has_file(self, relative_path: str) -> bool:
        try:
            self.read_file(relative_path)
        except NotFound:
            return False
        return True

    def __len__(self) -> int:
        return len(self._files)
