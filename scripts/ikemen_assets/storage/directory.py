"""
Capability root backed by a live directory on disk.
"""

import logging
from pathlib import Path
from typing import List, Union

from ..errors import NotFound, map_os_error
from .base import EntryKind, StorageEntry, StorageRoot, normalize_asset_path, split_asset_path

logger = logging.getLogger(__name__)


class DirectoryRoot(StorageRoot):
    """Read/write access to a directory subtree."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @property
    def name(self) -> str:
        return self.path.name or str(self.path)

    @property
    def can_write(self) -> bool:
        return True

    def _resolve(self, relative_path: str) -> Path:
        try:
            segments = split_asset_path(relative_path)
        except ValueError:
            raise NotFound(relative_path)
        return self.path.joinpath(*segments)

    def list_entries(self, relative_dir: str = "") -> List[StorageEntry]:
        directory = self._resolve(relative_dir)
        context = relative_dir or self.name
        entries = []
        try:
            for child in directory.iterdir():
                if child.is_dir():
                    entries.append(StorageEntry(child.name, EntryKind.DIRECTORY))
                elif child.is_file():
                    entries.append(StorageEntry(child.name, EntryKind.FILE))
        except OSError as e:
            raise map_os_error(e, context) from e
        return sorted(entries, key=lambda entry: entry.name)

    def read_file(self, relative_path: str) -> bytes:
        try:
            return self._resolve(relative_path).read_bytes()
        except OSError as e:
            raise map_os_error(e, relative_path) from e

    def write_file(self, relative_path: str, data: bytes) -> None:
        target = self._resolve(relative_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, 'wb') as f:
                f.write(data)
        except OSError as e:
            raise map_os_error(e, relative_path, writing=True) from e
        logger.debug(f"Wrote {len(data)} bytes to {target}")

    def ensure_subdirectory(self, relative_path: str) -> str:
        directory = self._resolve(relative_path)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise map_os_error(e, relative_path, writing=True) from e
        return normalize_asset_path(relative_path)

    def has_file(self, relative_path: str) -> bool:
        try:
            return self._resolve(relative_path).is_file()
        except (NotFound, OSError):
            return False
