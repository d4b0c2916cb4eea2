"""
Abstract base class for storage roots.
Defines the read/enumerate/write contract shared by every backend.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple


class EntryKind(Enum):
    """Kind of an entry inside a storage root."""
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class StorageEntry:
    """A single child of a directory inside a storage root."""
    name: str
    kind: EntryKind

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


def split_asset_path(path: str) -> List[str]:
    """
    Split a relative path into normalized segments.

    Backslashes become separators; empty and '.' segments are dropped.

    Raises:
        ValueError: If the path climbs out of the root
    """
    segments = []
    for segment in path.replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            raise ValueError(f"Path escapes the root: {path!r}")
        segments.append(segment)
    return segments


def normalize_asset_path(path: str) -> str:
    """Return the forward-slash normalized form of a relative path."""
    return "/".join(split_asset_path(path))


def split_parent(path: str) -> Tuple[str, str]:
    """Split a normalized path into (parent directory, file name)."""
    parent, _, name = normalize_asset_path(path).rpartition("/")
    return parent, name


class StorageRoot(ABC):
    """Abstract base class for a directory subtree selected by the user."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name of the root."""
        pass

    @property
    @abstractmethod
    def can_write(self) -> bool:
        """Whether files can be created or overwritten through this root."""
        pass

    @abstractmethod
    def list_entries(self, relative_dir: str = "") -> List[StorageEntry]:
        """
        List the immediate children of a directory.

        Args:
            relative_dir: Directory relative to the root ("" for the root itself)

        Returns:
            Entries sorted by name

        Raises:
            NotFound: If the directory does not exist
            PermissionDenied: If the directory cannot be read
        """
        pass

    @abstractmethod
    def read_file(self, relative_path: str) -> bytes:
        """
        Read the full contents of a file.

        Raises:
            NotFound: If the file does not exist
            PermissionDenied: If the file cannot be read
        """
        pass

    @abstractmethod
    def write_file(self, relative_path: str, data: bytes) -> None:
        """
        Create or overwrite a file, creating parent directories as needed.

        Raises:
            CapabilityDenied: If the root cannot be written
            PermissionDenied: If access to the target was refused
        """
        pass

    @abstractmethod
    def ensure_subdirectory(self, relative_path: str) -> str:
        """
        Create a directory and its parents if missing.

        Returns:
            The normalized relative path of the directory

        Raises:
            CapabilityDenied: If the root cannot be written
        """
        pass

    @abstractmethod
    def has_file(self, relative_path: str) -> bool:
        """Check whether a file exists at the given path."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
