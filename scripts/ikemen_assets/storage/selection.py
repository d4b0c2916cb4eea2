"""
Root selection helpers.
A root is chosen once per session through a picker and held by the caller.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from ..errors import NotFound, OperationCancelled
from .base import StorageRoot
from .directory import DirectoryRoot
from .snapshot import SnapshotRoot

logger = logging.getLogger(__name__)

Picker = Callable[[], Optional[Union[str, Path]]]


def open_root(path: Union[str, Path], snapshot: bool = False) -> StorageRoot:
    """
    Open a directory as a storage root.

    Args:
        path: Directory to open
        snapshot: Gather the directory into a read-only snapshot instead of
            opening it for read/write access

    Raises:
        NotFound: If the path is not a directory
    """
    path = Path(path).expanduser()
    if not path.is_dir():
        raise NotFound(str(path))

    if snapshot:
        return SnapshotRoot.from_directory(path)
    return DirectoryRoot(path)


def select_root(picker: Picker, snapshot: bool = False) -> StorageRoot:
    """
    Ask a picker for a directory and open it.

    Raises:
        OperationCancelled: If the picker returned nothing
        NotFound: If the chosen path is not a directory
    """
    choice = picker()
    if not choice:
        raise OperationCancelled("directory picker")

    root = open_root(choice, snapshot=snapshot)
    logger.info(f"Selected root {root!r}")
    return root
