"""
Asset toolkit for IKEMEN GO roster and screenpack editing.

Scans a game's asset tree through either a live directory or a frozen file
snapshot, installs characters, stages and screenpacks from zip archives, and
decodes character portraits from SFF v1 sprite containers.
"""

__version__ = "0.1.0"
__author__ = "IKEMEN Roster Editor Team"

from .config import AssetConfig
from .errors import (
    AssetError, StorageError, PermissionDenied, NotFound, OperationCancelled,
    CapabilityDenied, FormatError, NetworkError
)
from .storage import StorageRoot, DirectoryRoot, SnapshotRoot, open_root, select_root
from .scanner import AssetKind, AssetScanner, scan
from .installer import (
    ArchiveInstaller, InstallState, WrittenPath, DownloadHandoff, Failed, install
)
from .sprites import DecodedImage, decode_pcx, extract_portrait
from .portrait import get_portrait

__all__ = [
    "AssetConfig",
    "AssetError",
    "StorageError",
    "PermissionDenied",
    "NotFound",
    "OperationCancelled",
    "CapabilityDenied",
    "FormatError",
    "NetworkError",
    "StorageRoot",
    "DirectoryRoot",
    "SnapshotRoot",
    "open_root",
    "select_root",
    "AssetKind",
    "AssetScanner",
    "scan",
    "ArchiveInstaller",
    "InstallState",
    "WrittenPath",
    "DownloadHandoff",
    "Failed",
    "install",
    "DecodedImage",
    "decode_pcx",
    "extract_portrait",
    "get_portrait",
]
