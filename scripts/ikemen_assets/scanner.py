"""
Asset tree scanner.

Walks a storage root and lists the definition files of one asset kind. All
three scan modes share the same walk over the storage contract and differ
only in which files they accept and how the reported path is built.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from .config import AssetConfig
from .errors import AssetError, NotFound
from .storage.base import StorageRoot

logger = logging.getLogger(__name__)


class AssetKind(Enum):
    """Kinds of assets the engine loads from definition files."""
    CHARACTER = "character"
    STAGE = "stage"
    SCREENPACK = "screenpack"


class AssetScanner:
    """Scans a storage root for characters, stages and screenpacks."""

    def __init__(self, root: Optional[StorageRoot], config: Optional[AssetConfig] = None):
        self.root = root
        self.config = config or AssetConfig()
        self._handlers: Dict[AssetKind, Callable[[StorageRoot, Set[str]], None]] = {
            AssetKind.CHARACTER: self._scan_characters,
            AssetKind.STAGE: self._scan_stages,
            AssetKind.SCREENPACK: self._scan_motifs,
        }

    def scan(self, kind: AssetKind) -> List[str]:
        """
        Scan the root for definition files of one kind.

        Args:
            kind: Asset kind to look for

        Returns:
            Sorted, de-duplicated relative paths

        Raises:
            NotFound: If no root has been selected
        """
        kind = AssetKind(kind)
        if self.root is None:
            raise NotFound(f"{kind.value} directory (no directory selected)")

        found: Set[str] = set()
        try:
            self._handlers[kind](self.root, found)
        except AssetError as e:
            logger.error(f"Scanning {self.root!r} for {kind.value} assets stopped early: {e}")

        results = sorted(found)
        logger.info(f"Found {len(results)} {kind.value} definitions in {self.root!r}")
        return results

    def _accept_character_file(self, filename: str) -> bool:
        return self.config.is_definition(filename) and not self.config.is_reserved(filename)

    def _scan_characters(self, root: StorageRoot, found: Set[str]) -> None:
        for entry in root.list_entries():
            if entry.is_file:
                if self._accept_character_file(entry.name):
                    found.add(entry.name)
                continue

            try:
                own_name = f"{entry.name}/{entry.name}{self.config.definition_extension}"
                if root.has_file(own_name):
                    found.add(own_name)
                    continue

                # Loose folder with arbitrarily named definitions
                for sub_entry in root.list_entries(entry.name):
                    if sub_entry.is_file and self._accept_character_file(sub_entry.name):
                        found.add(f"{entry.name}/{sub_entry.name}")
            except AssetError as e:
                logger.warning(f"Skipping unreadable character directory {entry.name}: {e}")

    def _scan_stages(self, root: StorageRoot, found: Set[str]) -> None:
        prefix = self.config.stages_prefix
        for entry in root.list_entries():
            if entry.is_file:
                if self.config.is_definition(entry.name):
                    found.add(f"{prefix}/{entry.name}")
                continue

            try:
                for sub_entry in root.list_entries(entry.name):
                    if sub_entry.is_file and self.config.is_definition(sub_entry.name):
                        found.add(f"{prefix}/{entry.name}/{sub_entry.name}")
            except AssetError as e:
                logger.warning(f"Skipping unreadable stage directory {entry.name}: {e}")

    def _scan_motifs(self, root: StorageRoot, found: Set[str]) -> None:
        prefix = self.config.data_prefix
        motif = self.config.motif_filename

        if root.has_file(motif):
            found.add(f"{prefix}/{motif}")

        for entry in root.list_entries():
            if not entry.is_directory:
                continue
            try:
                if root.has_file(f"{entry.name}/{motif}"):
                    found.add(f"{prefix}/{entry.name}/{motif}")
            except AssetError as e:
                logger.warning(f"Skipping unreadable motif directory {entry.name}: {e}")


def scan(root: Optional[StorageRoot], kind: AssetKind, config: Optional[AssetConfig] = None) -> List[str]:
    """Scan a root for definition files of one kind."""
    return AssetScanner(root, config).scan(kind)
