"""
Archive installer for characters, stages and screenpacks distributed as zip files.

An install request moves through an explicit state machine:
FETCHING -> (UNPACKING | DOWNLOAD_HANDOFF) -> WRITING -> DONE | FAILED.
"""

import io
import logging
import webbrowser
import zipfile
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union
from urllib.parse import unquote, urlparse

import requests

from .config import AssetConfig
from .errors import AssetError, FormatError, NetworkError
from .scanner import AssetKind
from .storage.base import StorageRoot, normalize_asset_path

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


class InstallState(Enum):
    """States of one install request."""
    FETCHING = "fetching"
    UNPACKING = "unpacking"
    DOWNLOAD_HANDOFF = "download_handoff"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class WrittenPath:
    """Files were written; ``path`` is the reference to the new asset."""
    path: str
    files: List[str] = field(default_factory=list)


@dataclass
class DownloadHandoff:
    """The user was handed the download; nothing was written by the installer."""
    url: str
    archive_name: Optional[str] = None
    guessed_path: Optional[str] = None

    @property
    def path(self) -> Optional[str]:
        return self.guessed_path


@dataclass
class Failed:
    """The install failed; ``files`` lists what was written before the failure."""
    reason: str
    cause: Optional[BaseException] = None
    files: List[str] = field(default_factory=list)

    @property
    def path(self) -> Optional[str]:
        return None


InstallOutcome = Union[WrittenPath, DownloadHandoff, Failed]


@dataclass
class InstallContext:
    """State threaded through one install request."""
    url: str
    kind: AssetKind
    state: InstallState = InstallState.FETCHING
    history: List[InstallState] = field(default_factory=list)
    written: List[str] = field(default_factory=list)
    progress: Optional[ProgressCallback] = None

    def transition(self, state: InstallState, label: Optional[str] = None) -> None:
        """Move to a new state and report a progress label."""
        self.state = state
        self.history.append(state)
        logger.debug(f"Install of {self.url}: {state.value}")
        if label and self.progress:
            self.progress(label)


@dataclass
class LayoutPlan:
    """Where each archive entry is written and which path is reported."""
    entries: List[Tuple[str, str]]
    primary: Optional[str]
    loose: bool = False


class HandoffHandler(ABC):
    """Hands a download to the user when the installer cannot finish it."""

    @abstractmethod
    def open_link(self, url: str) -> None:
        """Open the download URL for the user."""
        pass

    @abstractmethod
    def offer_download(self, filename: str, data: bytes) -> Optional[Path]:
        """Give the fetched archive to the user as a single file."""
        pass


class BrowserHandoff(HandoffHandler):
    """Opens links in the web browser and saves archives into a downloads folder."""

    def __init__(self, downloads_dir: Union[str, Path] = "downloads"):
        self.downloads_dir = Path(downloads_dir)

    def open_link(self, url: str) -> None:
        webbrowser.open(url, new=2)

    def offer_download(self, filename: str, data: bytes) -> Optional[Path]:
        self.downloads_dir.mkdir(parents=True, exist_ok=True)
        target = self.downloads_dir / filename
        with open(target, 'wb') as f:
            f.write(data)
        logger.info(f"Saved archive to {target}")
        return target


def archive_filename(url: str, kind: AssetKind) -> str:
    """Name the archive after the last URL segment."""
    name = unquote(urlparse(url).path.rsplit("/", 1)[-1])
    return name or f"{AssetKind(kind).value}_download.zip"


def plan_layout(names: List[str], kind: AssetKind, config: Optional[AssetConfig] = None) -> LayoutPlan:
    """
    Decide where every archive entry goes.

    A character archive is loose when its definition file sits at the archive
    root; its entries are moved under a folder named after that file. All other
    archives are written as they are.

    Args:
        names: Archive entry names in archive order
        kind: Asset kind being installed
        config: Toolkit configuration

    Returns:
        Layout plan; ``primary`` is None when no definition file was found

    Raises:
        FormatError: If an entry would land outside the root
    """
    config = config or AssetConfig()
    kind = AssetKind(kind)

    files = []
    for name in names:
        if name.endswith("/"):
            continue
        try:
            normalized = normalize_asset_path(name)
        except ValueError as e:
            raise FormatError(str(e), name) from e
        if normalized:
            files.append((name, normalized))

    def basename(path: str) -> str:
        return path.rsplit("/", 1)[-1]

    definitions = [path for _, path in files if config.is_definition(basename(path))]
    primary = None
    if kind is AssetKind.CHARACTER:
        preferred = [path for path in definitions if not config.is_reserved(basename(path))]
        primary = (preferred or definitions or [None])[0]
    elif kind is AssetKind.SCREENPACK:
        motifs = [path for path in definitions if basename(path).lower() == config.motif_filename.lower()]
        primary = (motifs or definitions or [None])[0]
    else:
        primary = (definitions or [None])[0]

    if primary is None:
        return LayoutPlan(entries=[(source, target) for source, target in files], primary=None)

    if kind is AssetKind.CHARACTER:
        loose = "/" not in primary
        if loose:
            folder = primary[:-len(config.definition_extension)]
            return LayoutPlan(
                entries=[(source, f"{folder}/{target}") for source, target in files],
                primary=f"{folder}/{primary}",
                loose=True,
            )
        return LayoutPlan(entries=list(files), primary=primary)

    prefix = config.stages_prefix if kind is AssetKind.STAGE else config.data_prefix
    return LayoutPlan(entries=list(files), primary=f"{prefix}/{primary}")


class ArchiveInstaller:
    """Downloads an archive and installs it into a storage root."""

    def __init__(self, config: Optional[AssetConfig] = None,
                 handoff: Optional[HandoffHandler] = None,
                 session: Optional[requests.Session] = None):
        self.config = config or AssetConfig()
        self.handoff = handoff or BrowserHandoff(self.config.downloads_dir)
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': self.config.user_agent
        })

    def install(self, url: str, root: Optional[StorageRoot], kind: AssetKind,
                progress: Optional[ProgressCallback] = None) -> InstallOutcome:
        """
        Install the archive at ``url`` into ``root``.

        Args:
            url: Direct download URL of a zip archive
            root: Root to install into; None or a read-only root triggers a
                download handoff
            kind: Asset kind being installed
            progress: Receives human readable stage labels

        Returns:
            WrittenPath, DownloadHandoff or Failed
        """
        context = InstallContext(url=url, kind=AssetKind(kind), progress=progress)
        context.transition(InstallState.FETCHING, "Downloading...")

        try:
            data = self._fetch(url)
        except NetworkError as e:
            logger.warning(f"Fetch failed ({e}), handing the link to the user")
            context.transition(InstallState.DOWNLOAD_HANDOFF, "Download failed. Opening link instead...")
            self._safe_handoff(self.handoff.open_link, url)
            context.transition(InstallState.DONE, "Done.")
            return DownloadHandoff(url=url)

        if root is None or not root.can_write:
            return self._hand_off_archive(context, data)

        try:
            return self._unpack_and_write(context, data, root)
        except (AssetError, OSError) as e:
            logger.error(f"Failed to install {url}: {e}")
            context.transition(InstallState.FAILED, f"Failed: {e}")
            return Failed(reason=str(e), cause=e, files=list(context.written))

    def _fetch(self, url: str) -> bytes:
        """Download the archive into memory."""
        try:
            logger.info(f"Downloading archive from {url}...")
            response = self.session.get(url, stream=True, timeout=self.config.download_timeout)
            response.raise_for_status()

            data = b"".join(
                chunk for chunk in response.iter_content(chunk_size=self.config.chunk_size) if chunk
            )
            logger.info(f"Downloaded {len(data)} bytes")
            return data

        except requests.RequestException as e:
            raise NetworkError(f"Failed to download archive from {url}: {e}", url) from e

    def _open_archive(self, data: bytes) -> zipfile.ZipFile:
        try:
            return zipfile.ZipFile(io.BytesIO(data), 'r')
        except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise FormatError(f"Invalid zip archive: {e}", "archive") from e

    def _hand_off_archive(self, context: InstallContext, data: bytes) -> DownloadHandoff:
        filename = archive_filename(context.url, context.kind)
        context.transition(InstallState.DOWNLOAD_HANDOFF, "No write access. Downloading ZIP...")
        self._safe_handoff(self.handoff.offer_download, filename, data)

        guessed = None
        try:
            with self._open_archive(data) as archive:
                guessed = plan_layout(archive.namelist(), context.kind, self.config).primary
        except FormatError as e:
            logger.warning(f"Could not read archive for name guessing: {e}")

        context.transition(InstallState.DONE, "Done.")
        return DownloadHandoff(url=context.url, archive_name=filename, guessed_path=guessed)

    def _unpack_and_write(self, context: InstallContext, data: bytes, root: StorageRoot) -> InstallOutcome:
        context.transition(InstallState.UNPACKING, "Unzipping...")
        with self._open_archive(data) as archive:
            plan = plan_layout(archive.namelist(), context.kind, self.config)
            if plan.primary is None:
                raise FormatError(
                    f"archive contains no {self.config.definition_extension} file", context.url
                )

            context.transition(InstallState.WRITING, "Writing files...")
            for source, target in plan.entries:
                try:
                    content = archive.read(source)
                except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError) as e:
                    raise FormatError(f"cannot extract {source}: {e}", source) from e
                root.write_file(target, content)
                context.written.append(target)

        logger.info(f"Installed {len(context.written)} files, registered {plan.primary}")
        context.transition(InstallState.DONE, "Done.")
        return WrittenPath(path=plan.primary, files=list(context.written))

    @staticmethod
    def _safe_handoff(action: Callable, *args) -> None:
        try:
            action(*args)
        except Exception as e:
            logger.warning(f"Download handoff failed: {e}")


def install(url: str, root: Optional[StorageRoot], kind: AssetKind,
            progress: Optional[ProgressCallback] = None,
            config: Optional[AssetConfig] = None,
            handoff: Optional[HandoffHandler] = None) -> InstallOutcome:
    """Install an archive with a fresh installer."""
    return ArchiveInstaller(config=config, handoff=handoff).install(url, root, kind, progress)
