"""
Character portrait lookup.

Reads a character definition, follows its ``sprite`` entry to the sprite
container next to it and decodes the portrait. A portrait is cosmetic, so
every failure ends in None rather than an exception.
"""

import logging
import re
from typing import Optional

from .config import AssetConfig
from .errors import NotFound
from .sprites.pcx import DecodedImage
from .sprites.sff import extract_portrait
from .storage.base import StorageRoot, normalize_asset_path, split_parent

logger = logging.getLogger(__name__)

SPRITE_LINE = re.compile(r"^\s*sprite\s*=\s*(.*)$", re.IGNORECASE)


def parse_sprite_filename(text: str) -> Optional[str]:
    """
    Find the sprite container named by a definition file.

    Only the first ``sprite = file[, params]`` line counts; comments after
    ``;`` and any parameter list are ignored.
    """
    for line in text.splitlines():
        match = SPRITE_LINE.match(line)
        if not match:
            continue
        value = match.group(1).split(";", 1)[0]
        filename = value.split(",", 1)[0].strip().strip('"')
        return filename or None
    return None


def read_case_insensitive(root: StorageRoot, relative_path: str) -> bytes:
    """
    Read a file, retrying with a case-insensitive match on its name.

    Definition files are often written on case-insensitive filesystems, so
    ``KFM.SFF`` may refer to ``kfm.sff``.

    Raises:
        NotFound: If no file matches
    """
    try:
        return root.read_file(relative_path)
    except NotFound:
        pass

    parent, name = split_parent(relative_path)
    wanted = name.lower()
    for entry in root.list_entries(parent):
        if entry.is_file and entry.name.lower() == wanted:
            return root.read_file(f"{parent}/{entry.name}" if parent else entry.name)
    raise NotFound(relative_path)


def get_portrait(definition_path: str, root: Optional[StorageRoot],
                 config: Optional[AssetConfig] = None) -> Optional[DecodedImage]:
    """
    Decode the portrait of the character defined at ``definition_path``.

    Args:
        definition_path: Definition file path relative to the root
        root: Root the character lives in
        config: Toolkit configuration

    Returns:
        Decoded portrait, or None if anything along the way is missing or broken
    """
    if root is None:
        return None

    config = config or AssetConfig()
    try:
        text = read_case_insensitive(root, definition_path).decode("latin-1")
        sprite_name = parse_sprite_filename(text)
        if not sprite_name:
            logger.debug(f"No sprite entry in {definition_path}")
            return None

        directory, _ = split_parent(definition_path)
        sprite_path = normalize_asset_path(f"{directory}/{sprite_name}" if directory else sprite_name)
        blob = read_case_insensitive(root, sprite_path)
        return extract_portrait(blob, config)
    except Exception as e:
        logger.warning(f"Failed to load portrait for {definition_path}: {e}")
        return None
