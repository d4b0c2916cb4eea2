"""
Access to the engine's persisted ``save/config.json`` record.
Only the active motif is managed here; other keys are kept as found.
"""

import json
import logging
from typing import Any, Dict, Optional

from .config import AssetConfig
from .errors import AssetError, CapabilityDenied, FormatError
from .storage.base import StorageRoot

logger = logging.getLogger(__name__)

MOTIF_KEYS = ("motif", "Motif")


def read_engine_config(root: Optional[StorageRoot], config: Optional[AssetConfig] = None) -> Optional[Dict[str, Any]]:
    """Read the engine config record, or None if it is missing or unreadable."""
    if root is None:
        return None

    config = config or AssetConfig()
    try:
        data = json.loads(root.read_file(config.engine_config_path).decode("utf-8"))
    except (AssetError, ValueError) as e:
        logger.warning(f"Could not read {config.engine_config_path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"{config.engine_config_path} does not hold a JSON object")
        return None
    return data


def get_active_motif(record: Dict[str, Any]) -> Optional[str]:
    """Return the motif path stored in a config record, with forward slashes."""
    for key in MOTIF_KEYS:
        value = record.get(key)
        if isinstance(value, str) and value:
            return value.replace("\\", "/")
    return None


def build_motif_record(motif_path: str, existing: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return a copy of ``existing`` with the motif set to ``motif_path``."""
    record = dict(existing or {})
    record["motif"] = motif_path
    if "Motif" in record:
        record["Motif"] = motif_path
    return record


def set_active_motif(root: Optional[StorageRoot], motif_path: str,
                     config: Optional[AssetConfig] = None) -> Dict[str, Any]:
    """
    Activate a screenpack by writing its path into the engine config record.

    Returns:
        The record that was written

    Raises:
        CapabilityDenied: If the root cannot be written; callers hand the
            record to the user as a download instead
    """
    config = config or AssetConfig()
    if root is None or not root.can_write:
        raise CapabilityDenied(config.engine_config_path, "root does not support saving files directly")

    record = build_motif_record(motif_path, read_engine_config(root, config))
    try:
        payload = json.dumps(record, indent=2).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise FormatError(f"config record cannot be serialized: {e}", config.engine_config_path) from e

    root.write_file(config.engine_config_path, payload)
    logger.info(f"Activated motif {motif_path}")
    return record
