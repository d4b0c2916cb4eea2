"""
SFF v1 sprite container parser.

The container is a blob of linked 32-byte subfile records, each holding the
absolute offset of the next. Offsets come straight from the file, so every
one of them is bounds checked before use and the chain must keep moving
forward.
"""

import logging
import struct
from dataclasses import dataclass
from typing import Iterator, Optional

from ..config import AssetConfig
from ..errors import FormatError
from .pcx import DecodedImage, decode_pcx

logger = logging.getLogger(__name__)

SIGNATURE = b"ElecbyteSpr"
FIRST_RECORD_OFFSET = 16
RECORD = struct.Struct("<IIhhHHHHH2xI4x")
RECORD_SIZE = RECORD.size
DEFAULT_MAX_RECORDS = 3000


@dataclass(frozen=True)
class SubfileRecord:
    """One entry of the linked subfile chain."""
    offset: int
    next_offset: int
    data_length: int
    x: int
    y: int
    group: int
    index: int
    link_index: int
    format: int
    palette_id: int
    data_offset: int

    @property
    def payload_offset(self) -> int:
        """Where the payload starts; 0 in the record means right after the subheader."""
        return self.data_offset or self.offset + RECORD_SIZE


class SpriteContainer:
    """A sprite container blob with a cursor over its subfile chain."""

    def __init__(self, blob: bytes, max_records: int = DEFAULT_MAX_RECORDS):
        if blob[:len(SIGNATURE)] != SIGNATURE:
            raise FormatError("missing ElecbyteSpr signature", "sprite container")
        self.blob = blob
        self.max_records = max_records

    def read_record(self, offset: int) -> Optional[SubfileRecord]:
        """Read the record at an offset, or None if it would run past the blob."""
        if offset < 0 or offset + RECORD_SIZE > len(self.blob):
            return None
        fields = RECORD.unpack_from(self.blob, offset)
        return SubfileRecord(offset, *fields)

    def records(self) -> Iterator[SubfileRecord]:
        """
        Walk the subfile chain from the first record.

        Stops at a zero or non-advancing next offset, at a record that would
        read past the blob and after ``max_records`` records.
        """
        offset = FIRST_RECORD_OFFSET
        for _ in range(self.max_records):
            record = self.read_record(offset)
            if record is None:
                return

            yield record

            if record.next_offset == 0 or record.next_offset <= offset:
                return
            offset = record.next_offset

        logger.debug(f"Stopped subfile traversal after {self.max_records} records")

    def payload(self, record: SubfileRecord) -> Optional[bytes]:
        """Return a record's payload bytes, or None if they fall outside the blob."""
        start = record.payload_offset
        end = start + record.data_length
        if record.data_length == 0 or end > len(self.blob):
            logger.debug(
                f"Rejecting subfile {record.group},{record.index}: "
                f"payload {start}..{end} outside {len(self.blob)} byte blob"
            )
            return None
        return self.blob[start:end]

    def decode(self, record: SubfileRecord, max_dimension: int) -> Optional[DecodedImage]:
        """Decode a record's payload as a PCX image."""
        data = self.payload(record)
        if data is None:
            return None
        return decode_pcx(data, max_dimension=max_dimension)


def extract_portrait(blob: bytes, config: Optional[AssetConfig] = None) -> Optional[DecodedImage]:
    """
    Find and decode the portrait sprite in a container.

    The preferred (group, index) wins as soon as it is found; the fallback
    index is kept until the chain ends in case the preferred one follows.

    Returns:
        The decoded portrait, or None if the container has neither sprite
    """
    config = config or AssetConfig()
    try:
        container = SpriteContainer(blob, max_records=config.max_subfiles)
    except FormatError as e:
        logger.debug(f"Not a sprite container: {e}")
        return None

    fallback: Optional[DecodedImage] = None
    for record in container.records():
        if record.group != config.portrait_group:
            continue

        if record.index == config.portrait_index:
            image = container.decode(record, config.max_image_dimension)
            if image is not None:
                return image
        elif record.index == config.portrait_fallback_index and fallback is None:
            fallback = container.decode(record, config.max_image_dimension)

    return fallback
