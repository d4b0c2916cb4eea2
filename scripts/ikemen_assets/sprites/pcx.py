"""
Decoder for 8-bit run-length encoded PCX images as stored in SFF v1 sprites.
"""

import logging
import struct
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

HEADER_SIZE = 128
PALETTE_SIZE = 768
PALETTE_MARKER = 0x0C
RLE_FLAG = 0xC0
RLE_COUNT_MASK = 0x3F
DEFAULT_MAX_DIMENSION = 2000


@dataclass
class DecodedImage:
    """RGBA pixels of one decoded sprite, row-major, four bytes per pixel."""
    width: int
    height: int
    pixels: bytes

    def __post_init__(self):
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise ValueError(f"pixel buffer holds {len(self.pixels)} bytes, expected {expected}")

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        """Get the (r, g, b, a) value at a pixel."""
        offset = (y * self.width + x) * 4
        r, g, b, a = self.pixels[offset:offset + 4]
        return r, g, b, a

    def to_image(self) -> Image.Image:
        """Convert to a Pillow RGBA image."""
        return Image.frombytes("RGBA", (self.width, self.height), self.pixels)


def _has_palette(data: bytes) -> bool:
    return len(data) >= HEADER_SIZE + PALETTE_SIZE + 1 and data[-(PALETTE_SIZE + 1)] == PALETTE_MARKER


def _grayscale_palette() -> np.ndarray:
    ramp = np.arange(256, dtype=np.uint8)
    return np.stack([ramp, ramp, ramp], axis=1)


def decode_rle(stream: bytes, expected: int) -> np.ndarray:
    """
    Run-length decode a PCX index stream.

    A byte with both high bits set is a repeat count (low six bits) for the
    byte that follows it; any other byte is a literal index. Decoding stops
    once ``expected`` indices are produced or the stream runs out; missing
    indices stay 0.
    """
    indices = np.zeros(expected, dtype=np.uint8)
    pos = 0
    filled = 0
    length = len(stream)

    while pos < length and filled < expected:
        value = stream[pos]
        pos += 1
        count = 1

        if value & RLE_FLAG == RLE_FLAG:
            count = value & RLE_COUNT_MASK
            if pos >= length:
                break
            value = stream[pos]
            pos += 1

        count = min(count, expected - filled)
        indices[filled:filled + count] = value
        filled += count

    return indices


def decode_pcx(data: bytes, max_dimension: int = DEFAULT_MAX_DIMENSION) -> Optional[DecodedImage]:
    """
    Decode an 8-bit RLE PCX image into RGBA pixels.

    Palette index 0 is the transparent mask colour. A trailing 256 colour
    palette is used when present, a grayscale ramp otherwise.

    Args:
        data: Complete PCX file bytes
        max_dimension: Largest width or height accepted

    Returns:
        Decoded image, or None when the header is unusable
    """
    if len(data) < HEADER_SIZE:
        logger.debug(f"PCX too short: {len(data)} bytes")
        return None

    bits_per_pixel = data[3]
    # Bounding box lives at bytes 4..11 of the PCX header, not 8..15
    x_min, y_min, x_max, y_max = struct.unpack_from("<HHHH", data, 4)
    planes = data[65]
    bytes_per_line = struct.unpack_from("<H", data, 66)[0]

    width = x_max - x_min + 1
    height = y_max - y_min + 1
    if width <= 0 or height <= 0 or width > max_dimension or height > max_dimension:
        logger.debug(f"Rejecting PCX with implausible size {width}x{height}")
        return None

    if bits_per_pixel != 8 or planes not in (0, 1):
        logger.debug(f"Unsupported PCX layout: {bits_per_pixel} bpp, {planes} planes")
        return None

    # Rows are padded to an even length; any other stride is a corrupt header
    if width <= bytes_per_line <= width + 1:
        stride = bytes_per_line
    else:
        logger.debug(f"Ignoring bytes_per_line {bytes_per_line} for width {width}")
        stride = width

    if _has_palette(data):
        stream = data[HEADER_SIZE:-(PALETTE_SIZE + 1)]
        palette = np.frombuffer(data[-PALETTE_SIZE:], dtype=np.uint8).reshape(256, 3)
    else:
        stream = data[HEADER_SIZE:]
        palette = _grayscale_palette()

    indices = decode_rle(stream, stride * height).reshape(height, stride)[:, :width]

    lookup = np.empty((256, 4), dtype=np.uint8)
    lookup[:, :3] = palette
    lookup[:, 3] = 255
    lookup[0] = (0, 0, 0, 0)

    rgba = lookup[indices]
    return DecodedImage(width=width, height=height, pixels=rgba.tobytes())
