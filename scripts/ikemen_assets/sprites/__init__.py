"""
Sprite container parsing and legacy image decoding.
"""

from .pcx import DecodedImage, decode_pcx, decode_rle
from .sff import SpriteContainer, SubfileRecord, extract_portrait

__all__ = [
    "DecodedImage",
    "decode_pcx",
    "decode_rle",
    "SpriteContainer",
    "SubfileRecord",
    "extract_portrait",
]
