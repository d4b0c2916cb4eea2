"""
Utility modules for image conversion.
"""

from .image import ImageUtils

__all__ = [
    "ImageUtils",
]
