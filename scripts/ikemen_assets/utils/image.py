"""
Image helpers for decoded sprites.
"""

import base64
import io
from pathlib import Path
from typing import Tuple, Union

from PIL import Image

from ..sprites.pcx import DecodedImage


class ImageUtils:
    """Utility class for turning decoded sprites into displayable images."""

    @staticmethod
    def to_pil(image: Union[DecodedImage, Image.Image]) -> Image.Image:
        """Return a Pillow RGBA image for a decoded sprite."""
        if isinstance(image, DecodedImage):
            return image.to_image()
        return ImageUtils.ensure_rgba(image)

    @staticmethod
    def ensure_rgba(image: Image.Image) -> Image.Image:
        """Convert image to RGBA mode if not already."""
        if image.mode != 'RGBA':
            return image.convert('RGBA')
        return image

    @staticmethod
    def scale(image: Image.Image, factor: Union[float, Tuple[float, float]]) -> Image.Image:
        """
        Scale a sprite with nearest-neighbour sampling.

        Args:
            image: Source image
            factor: Uniform factor or (x, y) factors, as screenpacks give
                ``portrait.scale``

        Returns:
            Scaled image, at least one pixel in each direction
        """
        if isinstance(factor, (int, float)):
            factor = (factor, factor)
        if factor[0] <= 0 or factor[1] <= 0:
            raise ValueError(f"scale factors must be positive, got {factor}")

        width = max(1, round(image.width * factor[0]))
        height = max(1, round(image.height * factor[1]))
        if (width, height) == image.size:
            return image
        return image.resize((width, height), Image.NEAREST)

    @staticmethod
    def save_image(image: Image.Image, path: Union[str, Path], format: str = 'PNG',
                   compress_level: int = 6) -> None:
        """Save image to file, creating the parent directory."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if format.upper() == 'PNG':
            image.save(path, format='PNG', optimize=True, compress_level=compress_level)
        else:
            image.save(path, format=format)

    @staticmethod
    def to_png_bytes(image: Image.Image) -> bytes:
        """Encode image as PNG bytes."""
        buffer = io.BytesIO()
        image.save(buffer, format='PNG')
        return buffer.getvalue()

    @staticmethod
    def to_data_url(image: Union[DecodedImage, Image.Image]) -> str:
        """Encode image as a ``data:image/png;base64`` URL for previews."""
        encoded = base64.b64encode(ImageUtils.to_png_bytes(ImageUtils.to_pil(image))).decode('ascii')
        return f"data:image/png;base64,{encoded}"
