"""
Pillow-backed Raster Collaborators.

The compositor only ever sees numpy RGBA8 buffers. Everything that touches
image containers or drawing lives here:

    - load_image: decode an encoded image into a Pillow image
    - RasterSurface: draw a scaled source onto a canvas and read back pixels
    - encode_png / encode_data_url: turn a finished buffer into a container
"""

import base64
import logging
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Tuple, Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .buffers import allocate_rgba, check_rgba_buffer
from .errors import BufferFormatError, SurfaceUnavailableError, UnreadableSourceError
from .geometry import CoverDimensions


logger = logging.getLogger(__name__)


ImageSource = Union[str, Path, bytes, bytearray, BinaryIO]

TRANSPARENT = (0, 0, 0, 0)


def load_image(source: ImageSource) -> Image.Image:
    """
    Decode an image and normalize it to RGBA.

    EXIF orientation is applied so phone photos come out upright.

    Args:
        source: File path, raw encoded bytes or a binary file object

    Returns:
        Fully loaded RGBA Pillow image

    Raises:
        UnreadableSourceError: If the source is missing or not a decodable image
    """
    if isinstance(source, (bytes, bytearray)):
        source = BytesIO(source)

    try:
        with Image.open(source) as img:
            img = ImageOps.exif_transpose(img)
            return img.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise UnreadableSourceError(
            f"Could not decode source image: {e}",
            code=1101,
            details={"source": str(source) if isinstance(source, (str, Path)) else type(source).__name__},
        ) from e


class RasterSurface:
    """
    Drawable RGBA canvas of a fixed size.

    Attributes:
        width: Canvas width in pixels
        height: Canvas height in pixels

    Example:
        >>> surface = RasterSurface(64, 64)
        >>> surface.draw_cover(image, cover_dimensions(*image.size, 64, 64))
        >>> pixels = surface.read_rgba()
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise SurfaceUnavailableError(
                f"Cannot allocate a {width}x{height} surface",
                code=1201,
                details={"width": width, "height": height},
            )

        try:
            self._canvas = Image.new("RGBA", (width, height), TRANSPARENT)
        except (ValueError, MemoryError) as e:
            raise SurfaceUnavailableError(
                f"Cannot allocate a {width}x{height} surface: {e}",
                code=1202,
                details={"width": width, "height": height},
            ) from e

        self.width = width
        self.height = height

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def clear(self) -> None:
        self._canvas.paste(TRANSPARENT, (0, 0, self.width, self.height))

    def draw_cover(self, image: Image.Image, dims: CoverDimensions) -> None:
        """Clear the canvas and draw the image scaled and placed per dims."""
        self.clear()
        box = dims.source_box(image.size[0], image.size[1], self.width, self.height)
        scaled = image.convert("RGBA").resize((self.width, self.height), Image.Resampling.LANCZOS, box=box)
        self._canvas.paste(scaled, (0, 0))
        logger.debug(f"Drew source region {box} of {image.size[0]}x{image.size[1]} onto {self.width}x{self.height}")

    def read_rgba(self) -> np.ndarray:
        """Return a copy of the canvas as an RGBA8 (H, W, 4) buffer."""
        return np.array(self._canvas, dtype=np.uint8)

    def allocate(self) -> np.ndarray:
        """Return a blank RGBA8 buffer matching the canvas size."""
        return allocate_rgba(self.width, self.height)

    def write_rgba(self, buffer: np.ndarray) -> None:
        """Replace the canvas contents with an RGBA8 buffer of the same size."""
        check_rgba_buffer(buffer)
        if buffer.shape[:2] != (self.height, self.width):
            raise BufferFormatError(
                f"Buffer is {buffer.shape[1]}x{buffer.shape[0]}, surface is {self.width}x{self.height}",
                code=1304,
            )
        self._canvas = Image.fromarray(buffer)

    def to_image(self) -> Image.Image:
        return self._canvas.copy()


def encode_png(buffer: np.ndarray) -> bytes:
    """Encode an RGBA8 buffer as PNG bytes. PNG is lossless, so LSB data survives."""
    check_rgba_buffer(buffer)
    output = BytesIO()
    Image.fromarray(buffer).save(output, format="PNG")
    return output.getvalue()


def encode_data_url(buffer: np.ndarray) -> str:
    """Encode an RGBA8 buffer as a PNG data URL for browser display."""
    return "data:image/png;base64," + base64.b64encode(encode_png(buffer)).decode("ascii")
