"""
Background Preview.

Shows what a viewer actually sees when a mirage tank image is displayed on
a solid background: the result is alpha-composited over the background
color and flattened to RGB.
"""

from enum import Enum
from typing import Tuple

import numpy as np
from PIL import Image

from .buffers import check_rgba_buffer


class Background(Enum):
    """Preview backgrounds."""

    WHITE = (255, 255, 255)
    BLACK = (0, 0, 0)
    # Light grey of typical chat-app message panes
    CHAT = (0xED, 0xED, 0xED)


def flatten(buffer: np.ndarray, background: Background = Background.WHITE) -> np.ndarray:
    """
    Composite an RGBA8 buffer over a solid background.

    Args:
        buffer: RGBA8 (H, W, 4) mirage tank raster
        background: Background to show it on

    Returns:
        RGB8 (H, W, 3) array as seen by the viewer
    """
    check_rgba_buffer(buffer)
    overlay = Image.fromarray(buffer)
    base = Image.new("RGBA", overlay.size, background.value + (255,))
    return np.array(Image.alpha_composite(base, overlay).convert("RGB"), dtype=np.uint8)


def reveal_pair(buffer: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return the (on white, on black) views of a mirage tank raster."""
    return flatten(buffer, Background.WHITE), flatten(buffer, Background.BLACK)
