"""Helpers for RGBA8 raster buffers: (height, width, 4) uint8 numpy arrays."""

import numpy as np

from .errors import BufferFormatError


CHANNELS = 4


def allocate_rgba(width: int, height: int) -> np.ndarray:
    """Return a zeroed (fully transparent black) RGBA8 buffer."""
    return np.zeros((height, width, CHANNELS), dtype=np.uint8)


def check_rgba_buffer(buffer: np.ndarray, name: str = "buffer") -> np.ndarray:
    """
    Verify that a buffer is an RGBA8 pixel grid.

    Raises:
        BufferFormatError: If the buffer is not a (H, W, 4) uint8 array
    """
    if not isinstance(buffer, np.ndarray):
        raise BufferFormatError(
            f"{name} must be a numpy array, got {type(buffer).__name__}",
            code=1301,
        )

    if buffer.dtype != np.uint8 or buffer.ndim != 3 or buffer.shape[2] != CHANNELS:
        raise BufferFormatError(
            f"{name} must be a (height, width, 4) uint8 array, got {buffer.shape} {buffer.dtype}",
            code=1302,
            details={"shape": buffer.shape, "dtype": str(buffer.dtype)},
        )

    return buffer
