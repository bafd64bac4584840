"""
Dither Noise.

A small amount of uniform noise added before quantization breaks up the
banding that the remap and alpha division otherwise produce in smooth
gradients. One scalar is drawn per pixel and added identically to the
R, G and B samples of both source images at that pixel.

The random generator is injected so runs can be made reproducible:

    >>> dither = DitherSource(2.0, RandomNoiseSource(seed=7))
    >>> plane = dither.sample(4, 4)
    >>> bool((abs(plane) <= 1.0).all())
    True
"""

import logging
from typing import Optional, Protocol, Tuple

import numpy as np


logger = logging.getLogger(__name__)


class NoiseSource(Protocol):
    """Anything that can produce uniform samples in [0, 1)."""

    def uniform(self, shape: Tuple[int, ...]) -> np.ndarray:
        ...


class RandomNoiseSource:
    """
    NumPy-backed noise source.

    Args:
        seed: Seed for numpy.random.default_rng; None draws fresh entropy
    """

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def uniform(self, shape: Tuple[int, ...]) -> np.ndarray:
        return self._rng.random(shape)


class DitherSource:
    """
    Per-pixel noise generator for a given strength.

    Samples lie in [-strength / 2, +strength / 2). A strength of zero
    disables dithering without touching the noise source at all.

    Attributes:
        strength: Peak-to-peak noise amplitude in channel units
    """

    def __init__(self, strength: float, noise: Optional[NoiseSource] = None):
        self.strength = float(strength)
        self._noise = noise

    @property
    def enabled(self) -> bool:
        return self.strength > 0

    def sample(self, height: int, width: int) -> np.ndarray:
        """
        Draw one noise value per pixel.

        Args:
            height: Number of rows
            width: Number of columns

        Returns:
            float64 array of shape (height, width)
        """
        if not self.enabled:
            return np.zeros((height, width), dtype=np.float64)

        if self._noise is None:
            self._noise = RandomNoiseSource()

        logger.debug(f"Sampling dither noise, strength={self.strength}, size={width}x{height}")
        return (self._noise.uniform((height, width)) - 0.5) * self.strength
