"""
Mirage Tank Pixel Compositor.

This module turns two same-sized RGBA8 rasters into one RGBA8 raster whose
color and alpha together encode both of them:

    - Over a white background the Surface image ("A") shows.
    - Over a black background the Hidden image ("B") shows.

================================================================================
HOW THE ALPHA IS DERIVED
================================================================================

Composited over white, a pixel with color C and opacity a (both in 0..1)
appears as  C*a + (1 - a).  Over black it appears as  C*a.  Requiring the
first to equal A and the second to equal B gives

    a = 1 - (A - B)        and        C = B / a

which in channel units is  alpha = 255 - (A - B)  and  C = B * 255 / alpha.
The formula needs A >= B, so both inputs are first squeezed into disjoint
bands: A is remapped to [surface_min, 255], B to [0, hidden_max], and any
B that still exceeds A is clamped down to A (the dominance clamp).

Grayscale mode works on BT.709 luminance and yields a gray pixel. Color
mode repeats the math per channel and keeps the largest of the three
alpha candidates: a lower alpha would leave some channel under-covered and
blown out on the wrong background, the larger one only costs a little
cross-channel ghosting.

Every pixel is independent of every other, so the whole transform is
expressed as vectorized numpy operations over full planes.
"""

import logging
from typing import Callable, Dict, Optional

import numpy as np

from .buffers import allocate_rgba, check_rgba_buffer
from .config import ColorMode, ProcessingConfig
from .dither import DitherSource, NoiseSource
from .errors import BufferFormatError


logger = logging.getLogger(__name__)


# ITU-R BT.709 luma coefficients for R, G, B
LUMA_BT709 = (0.2126, 0.7152, 0.0722)

MAX_CHANNEL = 255.0

Strategy = Callable[[np.ndarray, np.ndarray, ProcessingConfig], np.ndarray]


def _remap_surface(values: np.ndarray, config: ProcessingConfig) -> np.ndarray:
    """Map [0, 255] onto [surface_min, 255]."""
    scale = (MAX_CHANNEL - config.surface_min) / MAX_CHANNEL
    return np.clip(values * scale + config.surface_min, 0.0, MAX_CHANNEL)


def _remap_hidden(values: np.ndarray, config: ProcessingConfig) -> np.ndarray:
    """Map [0, 255] onto [0, hidden_max]."""
    scale = config.hidden_max / MAX_CHANNEL
    return np.clip(values * scale, 0.0, MAX_CHANNEL)


def _luminance(rgb: np.ndarray) -> np.ndarray:
    r, g, b = LUMA_BT709
    return r * rgb[..., 0] + g * rgb[..., 1] + b * rgb[..., 2]


def _unpremultiply(values: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """Compute values * 255 / alpha, yielding 0 where alpha is 0."""
    return np.divide(
        values * MAX_CHANNEL,
        alpha,
        out=np.zeros_like(values),
        where=alpha > 0,
    )


def grayscale_strategy(surface_rgb: np.ndarray, hidden_rgb: np.ndarray, config: ProcessingConfig) -> np.ndarray:
    """
    Luminance-only transform.

    Args:
        surface_rgb: float (H, W, 3) Surface samples, dither already applied
        hidden_rgb: float (H, W, 3) Hidden samples, dither already applied
        config: Processing configuration

    Returns:
        float (H, W, 4) gray, gray, gray, alpha
    """
    lum_a = _remap_surface(_luminance(surface_rgb), config)
    lum_b = _remap_hidden(_luminance(hidden_rgb), config)

    lum_b = np.minimum(lum_b, lum_a)

    alpha = MAX_CHANNEL - (lum_a - lum_b)
    gray = _unpremultiply(lum_b, alpha)

    return np.stack([gray, gray, gray, alpha], axis=-1)


def color_strategy(surface_rgb: np.ndarray, hidden_rgb: np.ndarray, config: ProcessingConfig) -> np.ndarray:
    """
    Independent-channel transform.

    Args:
        surface_rgb: float (H, W, 3) Surface samples, dither already applied
        hidden_rgb: float (H, W, 3) Hidden samples, dither already applied
        config: Processing configuration

    Returns:
        float (H, W, 4) red, green, blue, alpha
    """
    a = _remap_surface(surface_rgb, config)
    b = _remap_hidden(hidden_rgb, config)

    # Dominance clamp per channel; desaturates B where it would exceed A
    b = np.minimum(b, a)

    channel_alpha = MAX_CHANNEL - (a - b)
    final_alpha = channel_alpha.max(axis=-1)

    rgb = _unpremultiply(b, final_alpha[..., np.newaxis])

    return np.concatenate([rgb, final_alpha[..., np.newaxis]], axis=-1)


STRATEGIES: Dict[ColorMode, Strategy] = {
    ColorMode.GRAYSCALE: grayscale_strategy,
    ColorMode.COLOR: color_strategy,
}


def composite(
    surface: np.ndarray,
    hidden: np.ndarray,
    config: ProcessingConfig,
    noise: Optional[NoiseSource] = None,
) -> np.ndarray:
    """
    Composite a Surface and a Hidden raster into one mirage tank raster.

    The input alpha channels are ignored. Inputs are never modified; the
    result is a freshly allocated buffer.

    Args:
        surface: RGBA8 (H, W, 4) image meant for light backgrounds
        hidden: RGBA8 (H, W, 4) image meant for dark backgrounds
        config: Processing configuration
        noise: Noise source for dithering; a fresh unseeded one if omitted

    Returns:
        RGBA8 (H, W, 4) result with derived alpha

    Raises:
        BufferFormatError: If the buffers are malformed or differ in shape
    """
    check_rgba_buffer(surface, "surface")
    check_rgba_buffer(hidden, "hidden")
    if surface.shape != hidden.shape:
        raise BufferFormatError(
            f"Surface {surface.shape[1]}x{surface.shape[0]} and hidden "
            f"{hidden.shape[1]}x{hidden.shape[0]} rasters differ in size",
            code=1303,
            details={"surface": surface.shape, "hidden": hidden.shape},
        )

    height, width = surface.shape[:2]
    strategy = STRATEGIES[config.color_mode]
    logger.debug(f"Compositing {width}x{height} in {config.color_mode.value} mode")

    surface_rgb = surface[..., :3].astype(np.float64)
    hidden_rgb = hidden[..., :3].astype(np.float64)

    # Noise is deliberately not re-clamped; the remap clamps afterwards
    dither = DitherSource(config.dithering_strength, noise)
    if dither.enabled:
        plane = dither.sample(height, width)[..., np.newaxis]
        surface_rgb += plane
        hidden_rgb += plane

    values = strategy(surface_rgb, hidden_rgb, config)

    result = allocate_rgba(width, height)
    result[...] = np.clip(np.floor(values), 0, MAX_CHANNEL).astype(np.uint8)
    return result
