"""
Mirage Tank - Dual-Reveal Image Compositor.

Builds a single RGBA image that shows one picture on a light background
and a different one on a dark background, by deriving the alpha channel
from the two source images. A text payload can optionally be hidden in
the least significant bits of the result.

Modules:
    config: Immutable processing configuration
    geometry: Cover-fit scaling onto a common canvas
    dither: Injected noise for anti-banding
    compositor: The per-pixel alpha derivation
    steganography: LSB text embedding and extraction
    surface: Pillow-backed decode, draw and encode collaborators
    preview: Flatten a result over a solid background
    pipeline: Orchestration and latest-result-wins coordination

Usage:
    >>> from mirage import MiragePipeline, ProcessingConfig
    >>> result = MiragePipeline().render_files("day.png", "night.png", ProcessingConfig())
    >>> with open("mirage.png", "wb") as f:
    ...     f.write(result.to_png())
"""

from .compositor import composite
from .config import ColorMode, ProcessingConfig
from .dither import DitherSource, RandomNoiseSource
from .errors import (
    BufferFormatError,
    CapacityExceededError,
    ConfigurationError,
    MirageError,
    PayloadError,
    SurfaceUnavailableError,
    UnreadableSourceError,
)
from .geometry import CoverDimensions, cover_dimensions, resolve_output_size
from .pipeline import MiragePipeline, MirageResult, RenderCoordinator
from .preview import Background, flatten, reveal_pair
from .steganography import EmbedReport, embed_text, extract_text
from .surface import RasterSurface, encode_png, load_image

__all__ = [
    # Configuration
    "ColorMode",
    "ProcessingConfig",
    # Core transform
    "composite",
    "CoverDimensions",
    "cover_dimensions",
    "resolve_output_size",
    "DitherSource",
    "RandomNoiseSource",
    # Steganography
    "EmbedReport",
    "embed_text",
    "extract_text",
    # Collaborators
    "RasterSurface",
    "load_image",
    "encode_png",
    "Background",
    "flatten",
    "reveal_pair",
    # Orchestration
    "MiragePipeline",
    "MirageResult",
    "RenderCoordinator",
    # Errors
    "MirageError",
    "ConfigurationError",
    "UnreadableSourceError",
    "SurfaceUnavailableError",
    "BufferFormatError",
    "CapacityExceededError",
    "PayloadError",
]

__version__ = "1.0.0"
