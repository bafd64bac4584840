"""
Mirage Tank Pipeline Orchestrator.

Sequences one complete run:

    1. Resolve the output size from the configuration and both sources
    2. Cover-fit each source onto a surface of that size and read it back
    3. Composite the two buffers
    4. Optionally hide the steganography payload in the result
    5. Write the result back to the surface for encoding or display

The run is synchronous and self-contained; nothing is shared between runs.
Interactive front-ends re-run the pipeline whenever a setting changes, so
RenderCoordinator adds the bookkeeping that lets only the most recently
requested result be observed, plus an asyncio entry point that keeps the
CPU-bound work off the event loop.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np
from PIL import Image

from .compositor import composite
from .config import ProcessingConfig
from .dither import NoiseSource
from .errors import SurfaceUnavailableError
from .geometry import cover_dimensions, resolve_output_size
from .steganography import EmbedReport, embed_text
from .surface import ImageSource, RasterSurface, encode_data_url, encode_png, load_image


logger = logging.getLogger(__name__)


SurfaceFactory = Callable[[int, int], RasterSurface]


@dataclass
class MirageResult:
    """
    Output of one pipeline run.

    Attributes:
        buffer: RGBA8 (H, W, 4) mirage tank raster
        width: Output width in pixels
        height: Output height in pixels
        embed_report: Steganography outcome, None when no payload was set
        advisories: Configuration warnings raised for this run
    """

    buffer: np.ndarray
    width: int
    height: int
    embed_report: Optional[EmbedReport] = None
    advisories: List[str] = field(default_factory=list)

    def to_png(self) -> bytes:
        return encode_png(self.buffer)

    def to_data_url(self) -> str:
        return encode_data_url(self.buffer)

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.buffer)


class MiragePipeline:
    """
    Runs the full surface/hidden to mirage tank transformation.

    Args:
        surface_factory: Callable returning a drawable surface for (width, height)
        noise: Noise source for dithering; unseeded when omitted
        strict_capacity: Reject steganography payloads that do not fit
                         instead of truncating them

    Example:
        >>> pipeline = MiragePipeline()
        >>> result = pipeline.render_files("day.png", "night.png", ProcessingConfig())
        >>> open("mirage.png", "wb").write(result.to_png())
    """

    def __init__(
        self,
        surface_factory: SurfaceFactory = RasterSurface,
        noise: Optional[NoiseSource] = None,
        strict_capacity: bool = False,
    ):
        self._surface_factory = surface_factory
        self._noise = noise
        self._strict_capacity = strict_capacity

    def _acquire_surface(self, width: int, height: int) -> RasterSurface:
        try:
            return self._surface_factory(width, height)
        except SurfaceUnavailableError:
            raise
        except (ValueError, MemoryError, OSError) as e:
            raise SurfaceUnavailableError(
                f"Could not acquire a {width}x{height} drawing surface: {e}",
                code=1210,
            ) from e

    def _sample(self, canvas: RasterSurface, image: Image.Image) -> np.ndarray:
        dims = cover_dimensions(image.size[0], image.size[1], canvas.width, canvas.height)
        canvas.draw_cover(image, dims)
        return canvas.read_rgba()

    def render(
        self,
        surface_image: Image.Image,
        hidden_image: Image.Image,
        config: ProcessingConfig,
    ) -> MirageResult:
        """
        Composite two decoded images.

        Args:
            surface_image: Image visible on light backgrounds
            hidden_image: Image visible on dark backgrounds
            config: Processing configuration

        Returns:
            MirageResult holding the final buffer

        Raises:
            ConfigurationError: If the configuration is out of range
            SurfaceUnavailableError: If no drawing surface can be acquired
            CapacityExceededError: If strict_capacity is set and the payload does not fit
        """
        config.validate()
        advisories = config.advisories()
        for note in advisories:
            logger.warning(note)

        width, height = resolve_output_size(config, surface_image.size, hidden_image.size)
        logger.info(f"Rendering {width}x{height} mirage tank ({config.color_mode.value})")

        canvas = self._acquire_surface(width, height)
        surface_pixels = self._sample(canvas, surface_image)
        hidden_pixels = self._sample(canvas, hidden_image)

        buffer = composite(surface_pixels, hidden_pixels, config, noise=self._noise)

        report = None
        if config.has_payload:
            report = embed_text(buffer, config.steganography, strict=self._strict_capacity)

        canvas.write_rgba(buffer)

        return MirageResult(
            buffer=buffer,
            width=width,
            height=height,
            embed_report=report,
            advisories=advisories,
        )

    def render_files(
        self,
        surface_source: ImageSource,
        hidden_source: ImageSource,
        config: ProcessingConfig,
    ) -> MirageResult:
        """
        Decode two encoded images and composite them.

        Raises:
            UnreadableSourceError: If either source cannot be decoded
        """
        surface_image = load_image(surface_source)
        hidden_image = load_image(hidden_source)
        return self.render(surface_image, hidden_image, config)


class RenderCoordinator:
    """
    Latest-request-wins bookkeeping for repeated renders.

    Each request takes a ticket from begin(). A result is only kept by
    publish() when its ticket is still the newest one handed out, so a slow
    stale render can never overwrite a newer one.
    """

    def __init__(self, pipeline: Optional[MiragePipeline] = None):
        self._pipeline = pipeline or MiragePipeline()
        self._lock = threading.Lock()
        self._generation = 0
        self._latest: Optional[MirageResult] = None

    def begin(self) -> int:
        """Start a new request and return its ticket."""
        with self._lock:
            self._generation += 1
            return self._generation

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._generation

    def publish(self, ticket: int, result: MirageResult) -> bool:
        """Keep result if ticket is the newest request. Returns whether it was kept."""
        with self._lock:
            if ticket != self._generation:
                return False
            self._latest = result
            return True

    @property
    def latest(self) -> Optional[MirageResult]:
        with self._lock:
            return self._latest

    async def render_async(
        self,
        surface_image: Image.Image,
        hidden_image: Image.Image,
        config: ProcessingConfig,
    ) -> Optional[MirageResult]:
        """
        Render in a worker thread.

        Returns:
            The result, or None when a newer request started before this
            one finished and the result was discarded
        """
        ticket = self.begin()
        result = await asyncio.to_thread(self._pipeline.render, surface_image, hidden_image, config)

        if self.publish(ticket, result):
            return result

        logger.debug(f"Discarding stale render #{ticket}")
        return None
