"""
Unit Tests for the Mirage Tank Pipeline

This module contains unit tests for orchestration, error propagation and
latest-result-wins coordination.
"""

import pytest
import sys
from pathlib import Path

import numpy as np
from PIL import Image

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'python-core'))

from mirage.config import ProcessingConfig
from mirage.dither import RandomNoiseSource
from mirage.errors import (
    CapacityExceededError,
    ConfigurationError,
    SurfaceUnavailableError,
    UnreadableSourceError,
)
from mirage.pipeline import MiragePipeline, MirageResult, RenderCoordinator
from mirage.steganography import extract_text


class TestMiragePipeline:
    """Test cases for MiragePipeline.render."""

    @pytest.fixture
    def pipeline(self):
        return MiragePipeline(noise=RandomNoiseSource(seed=1))

    def test_output_size_is_smaller_extent(self, pipeline, landscape_image, portrait_image):
        result = pipeline.render(landscape_image, portrait_image, ProcessingConfig())

        assert (result.width, result.height) == (60, 100)
        assert result.buffer.shape == (100, 60, 4)
        assert result.embed_report is None

    def test_explicit_size(self, pipeline, landscape_image, portrait_image):
        config = ProcessingConfig(width=32, height=24)

        result = pipeline.render(landscape_image, portrait_image, config)

        assert result.buffer.shape == (24, 32, 4)

    def test_payload_embedded(self, pipeline, landscape_image, portrait_image):
        config = ProcessingConfig(steganography="meet at dawn")

        result = pipeline.render(landscape_image, portrait_image, config)

        assert result.embed_report.truncated is False
        assert extract_text(result.buffer) == "meet at dawn"

    def test_payload_truncated_by_default(self, pipeline, landscape_image, portrait_image):
        config = ProcessingConfig(width=2, height=2, steganography="far too long")

        result = pipeline.render(landscape_image, portrait_image, config)

        assert result.embed_report.truncated is True
        assert result.embed_report.bits_written == 12

    def test_strict_capacity(self, landscape_image, portrait_image):
        pipeline = MiragePipeline(strict_capacity=True)
        config = ProcessingConfig(width=2, height=2, steganography="far too long")

        with pytest.raises(CapacityExceededError):
            pipeline.render(landscape_image, portrait_image, config)

    def test_deterministic_without_dithering(self, landscape_image, portrait_image):
        config = ProcessingConfig(dithering=0.0, grayscale=False)

        first = MiragePipeline().render(landscape_image, portrait_image, config)
        second = MiragePipeline().render(landscape_image, portrait_image, config)

        assert first.to_png() == second.to_png()

    def test_invalid_configuration(self, pipeline, landscape_image, portrait_image):
        with pytest.raises(ConfigurationError):
            pipeline.render(landscape_image, portrait_image, ProcessingConfig(dithering=3.0))

    def test_advisories_reported(self, pipeline, landscape_image, portrait_image, caplog):
        config = ProcessingConfig(surface_min=100, hidden_max=150)

        result = pipeline.render(landscape_image, portrait_image, config)

        assert result.advisories
        assert "below hidden_max" in caplog.text

    def test_surface_factory_failure(self, landscape_image, portrait_image):
        def broken_factory(width, height):
            raise MemoryError("no canvas for you")

        pipeline = MiragePipeline(surface_factory=broken_factory)

        with pytest.raises(SurfaceUnavailableError) as excinfo:
            pipeline.render(landscape_image, portrait_image, ProcessingConfig())

        assert isinstance(excinfo.value.__cause__, MemoryError)

    def test_result_image(self, pipeline, landscape_image, portrait_image):
        result = pipeline.render(landscape_image, portrait_image, ProcessingConfig())

        img = result.to_image()

        assert img.mode == "RGBA"
        assert img.size == (60, 100)
        assert result.to_data_url().startswith("data:image/png;base64,")


class TestRenderFiles:
    """Test cases for MiragePipeline.render_files."""

    def test_from_paths(self, png_files):
        surface_path, hidden_path = png_files

        result = MiragePipeline().render_files(surface_path, hidden_path, ProcessingConfig())

        assert result.buffer.shape == (100, 60, 4)

    def test_unreadable_source_aborts(self, png_files, tmp_path):
        surface_path, _ = png_files
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"\x89PNG not really")

        with pytest.raises(UnreadableSourceError):
            MiragePipeline().render_files(surface_path, broken, ProcessingConfig())


class TestRenderCoordinator:
    """Test cases for latest-result-wins coordination."""

    @pytest.fixture
    def result(self):
        return MirageResult(buffer=np.zeros((1, 1, 4), dtype=np.uint8), width=1, height=1)

    def test_tickets_increase(self):
        coordinator = RenderCoordinator()

        first = coordinator.begin()
        second = coordinator.begin()

        assert second > first
        assert coordinator.is_current(second)
        assert not coordinator.is_current(first)

    def test_stale_result_discarded(self, result):
        coordinator = RenderCoordinator()
        stale = coordinator.begin()
        fresh = coordinator.begin()

        assert coordinator.publish(stale, result) is False
        assert coordinator.latest is None
        assert coordinator.publish(fresh, result) is True
        assert coordinator.latest is result

    @pytest.mark.asyncio
    async def test_render_async(self, landscape_image, portrait_image):
        coordinator = RenderCoordinator()

        result = await coordinator.render_async(landscape_image, portrait_image, ProcessingConfig())

        assert result is not None
        assert coordinator.latest is result

    @pytest.mark.asyncio
    async def test_render_async_superseded(self, landscape_image, portrait_image):
        """A render overtaken by a newer request returns None."""

        class InterruptedPipeline(MiragePipeline):
            def render(self, surface_image, hidden_image, config):
                coordinator.begin()
                return super().render(surface_image, hidden_image, config)

        coordinator = RenderCoordinator(InterruptedPipeline())

        result = await coordinator.render_async(landscape_image, portrait_image, ProcessingConfig())

        assert result is None
        assert coordinator.latest is None
