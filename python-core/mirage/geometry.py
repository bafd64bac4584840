"""
Cover-Fit Geometry.

Both source images are drawn onto one common canvas before compositing.
Each is scaled uniformly until it covers the whole canvas, centered, with
the overflow on one axis cropped evenly from both sides. Nothing is ever
letterboxed, so every canvas pixel receives image content.
"""

from dataclasses import dataclass
from typing import Tuple

from .config import ProcessingConfig


@dataclass(frozen=True)
class CoverDimensions:
    """
    Placement of a scaled source over a target rectangle.

    Attributes:
        render_width: Width of the scaled source
        render_height: Height of the scaled source
        offset_x: Horizontal position of the scaled source (zero or negative)
        offset_y: Vertical position of the scaled source (zero or negative)
    """

    render_width: float
    render_height: float
    offset_x: float
    offset_y: float

    def source_box(
        self,
        source_width: int,
        source_height: int,
        target_width: int,
        target_height: int,
    ) -> Tuple[float, float, float, float]:
        """
        Map the target rectangle back into source coordinates.

        Resampling exactly this region of the source onto the target gives
        the uniform scale and centered crop described by the placement,
        with sub-pixel offsets preserved.

        Returns:
            (left, upper, right, lower) in source pixels, clamped to the
            source bounds
        """
        scale = self.render_width / source_width
        left = -self.offset_x / scale
        upper = -self.offset_y / scale
        right = (target_width - self.offset_x) / scale
        lower = (target_height - self.offset_y) / scale
        return (
            max(0.0, left),
            max(0.0, upper),
            min(float(source_width), right),
            min(float(source_height), lower),
        )


def cover_dimensions(
    source_width: int,
    source_height: int,
    target_width: int,
    target_height: int,
) -> CoverDimensions:
    """
    Compute how to scale a source so it fully covers a target rectangle.

    Args:
        source_width: Source width in pixels (positive)
        source_height: Source height in pixels (positive)
        target_width: Target width in pixels (positive)
        target_height: Target height in pixels (positive)

    Returns:
        CoverDimensions with render extents >= the target on both axes and
        the overflow split evenly between the two sides.

    Example:
        >>> cover_dimensions(400, 100, 100, 100)
        CoverDimensions(render_width=400.0, render_height=100, offset_x=-150.0, offset_y=0)
    """
    image_ratio = source_width / source_height
    target_ratio = target_width / target_height

    if image_ratio > target_ratio:
        # Relatively wider: match heights, crop left and right
        render_height = target_height
        render_width = target_height * image_ratio
        return CoverDimensions(
            render_width=render_width,
            render_height=render_height,
            offset_x=(target_width - render_width) / 2,
            offset_y=0,
        )

    # Relatively taller (or same shape): match widths, crop top and bottom
    render_width = target_width
    render_height = target_width / image_ratio
    return CoverDimensions(
        render_width=render_width,
        render_height=render_height,
        offset_x=0,
        offset_y=(target_height - render_height) / 2,
    )


def resolve_output_size(
    config: ProcessingConfig,
    surface_size: Tuple[int, int],
    hidden_size: Tuple[int, int],
) -> Tuple[int, int]:
    """
    Pick the canvas size for a run.

    Explicit width/height in the configuration win. A missing axis falls
    back to the smaller of the two source extents on that axis.

    Args:
        config: Processing configuration
        surface_size: (width, height) of the Surface image
        hidden_size: (width, height) of the Hidden image

    Returns:
        (width, height) of the output raster
    """
    width = config.width or min(surface_size[0], hidden_size[0])
    height = config.height or min(surface_size[1], hidden_size[1])
    return int(width), int(height)
