"""
Processing Configuration.

This module defines the immutable configuration value handed to every
stage of the mirage tank pipeline. Nothing in the core reads global or UI
state: a ProcessingConfig instance is the complete description of one run.

Remap Parameters:
    surface_min: The Surface image (visible on light backgrounds) is mapped
                 from [0, 255] to [surface_min, 255]. Higher values make it
                 lighter and more ghost-like on white.
    hidden_max:  The Hidden image (visible on dark backgrounds) is mapped
                 from [0, 255] to [0, hidden_max]. Lower values make it
                 darker and clearer on black.

Example:
    >>> config = ProcessingConfig(surface_min=170, grayscale=False)
    >>> config.color_mode
    <ColorMode.COLOR: 'color'>
    >>> config.replace(dithering=0.0).dithering_strength
    0.0
"""

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import ConfigurationError


logger = logging.getLogger(__name__)


# Slider ranges offered by the interactive tool. Values outside them still
# process, they just tend to produce a weak illusion.
RECOMMENDED_SURFACE_MIN = (100, 250)
RECOMMENDED_HIDDEN_MAX = (50, 200)

# Dithering is configured in [0, 1] and scaled to a noise amplitude.
DITHER_SCALE = 10.0

_CAMEL_CASE_KEYS = {
    "surfaceMin": "surface_min",
    "hiddenMax": "hidden_max",
}


class ColorMode(Enum):
    """Per-pixel transform strategy used by the compositor."""

    GRAYSCALE = "grayscale"
    COLOR = "color"


@dataclass(frozen=True)
class ProcessingConfig:
    """
    Immutable configuration for one compositing run.

    Attributes:
        surface_min: Lower bound (0-255) of the Surface image's remapped range
        hidden_max: Upper bound (0-255) of the Hidden image's remapped range
        grayscale: Produce a luminance-only result instead of a color one
        dithering: Noise strength factor in [0, 1]
        steganography: Text payload hidden in the result, empty for none
        width: Explicit output width, or None to infer from the sources
        height: Explicit output height, or None to infer from the sources
    """

    surface_min: int = 160
    hidden_max: int = 100
    grayscale: bool = True
    dithering: float = 0.2
    steganography: str = ""
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def color_mode(self) -> ColorMode:
        """Strategy selected by the grayscale flag."""
        return ColorMode.GRAYSCALE if self.grayscale else ColorMode.COLOR

    @property
    def dithering_strength(self) -> float:
        """Noise amplitude in channel units."""
        return self.dithering * DITHER_SCALE

    @property
    def has_payload(self) -> bool:
        return bool(self.steganography)

    def replace(self, **changes: Any) -> "ProcessingConfig":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def validate(self) -> "ProcessingConfig":
        """
        Check that every value lies in the domain the pixel math expects.

        Returns:
            The configuration itself, so calls can be chained.

        Raises:
            ConfigurationError: If a value is out of range
        """
        for name in ("surface_min", "hidden_max"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ConfigurationError(
                    f"{name} must be within 0..255, got {value}",
                    code=1001,
                    details={"field": name, "value": value},
                )

        if not 0.0 <= self.dithering <= 1.0:
            raise ConfigurationError(
                f"dithering must be within 0..1, got {self.dithering}",
                code=1002,
                details={"field": "dithering", "value": self.dithering},
            )

        for name in ("width", "height"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigurationError(
                    f"{name} must be positive when given, got {value}",
                    code=1003,
                    details={"field": name, "value": value},
                )

        return self

    def advisories(self) -> List[str]:
        """
        Describe settings that are legal but likely to look poor.

        These never block processing; the compositor produces well-defined
        output for any in-range configuration.
        """
        notes = []

        if self.surface_min < self.hidden_max:
            notes.append(
                f"surface_min ({self.surface_min}) is below hidden_max ({self.hidden_max}); "
                "the hidden image will bleed through on light backgrounds"
            )

        low, high = RECOMMENDED_SURFACE_MIN
        if not low <= self.surface_min <= high:
            notes.append(f"surface_min {self.surface_min} is outside the recommended range {low}-{high}")

        low, high = RECOMMENDED_HIDDEN_MAX
        if not low <= self.hidden_max <= high:
            notes.append(f"hidden_max {self.hidden_max} is outside the recommended range {low}-{high}")

        return notes

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a dictionary for serialization."""
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcessingConfig":
        """
        Build a configuration from a dictionary.

        Accepts both snake_case field names and the camelCase names used by
        browser front-ends (surfaceMin, hiddenMax). Unknown keys are ignored.
        """
        names = {f.name for f in dataclasses.fields(cls)}
        values = {}
        for key, value in data.items():
            key = _CAMEL_CASE_KEYS.get(key, key)
            if key in names:
                values[key] = value
            else:
                logger.debug(f"Ignoring unknown configuration key {key!r}")
        return cls(**values)
