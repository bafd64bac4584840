"""
Mirage Tank Error Types.

Every failure the core can surface derives from MirageError and carries a
human-readable message, an optional numeric code and a free-form details
dictionary for callers that want to report context.

Code ranges:
    1000-1099: configuration
    1100-1199: source decoding
    1200-1299: raster surface
    1300-1399: buffer format
    1400-1499: steganography
"""

from typing import Any, Dict, Optional


class MirageError(Exception):
    """
    Base exception for mirage tank errors.

    Attributes:
        message: Description of the failure
        code: Optional numeric error code
        details: Extra context for reporting
    """

    def __init__(self, message: str, code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        base = f"{type(self).__name__}: {self.message}"
        if self.code:
            base += f" (Code: {self.code})"
        return base


class ConfigurationError(MirageError):
    """Raised when a processing configuration value is out of its domain."""


class UnreadableSourceError(MirageError):
    """Raised when a source image cannot be decoded."""


class SurfaceUnavailableError(MirageError):
    """Raised when a drawable raster surface cannot be acquired."""


class BufferFormatError(MirageError):
    """Raised when a pixel buffer is not an RGBA8 grid of the expected shape."""


class CapacityExceededError(MirageError):
    """Raised by strict embedding when the payload does not fit the buffer."""


class PayloadError(MirageError):
    """Raised when an embedded payload cannot be read back."""
