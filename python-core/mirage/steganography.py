"""
LSB Text Steganography for Mirage Tank Rasters.

A text payload can be hidden in the color data of a finished composite.
Only the least significant bit of the R, G and B bytes is used, so every
pixel carries 3 bits and the alpha channel, which holds the illusion,
is never touched.

================================================================================
PAYLOAD FORMAT
================================================================================

    [length: 32 bits][payload: length * 8 bits]

    - length is the UTF-8 byte count of the text, unsigned
    - every field is emitted least significant bit first
    - bit i lands in pixel i // 3, channel i % 3 (0=R, 1=G, 2=B),
      pixels counted in row-major order

There is no terminator, magic number or checksum: the reader takes 32 bits
as the length and then exactly that many bytes.

================================================================================
CAPACITY
================================================================================

A buffer holds 3 * pixel_count bits. When a payload needs more, the default
behavior logs a warning and writes as many bits as fit, dropping the rest,
possibly in the middle of the length field. Pass strict=True to refuse
oversized payloads up front instead.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator

import numpy as np

from .buffers import check_rgba_buffer
from .errors import CapacityExceededError, PayloadError


logger = logging.getLogger(__name__)


HEADER_BITS = 32
BITS_PER_PIXEL = 3
MAX_PAYLOAD_LENGTH = 0xFFFFFFFF


@dataclass
class EmbedReport:
    """
    Outcome of an embedding pass.

    Attributes:
        bits_required: Header plus payload bits
        bits_written: Bits actually stored in the buffer
        capacity_bits: Bits the buffer can hold
        truncated: True when some bits were dropped for lack of room
    """

    bits_required: int
    bits_written: int
    capacity_bits: int
    truncated: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bits_required": self.bits_required,
            "bits_written": self.bits_written,
            "capacity_bits": self.capacity_bits,
            "truncated": self.truncated,
        }


class _BitCursor:
    """Sequential reader/writer over the RGB least significant bits of a buffer."""

    def __init__(self, buffer: np.ndarray):
        self._buffer = buffer
        self._width = buffer.shape[1]
        self.capacity = capacity_bits(buffer)
        self.position = 0

    def _locate(self):
        pixel, channel = divmod(self.position, BITS_PER_PIXEL)
        row, col = divmod(pixel, self._width)
        return row, col, channel

    def write(self, bit: int) -> bool:
        if self.position >= self.capacity:
            return False
        row, col, channel = self._locate()
        value = int(self._buffer[row, col, channel])
        self._buffer[row, col, channel] = (value & 0xFE) | (bit & 1)
        self.position += 1
        return True

    def read(self) -> int:
        row, col, channel = self._locate()
        self.position += 1
        return int(self._buffer[row, col, channel]) & 1

    def read_uint(self, bits: int) -> int:
        value = 0
        for i in range(bits):
            value |= self.read() << i
        return value


def _payload_bits(data: bytes) -> Iterator[int]:
    length = len(data)
    for i in range(HEADER_BITS):
        yield (length >> i) & 1
    for byte in data:
        for j in range(8):
            yield (byte >> j) & 1


def capacity_bits(buffer: np.ndarray) -> int:
    """Number of carrier bits in an RGBA8 buffer (3 per pixel)."""
    height, width = buffer.shape[:2]
    return height * width * BITS_PER_PIXEL


def max_payload_bytes(buffer: np.ndarray) -> int:
    """Largest UTF-8 payload, in bytes, that fits without truncation."""
    return max(0, (capacity_bits(buffer) - HEADER_BITS) // 8)


def required_bits(text: str) -> int:
    """Bits needed to store a text payload including its length header."""
    return HEADER_BITS + len(text.encode("utf-8")) * 8


def embed_text(buffer: np.ndarray, text: str, strict: bool = False) -> EmbedReport:
    """
    Hide a text payload in the RGB least significant bits of a buffer.

    The buffer is modified in place. An empty text leaves it untouched.

    Args:
        buffer: RGBA8 (H, W, 4) raster, typically a fresh composite
        text: Payload to hide
        strict: Raise instead of truncating when the payload does not fit

    Returns:
        EmbedReport describing how much of the payload was stored

    Raises:
        CapacityExceededError: If strict is set and the payload does not fit
        PayloadError: If the payload is too long for the 32-bit length field
    """
    check_rgba_buffer(buffer)
    capacity = capacity_bits(buffer)

    if not text:
        return EmbedReport(bits_required=0, bits_written=0, capacity_bits=capacity, truncated=False)

    data = text.encode("utf-8")
    if len(data) > MAX_PAYLOAD_LENGTH:
        raise PayloadError(
            f"Payload of {len(data)} bytes does not fit a 32-bit length field",
            code=1401,
        )

    needed = HEADER_BITS + len(data) * 8
    if needed > capacity:
        if strict:
            raise CapacityExceededError(
                f"Payload needs {needed} bits, buffer holds {capacity}",
                code=1402,
                details={"bits_required": needed, "capacity_bits": capacity},
            )
        logger.warning(f"Steganography capacity exceeded: need {needed} bits, have {capacity}. Text truncated.")

    cursor = _BitCursor(buffer)
    for bit in _payload_bits(data):
        if not cursor.write(bit):
            break

    logger.debug(f"Embedded {cursor.position}/{needed} payload bits")
    return EmbedReport(
        bits_required=needed,
        bits_written=cursor.position,
        capacity_bits=capacity,
        truncated=cursor.position < needed,
    )


def extract_text(buffer: np.ndarray) -> str:
    """
    Read back a text payload written by embed_text.

    Args:
        buffer: RGBA8 (H, W, 4) raster carrying a payload

    Returns:
        The decoded text

    Raises:
        PayloadError: If the length header does not fit the buffer or the
                      bytes are not valid UTF-8
    """
    check_rgba_buffer(buffer)
    capacity = capacity_bits(buffer)

    if capacity < HEADER_BITS:
        raise PayloadError(
            f"Buffer holds {capacity} bits, too few for a length header",
            code=1410,
        )

    cursor = _BitCursor(buffer)
    length = cursor.read_uint(HEADER_BITS)

    if HEADER_BITS + length * 8 > capacity:
        raise PayloadError(
            f"Length header claims {length} bytes, buffer holds at most {max_payload_bytes(buffer)}",
            code=1411,
            details={"length": length, "capacity_bits": capacity},
        )

    data = bytes(cursor.read_uint(8) for _ in range(length))

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PayloadError(f"Payload is not valid UTF-8: {e}", code=1412) from e


def has_payload(buffer: np.ndarray) -> bool:
    """Return True if the buffer carries a non-empty, decodable text payload."""
    try:
        return bool(extract_text(buffer))
    except PayloadError:
        return False
