"""Detection and stripping of non-Avro framing bytes

Producers may prepend a fixed-length header to each datum, for example the
Avro single-object encoding header::

    C3 01 | 8 byte CRC-64-AVRO fingerprint | datum

A header is configured with a total length and an optional marker. When the
marker is present it must match the start of the buffer before the header is
trusted; otherwise the whole buffer is handed to the Avro decoder.
"""
from typing import NamedTuple, Sequence, Union
import logging

from .base import HeaderSpec

logger = logging.getLogger(__name__)

ByteSequence = Union[bytes, bytearray, memoryview, Sequence[int]]


class SkipResult(NamedTuple):
    """Where the Avro datum starts and whether the header was recognised"""
    offset: int
    matched: bool


def compute_skip(buffer: bytes, header_length: int, marker: ByteSequence = b"") -> SkipResult:
    """Compute how many leading bytes of *buffer* are framing

    Args:
        buffer: Raw (already base64-unwrapped) message bytes
        header_length: Total header size in bytes, 0 for no header
        marker: Byte values expected at the start of the header

    Returns:
        SkipResult. ``offset`` is 0 when no header is configured, when the
        buffer is shorter than the header, or when the marker does not match.
    """
    if header_length == 0:
        return SkipResult(0, True)

    if len(buffer) < header_length:
        logger.warning(
            f"Message is too small to decode header: {len(buffer)} bytes, "
            f"header_length={header_length}; decoding without skipping"
        )
        return SkipResult(0, False)

    marker = bytes(marker)
    if not marker:
        return SkipResult(header_length, True)

    if bytes(buffer[:len(marker)]) == marker:
        return SkipResult(header_length, True)

    logger.warning(
        f"Header marker mismatch: expected {marker.hex()}, "
        f"got {bytes(buffer[:len(marker)]).hex()}; decoding whole message"
    )
    return SkipResult(0, False)


class HeaderStripper:
    """Applies a :class:`HeaderSpec` to incoming buffers"""

    def __init__(self, spec: HeaderSpec):
        self.spec = spec

    def compute_skip(self, buffer: bytes) -> SkipResult:
        return compute_skip(buffer, self.spec.header_length, self.spec.marker_bytes)

    def fingerprint(self, buffer: bytes, result: SkipResult) -> bytes:
        """Header bytes following the marker, empty unless a marker matched"""
        if not result.matched or not self.spec.header_marker or result.offset == 0:
            return b""
        return bytes(buffer[len(self.spec.header_marker):result.offset])
