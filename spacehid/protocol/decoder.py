"""Report decoder for 6-DoF controller HID input reports.

The controller alternates between two input reports, each carrying three
little-endian signed 16-bit words:

    report id 1 - translation (x, y, z)
    report id 2 - rotation    (rx, ry, rz), first two axes sign-inverted

Pure functions with no side effects.
"""
from __future__ import annotations

import struct
from typing import Iterable, Optional, Tuple, Union

from ..errors import MalformedReportError
from ..models import MotionVector, Rotation, Translation

TRANSLATION_REPORT_ID = 1
ROTATION_REPORT_ID = 2
REPORT_PAYLOAD_SIZE = 6

_AXES = struct.Struct("<hhh")

Payload = Union[bytes, bytearray, memoryview, Iterable[int]]


def decode(report_id: int, payload: Payload) -> Optional[MotionVector]:
    """Decode one raw report payload into a motion vector.

    Args:
        report_id: HID report identifier
        payload: Exactly 6 bytes (bytes-like or a sequence of ints 0..255)

    Returns:
        Translation for report id 1, Rotation for report id 2,
        None for any other report id (vendor/diagnostic reports)

    Raises:
        MalformedReportError: If the payload is not exactly 6 bytes long

    Examples:
        >>> decode(1, bytes([0x10, 0x00, 0xFF, 0xFF, 0x00, 0x01]))
        Translation(x=16, y=-1, z=256)
        >>> decode(2, bytes([0x10, 0x00, 0xFF, 0xFF, 0x00, 0x01]))
        Rotation(rx=-16, ry=1, rz=256)
        >>> decode(3, bytes(6)) is None
        True
    """
    data = _as_bytes(payload)

    if len(data) != REPORT_PAYLOAD_SIZE:
        raise MalformedReportError(
            f"Expected {REPORT_PAYLOAD_SIZE}-byte payload, got {len(data)} bytes "
            f"(report id {report_id})",
            payload=data,
        )

    if report_id == TRANSLATION_REPORT_ID:
        x, y, z = _AXES.unpack(data)
        return Translation(x=x, y=y, z=z)

    if report_id == ROTATION_REPORT_ID:
        x, y, z = _AXES.unpack(data)
        # Protocol convention: rx and ry are inverted, rz is not
        return Rotation(rx=-x, ry=-y, rz=z)

    return None


def split_report(data: Payload) -> Tuple[int, bytes]:
    """Split a raw hidapi read into report id and payload.

    hidapi returns numbered reports with the report id as the first byte.

    Args:
        data: Raw bytes read from the device

    Returns:
        Tuple of (report_id, payload)

    Raises:
        MalformedReportError: If data is empty
    """
    raw = _as_bytes(data)
    if not raw:
        raise MalformedReportError("Empty report", payload=raw)
    return raw[0], raw[1:]


def _as_bytes(payload: Payload) -> bytes:
    """Normalize supported payload types to bytes."""
    if isinstance(payload, bytes):
        return payload
    try:
        return bytes(payload)
    except (TypeError, ValueError) as e:
        raise MalformedReportError(f"Payload is not a byte buffer: {e}") from e
