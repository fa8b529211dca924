"""Protocol layer for decoding 6-DoF controller HID reports."""

from .decoder import (
    REPORT_PAYLOAD_SIZE,
    ROTATION_REPORT_ID,
    TRANSLATION_REPORT_ID,
    decode,
    split_report,
)

__all__ = [
    "decode",
    "split_report",
    "TRANSLATION_REPORT_ID",
    "ROTATION_REPORT_ID",
    "REPORT_PAYLOAD_SIZE",
]
