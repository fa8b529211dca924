from __future__ import annotations

import logging
from typing import List

import hid

from ..models import DeviceIdentity, DeviceInfo

logger = logging.getLogger(__name__)


def _entry_to_info(entry: dict) -> DeviceInfo:
    """Convert an hid.enumerate() entry to DeviceInfo."""
    return DeviceInfo(
        path=entry["path"],
        vendor_id=entry["vendor_id"],
        product_id=entry["product_id"],
        manufacturer=entry.get("manufacturer_string") or None,
        product=entry.get("product_string") or None,
        serial_number=entry.get("serial_number") or None,
    )


def enumerate_devices() -> List[DeviceInfo]:
    """List every HID device visible to this process, one entry per path.

    A controller exposing several interfaces shows up once per path.
    """
    results: List[DeviceInfo] = []
    seen = set()
    for entry in hid.enumerate():
        info = _entry_to_info(entry)
        if info.path in seen:
            continue
        seen.add(info.path)
        results.append(info)
    return results


def find_identity(identity: DeviceIdentity) -> List[DeviceInfo]:
    """
    Find all devices matching a vendor/product identity.

    Returns:
        Matching DeviceInfo objects in enumeration order, so the first
        entry is the one a first-match policy picks.
    """
    matches = [
        info for info in enumerate_devices()
        if identity.matches(info.vendor_id, info.product_id)
    ]
    logger.debug(
        f"{len(matches)} device(s) match "
        f"{identity.vendor_id:04X}:{identity.product_id:04X}"
    )
    return matches
