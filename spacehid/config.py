"""Default configuration for the SpaceHID driver layer.

Values here are defaults only; every component accepts overrides through
its constructor keyword arguments.
"""
from __future__ import annotations

from .models import DeviceIdentity

# 3Dconnexion SpaceNavigator
DEFAULT_VENDOR_ID = 0x046D
DEFAULT_PRODUCT_ID = 0xC626
DEFAULT_IDENTITY = DeviceIdentity(
    vendor_id=DEFAULT_VENDOR_ID,
    product_id=DEFAULT_PRODUCT_ID,
)

READ_SIZE = 64  # bytes per hid read (report id + payload, vendor reports may be longer)
READ_TIMEOUT_MS = 100  # reader thread wake-up interval
REMOVAL_POLL_INTERVAL = 0.5  # seconds between enumeration scans
THREAD_JOIN_TIMEOUT = 1.0  # seconds
