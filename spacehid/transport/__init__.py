"""Transport layer: collaborator interfaces and their hidapi implementations."""

from .base import DeviceRegistry, Transport
from .device_finder import enumerate_devices, find_identity
from .hidapi_transport import HidDeviceRegistry, HidHandle, HidTransport

__all__ = [
    "DeviceRegistry",
    "Transport",
    "HidDeviceRegistry",
    "HidHandle",
    "HidTransport",
    "enumerate_devices",
    "find_identity",
]
