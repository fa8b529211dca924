"""SpaceHID - 6-DoF controller HID session and report decoding."""

from .errors import (
    MalformedReportError,
    OpenFailedError,
    SpaceHIDError,
)
from .models import (
    ConnectEvent,
    DeviceIdentity,
    DeviceInfo,
    DisconnectEvent,
    EventType,
    MotionEvent,
    RotateEvent,
    Rotation,
    SessionState,
    TranslateEvent,
    Translation,
)
from .protocol import decode
from .session import EventDispatcher, SessionManager
from .transport import DeviceRegistry, HidDeviceRegistry, HidTransport, Transport

__all__ = [
    "DeviceIdentity",
    "DeviceInfo",
    "Translation",
    "Rotation",
    "SessionState",
    "EventType",
    "ConnectEvent",
    "DisconnectEvent",
    "TranslateEvent",
    "RotateEvent",
    "MotionEvent",
    "decode",
    "EventDispatcher",
    "SessionManager",
    "DeviceRegistry",
    "Transport",
    "HidDeviceRegistry",
    "HidTransport",
    "SpaceHIDError",
    "MalformedReportError",
    "OpenFailedError",
]
