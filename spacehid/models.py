"""Immutable data models for 6-DoF controller devices and motion events.

All models are frozen dataclasses to ensure immutability and thread-safety.
These models serve as the contract between the transport, the session
manager and application subscribers.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Union


@dataclass(frozen=True)
class DeviceIdentity:
    """Vendor/product pair used to filter eligible devices.

    Attributes:
        vendor_id: USB Vendor ID
        product_id: USB Product ID
    """
    vendor_id: int
    product_id: int

    def matches(self, vendor_id: Optional[int], product_id: Optional[int]) -> bool:
        """Check whether a vendor/product pair belongs to this identity."""
        return vendor_id == self.vendor_id and product_id == self.product_id


@dataclass(frozen=True)
class DeviceInfo:
    """
    Representation of one HID device as seen by hidapi.

    Instances are the device references handed between the registry,
    the transport and the session manager.

    Attributes:
        path: Platform path to open with hidapi (bytes on most platforms).
        vendor_id: USB Vendor ID.
        product_id: USB Product ID.
        manufacturer: USB manufacturer string, if available.
        product: USB product string, if available.
        serial_number: USB serial string, if available.
    """
    path: Union[bytes, str]
    vendor_id: int
    product_id: int
    manufacturer: Optional[str] = None
    product: Optional[str] = None
    serial_number: Optional[str] = None

    @property
    def device_id(self) -> str:
        """
        Identifier for logging and display.

        Prefers the USB serial_number; falls back to the path.
        """
        if self.serial_number:
            return self.serial_number
        if isinstance(self.path, bytes):
            return self.path.decode(errors="replace")
        return str(self.path)

    def is_same_device(self, other: Optional[DeviceInfo]) -> bool:
        """Two references denote the same physical device when their paths match."""
        return other is not None and other.path == self.path


@dataclass(frozen=True)
class Translation:
    """Translation vector decoded from report id 1."""
    x: int
    y: int
    z: int


@dataclass(frozen=True)
class Rotation:
    """Rotation vector decoded from report id 2."""
    rx: int
    ry: int
    rz: int


MotionVector = Union[Translation, Rotation]


class SessionState(Enum):
    """Lifecycle state of the device session."""
    IDLE = "idle"
    OPENING = "opening"
    ACTIVE = "active"


class EventType(Enum):
    """Tag of a motion event."""
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    TRANSLATE = "translate"
    ROTATE = "rotate"


@dataclass(frozen=True)
class ConnectEvent:
    """Emitted once a device has been opened.

    Attributes:
        name: Human-readable product name of the device
    """
    type: ClassVar[EventType] = EventType.CONNECT
    name: str


@dataclass(frozen=True)
class DisconnectEvent:
    """Emitted whenever the session returns to idle."""
    type: ClassVar[EventType] = EventType.DISCONNECT


@dataclass(frozen=True)
class TranslateEvent:
    type: ClassVar[EventType] = EventType.TRANSLATE
    x: int
    y: int
    z: int

    @classmethod
    def from_vector(cls, vector: Translation) -> TranslateEvent:
        return cls(x=vector.x, y=vector.y, z=vector.z)


@dataclass(frozen=True)
class RotateEvent:
    type: ClassVar[EventType] = EventType.ROTATE
    rx: int
    ry: int
    rz: int

    @classmethod
    def from_vector(cls, vector: Rotation) -> RotateEvent:
        return cls(rx=vector.rx, ry=vector.ry, rz=vector.rz)


# Union type for all events
MotionEvent = Union[
    ConnectEvent,
    DisconnectEvent,
    TranslateEvent,
    RotateEvent,
]
