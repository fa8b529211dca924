"""Abstract collaborator interfaces consumed by the session manager.

Two collaborators sit below the session manager:

- DeviceRegistry: enumeration of already-authorized devices, user-driven
  device selection and a process-wide stream of removal notifications.
- Transport: opening/closing device handles and delivering raw reports.

Implementations can use hidapi, a platform HID service, or test fakes.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, List

from ..models import DeviceIdentity, DeviceInfo

ReportCallback = Callable[[int, bytes], None]
RemovalCallback = Callable[[DeviceInfo], None]


class DeviceRegistry(ABC):
    """Device enumeration and selection collaborator."""

    @abstractmethod
    def list_authorized_devices(self, identity: DeviceIdentity) -> List[DeviceInfo]:
        """List devices the process may already open.

        Args:
            identity: Vendor/product filter

        Returns:
            Matching devices, possibly empty
        """
        pass

    @abstractmethod
    def request_user_selection(self, identity: DeviceIdentity) -> List[DeviceInfo]:
        """Ask the user to pick a device.

        The implementation owns the user-intent boundary (prompt, dialog,
        permission grant).

        Args:
            identity: Vendor/product filter

        Returns:
            Empty list if the user chose nothing, otherwise one device
        """
        pass

    @abstractmethod
    def subscribe_removal(self, callback: RemovalCallback) -> Callable[[], None]:
        """Subscribe to device removal notifications.

        The callback fires for every detached device, matching or not.

        Args:
            callback: Function that receives the removed DeviceInfo

        Returns:
            Unsubscribe function to remove this callback
        """
        pass


class Transport(ABC):
    """Raw report transport collaborator.

    Handles are opaque to callers; only the transport interprets them.
    """

    @abstractmethod
    def open(self, device: DeviceInfo) -> Any:
        """Open a device.

        Args:
            device: Device to open

        Returns:
            Opaque handle

        Raises:
            OpenFailedError: On permission or hardware error
        """
        pass

    @abstractmethod
    def close(self, handle: Any) -> None:
        """Close a handle.

        Should be safe to call multiple times. Once it returns, the report
        callback registered for the handle is no longer invoked.
        """
        pass

    @abstractmethod
    def on_report(self, handle: Any, callback: ReportCallback) -> None:
        """Register the raw-report delivery callback for a handle.

        Args:
            handle: Handle returned by open()
            callback: Function called with (report_id, payload) per report
        """
        pass

    @abstractmethod
    def product_name(self, handle: Any) -> str:
        """Human-readable product name of an open handle."""
        pass
