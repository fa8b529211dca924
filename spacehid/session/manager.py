"""Device session manager.

Owns at most one open device handle, drives the
IDLE -> OPENING -> ACTIVE -> IDLE lifecycle and republishes decoded
reports as motion events.
"""
from __future__ import annotations

import logging
import threading
from functools import partial
from typing import Any, Callable, Optional

from ..config import DEFAULT_IDENTITY
from ..errors import MalformedReportError, OpenFailedError
from ..models import (
    ConnectEvent,
    DeviceIdentity,
    DeviceInfo,
    DisconnectEvent,
    EventType,
    MotionEvent,
    RotateEvent,
    SessionState,
    TranslateEvent,
    Translation,
)
from ..protocol import decode
from ..transport.base import DeviceRegistry, Transport
from .events import EventCallback, EventDispatcher

logger = logging.getLogger(__name__)

REPORT_LOCK_POLL_INTERVAL = 0.01  # seconds


class SessionManager:
    """Single-device session over a 6-DoF controller.

    Construct one instance per application and hand it to consumers.
    Lifecycle: construct -> initialize() -> ... -> close().

    Guarantees:
    - At most one device is open; opening a new one disconnects the old one
      first (its `disconnect` event precedes the new `connect`).
    - `connect` precedes every report event of a session, `disconnect`
      follows the last one.
    - Report events are emitted in arrival order.

    Locking: `_session_lock` serializes every operation and every emission,
    including report delivery. `_state_lock` only guards field access and is
    never held while calling the transport or subscribers.

    Example:
        >>> manager = SessionManager(HidDeviceRegistry(), HidTransport())
        >>> manager.subscribe(lambda e: print(e), EventType.TRANSLATE)
        >>> manager.initialize()
        >>> # Later...
        >>> manager.close()
    """

    def __init__(self,
                 registry: DeviceRegistry,
                 transport: Transport,
                 identity: DeviceIdentity = DEFAULT_IDENTITY,
                 dispatcher: Optional[EventDispatcher] = None):
        """Initialize session manager.

        Args:
            registry: Device enumeration/selection collaborator
            transport: Raw report transport
            identity: Vendor/product filter for eligible devices
            dispatcher: Event dispatcher, or None to create one
        """
        self._registry = registry
        self._transport = transport
        self._identity = identity
        self._dispatcher = dispatcher or EventDispatcher()

        # Active session
        self._state = SessionState.IDLE
        self._handle: Optional[Any] = None
        self._device: Optional[DeviceInfo] = None
        self._device_name: Optional[str] = None

        self._session_lock = threading.RLock()
        self._state_lock = threading.Lock()

        self._closed = False
        self._unsubscribe_removal = self._registry.subscribe_removal(self._on_device_removed)

    # --- Lifecycle ---

    def initialize(self) -> Optional[DeviceInfo]:
        """Open the first already-authorized device, if any.

        Returns:
            The opened device, or None if no authorized device is available

        Raises:
            OpenFailedError: If the device could not be opened
        """
        devices = self._registry.list_authorized_devices(self._identity)
        if not devices:
            logger.info("No authorized device found")
            return None

        device = devices[0]
        if len(devices) > 1:
            logger.info(f"{len(devices)} authorized devices found, using {device.device_id}")
        self.open_device(device)
        return device

    def request_scan(self) -> Optional[DeviceInfo]:
        """Ask the user to choose a device and open it.

        Returns:
            The opened device, or None if nothing was chosen

        Raises:
            OpenFailedError: If the chosen device could not be opened
        """
        devices = self._registry.request_user_selection(self._identity)
        if not devices:
            logger.info("No device selected")
            return None

        device = devices[0]
        self.open_device(device)
        return device

    def open_device(self, device: DeviceInfo) -> None:
        """Open a device, replacing any active session.

        Args:
            device: Device to open

        Raises:
            OpenFailedError: If the transport could not open the device.
                The manager is left IDLE.
        """
        with self._session_lock:
            if self._current_handle() is not None:
                self.disconnect()

            self._set_state(SessionState.OPENING)

            try:
                handle = self._transport.open(device)
            except OpenFailedError:
                self._set_state(SessionState.IDLE)
                raise
            except Exception as e:
                self._set_state(SessionState.IDLE)
                raise OpenFailedError(f"Failed to open {device.device_id}: {e}", device=device) from e

            try:
                name = self._transport.product_name(handle)
            except Exception as e:
                self._close_handle(handle)
                self._set_state(SessionState.IDLE)
                raise OpenFailedError(
                    f"Failed to read product name of {device.device_id}: {e}", device=device
                ) from e

            with self._state_lock:
                self._handle = handle
                self._device = device
                self._device_name = name
                self._state = SessionState.ACTIVE

            self._dispatcher.emit(ConnectEvent(name=name))

            # Attached after `connect` is out so no report can precede it
            self._transport.on_report(handle, partial(self._on_report, handle))
            logger.info(f"Connected to {name} ({device.device_id})")

    def disconnect(self) -> None:
        """Close the active session, if any, and emit `disconnect`.

        Always emits `disconnect`, even when nothing was open.
        """
        with self._session_lock:
            with self._state_lock:
                handle = self._handle
                device = self._device
                self._handle = None
                self._device = None
                self._device_name = None
                self._state = SessionState.IDLE

            if handle is not None:
                self._close_handle(handle)
                logger.info(f"Disconnected from {device.device_id}")

            self._dispatcher.emit(DisconnectEvent())

    def close(self) -> None:
        """Tear down: stop listening for removals and close any open device."""
        with self._session_lock:
            if self._closed:
                return
            self._closed = True

            self._unsubscribe_removal()
            if self._current_handle() is not None:
                self.disconnect()

    def __enter__(self) -> SessionManager:
        """Context manager support - initialize on enter."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager support - close on exit."""
        self.close()

    # --- Event Interface ---

    def subscribe(
        self,
        callback: EventCallback,
        event_type: Optional[EventType] = None,
    ) -> Callable[[], None]:
        """Subscribe to motion events.

        Args:
            callback: Function that receives MotionEvent instances
            event_type: Only deliver events with this tag, or None for all

        Returns:
            Unsubscribe function
        """
        return self._dispatcher.subscribe(callback, event_type)

    def unsubscribe(self, callback: EventCallback) -> None:
        """Remove every subscription of a callback."""
        self._dispatcher.unsubscribe(callback)

    # --- Status Interface ---

    @property
    def state(self) -> SessionState:
        with self._state_lock:
            return self._state

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def active_device(self) -> Optional[DeviceInfo]:
        with self._state_lock:
            return self._device

    @property
    def device_name(self) -> Optional[str]:
        with self._state_lock:
            return self._device_name

    @property
    def identity(self) -> DeviceIdentity:
        return self._identity

    # Internal methods

    def _set_state(self, state: SessionState) -> None:
        with self._state_lock:
            self._state = state

    def _current_handle(self) -> Optional[Any]:
        with self._state_lock:
            return self._handle

    def _close_handle(self, handle: Any) -> None:
        try:
            self._transport.close(handle)
        except Exception as e:
            logger.error(f"Error closing device handle: {e}")

    def _on_report(self, handle: Any, report_id: int, payload: bytes) -> None:
        """Decode one raw report from `handle` and emit it."""
        # A disconnect in progress holds the session lock while it joins this
        # reader; stop waiting as soon as the handle is no longer current.
        while not self._session_lock.acquire(timeout=REPORT_LOCK_POLL_INTERVAL):
            if self._current_handle() is not handle:
                return

        try:
            if self._current_handle() is not handle:
                return

            try:
                vector = decode(report_id, payload)
            except MalformedReportError as e:
                logger.warning(f"Dropping malformed report: {e}")
                return

            if vector is None:
                logger.debug(f"Ignoring unrecognized report id {report_id}")
                return

            event: MotionEvent
            if isinstance(vector, Translation):
                event = TranslateEvent.from_vector(vector)
            else:
                event = RotateEvent.from_vector(vector)
            self._dispatcher.emit(event)
        finally:
            self._session_lock.release()

    def _on_device_removed(self, device: DeviceInfo) -> None:
        """Handle a removal notification from the registry."""
        with self._session_lock:
            if not device.is_same_device(self.active_device):
                return
            logger.info(f"Active device {device.device_id} was removed")
            self.disconnect()
