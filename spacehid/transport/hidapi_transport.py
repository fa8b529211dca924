"""hidapi-backed implementations of the registry and transport collaborators.

HidTransport opens devices with hidapi and runs one reader thread per open
handle. HidDeviceRegistry enumerates devices and watches the enumeration
for removals.

Note: This is a RAW REPORT layer. It does not decode payloads.
      The session manager routes reports through the decoder.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

import hid

from ..config import READ_SIZE, READ_TIMEOUT_MS, REMOVAL_POLL_INTERVAL, THREAD_JOIN_TIMEOUT
from ..errors import OpenFailedError
from ..models import DeviceIdentity, DeviceInfo
from ..protocol import split_report
from .base import DeviceRegistry, RemovalCallback, ReportCallback, Transport
from .device_finder import enumerate_devices, find_identity

logger = logging.getLogger(__name__)

Chooser = Callable[[List[DeviceInfo]], Optional[DeviceInfo]]


class HidHandle:
    """Open hidapi device plus its reader state."""

    def __init__(self, info: DeviceInfo, device):
        self.info = info
        self.device = device
        self.callback: Optional[ReportCallback] = None
        self.reader_thread: Optional[threading.Thread] = None
        self.active = True
        self.closed = False
        self.lock = threading.Lock()

    def __repr__(self) -> str:
        return f"HidHandle({self.info.device_id!r}, closed={self.closed})"


class HidTransport(Transport):
    """Transport that reads raw input reports through hidapi.

    Example:
        >>> transport = HidTransport()
        >>> handle = transport.open(info)
        >>> transport.on_report(handle, lambda rid, payload: print(rid, payload))
        >>> transport.close(handle)
    """

    def __init__(self,
                 read_size: int = READ_SIZE,
                 read_timeout_ms: int = READ_TIMEOUT_MS,
                 join_timeout: float = THREAD_JOIN_TIMEOUT):
        """Initialize transport.

        Args:
            read_size: Maximum bytes per read (report id included)
            read_timeout_ms: Read timeout, bounds how long close() waits for the reader
            join_timeout: Seconds to wait for the reader thread on close
        """
        self._read_size = read_size
        self._read_timeout_ms = read_timeout_ms
        self._join_timeout = join_timeout

    def open(self, device: DeviceInfo) -> HidHandle:
        """Open a device by path.

        Raises:
            OpenFailedError: If hidapi cannot open the device
        """
        hid_device = hid.device()
        try:
            hid_device.open_path(device.path)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to open {device.device_id}: {e}")
            raise OpenFailedError(f"Failed to open {device.device_id}: {e}", device=device) from e

        logger.info(f"Opened HID device {device.device_id}")
        return HidHandle(device, hid_device)

    def close(self, handle: HidHandle) -> None:
        """Stop the reader and close the device. Safe to call multiple times."""
        with handle.lock:
            if handle.closed:
                return
            handle.closed = True
            handle.active = False

        thread = handle.reader_thread
        # The reader may close its own handle from a callback; never join self
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=self._join_timeout)

        handle.callback = None
        try:
            handle.device.close()
        except Exception as e:
            logger.error(f"Error closing HID device {handle.info.device_id}: {e}")

        logger.info(f"Closed HID device {handle.info.device_id}")

    def on_report(self, handle: HidHandle, callback: ReportCallback) -> None:
        """Register the report callback and start the reader thread."""
        with handle.lock:
            if handle.closed:
                logger.warning("Cannot register report callback, handle is closed")
                return
            handle.callback = callback
            if handle.reader_thread is None:
                handle.reader_thread = threading.Thread(
                    target=self._reader_loop,
                    args=(handle,),
                    daemon=True,
                    name="HidReader",
                )
                handle.reader_thread.start()

    def product_name(self, handle: HidHandle) -> str:
        """Product string reported by the device, or the enumerated one."""
        try:
            name = handle.device.get_product_string()
        except Exception as e:
            logger.debug(f"Could not read product string: {e}")
            name = None
        return name or handle.info.product or "Unknown device"

    # Internal methods

    def _reader_loop(self, handle: HidHandle) -> None:
        """Read raw reports and dispatch them to the handle's callback."""
        logger.debug(f"Reader thread started for {handle.info.device_id}")

        while handle.active:
            if not self._read_once(handle):
                break

        logger.debug("Reader thread exiting")

    def _read_once(self, handle: HidHandle) -> bool:
        """Perform one read and dispatch.

        Returns:
            False if the reader should stop
        """
        try:
            data = handle.device.read(self._read_size, self._read_timeout_ms)
        except (OSError, ValueError) as e:
            if handle.active:
                logger.warning(f"HID read error on {handle.info.device_id}: {e}")
            return False

        if not data or not handle.active:
            return True

        report_id, payload = split_report(data)

        callback = handle.callback
        if callback is not None:
            try:
                callback(report_id, payload)
            except Exception as e:
                logger.error(f"Error in report callback: {e}")

        return True


class HidDeviceRegistry(DeviceRegistry):
    """Registry built on hid.enumerate().

    Any enumerable device counts as authorized. User selection goes through
    a chooser callable supplied by the application (console prompt, dialog,
    ...). Removal is detected by polling the enumeration on a background
    thread.
    """

    def __init__(self,
                 chooser: Optional[Chooser] = None,
                 poll_interval: float = REMOVAL_POLL_INTERVAL,
                 join_timeout: float = THREAD_JOIN_TIMEOUT):
        """Initialize registry.

        Args:
            chooser: Function picking one device from candidates, or None to pick nothing
            poll_interval: Seconds between enumeration scans for removals
            join_timeout: Seconds to wait for the watcher thread on stop
        """
        self._chooser = chooser
        self._poll_interval = poll_interval
        self._join_timeout = join_timeout

        self._removal_callbacks: List[RemovalCallback] = []
        self._callback_lock = threading.Lock()

        self._known: Optional[Dict[object, DeviceInfo]] = None
        self._known_lock = threading.Lock()

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def list_authorized_devices(self, identity: DeviceIdentity) -> List[DeviceInfo]:
        return find_identity(identity)

    def request_user_selection(self, identity: DeviceIdentity) -> List[DeviceInfo]:
        if self._chooser is None:
            logger.warning("No device chooser configured, selection skipped")
            return []

        candidates = find_identity(identity)
        if not candidates:
            logger.info("No matching devices to choose from")
            return []

        choice = self._chooser(candidates)
        if choice is None:
            logger.info("Device selection cancelled")
            return []
        return [choice]

    def subscribe_removal(self, callback: RemovalCallback) -> Callable[[], None]:
        """Subscribe to removals; starts the watcher thread on first use."""
        with self._callback_lock:
            self._removal_callbacks.append(callback)

        self.start()

        def unsubscribe():
            with self._callback_lock:
                if callback in self._removal_callbacks:
                    self._removal_callbacks.remove(callback)

        return unsubscribe

    def start(self) -> None:
        """Start the removal watcher (no-op if already running)."""
        if self._thread and self._thread.is_alive():
            return

        # Baseline snapshot so the first poll does not report everything as removed
        self._snapshot()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            daemon=True,
            name="HidRemovalWatcher",
        )
        self._thread.start()
        logger.debug(f"Removal watcher started (interval={self._poll_interval}s)")

    def stop(self) -> None:
        """Stop the removal watcher."""
        self._stop_event.set()
        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=self._join_timeout)
        self._thread = None
        logger.debug("Removal watcher stopped")

    def poll_once(self) -> List[DeviceInfo]:
        """Diff the enumeration against the last snapshot and notify removals.

        Returns:
            Devices that disappeared since the previous poll
        """
        current = {info.path: info for info in enumerate_devices()}

        with self._known_lock:
            previous = self._known
            self._known = current

        if previous is None:
            return []

        removed = [info for path, info in previous.items() if path not in current]
        for info in removed:
            logger.info(f"HID device removed: {info.device_id}")
            self._notify_removal(info)
        return removed

    # Internal methods

    def _snapshot(self) -> None:
        current = {info.path: info for info in enumerate_devices()}
        with self._known_lock:
            self._known = current

    def _watch_loop(self) -> None:
        while not self._stop_event.wait(self._poll_interval):
            try:
                self.poll_once()
            except Exception as e:
                logger.error(f"Error in removal watcher: {e}")

    def _notify_removal(self, info: DeviceInfo) -> None:
        with self._callback_lock:
            callbacks = list(self._removal_callbacks)

        for callback in callbacks:
            try:
                callback(info)
            except Exception as e:
                logger.error(f"Error in removal callback: {e}")
