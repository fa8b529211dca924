"""Unit tests for the hidapi transport and registry."""

import threading
import time
import unittest
from unittest.mock import MagicMock, patch

from spacehid.errors import OpenFailedError
from spacehid.models import DeviceIdentity, DeviceInfo
from spacehid.transport.hidapi_transport import HidDeviceRegistry, HidHandle, HidTransport

IDENTITY = DeviceIdentity(vendor_id=0x046D, product_id=0xC626)
DEVICE_A = DeviceInfo(path=b"/dev/hidraw0", vendor_id=0x046D, product_id=0xC626,
                      product="SpaceNavigator")
DEVICE_B = DeviceInfo(path=b"/dev/hidraw1", vendor_id=0x046D, product_id=0xC626)


class TestHidTransportOpen(unittest.TestCase):
    """Tests for opening devices."""

    @patch('spacehid.transport.hidapi_transport.hid.device')
    def test_open_success(self, mock_device_class):
        mock_device = MagicMock()
        mock_device_class.return_value = mock_device

        handle = HidTransport().open(DEVICE_A)

        self.assertIsInstance(handle, HidHandle)
        self.assertIs(handle.device, mock_device)
        self.assertEqual(handle.info, DEVICE_A)
        mock_device.open_path.assert_called_once_with(b"/dev/hidraw0")

    @patch('spacehid.transport.hidapi_transport.hid.device')
    def test_open_failure(self, mock_device_class):
        """Test hidapi errors become OpenFailedError."""
        mock_device_class.return_value.open_path.side_effect = OSError("open failed")

        with self.assertRaises(OpenFailedError) as ctx:
            HidTransport().open(DEVICE_A)

        self.assertEqual(ctx.exception.device, DEVICE_A)
        self.assertIsInstance(ctx.exception.__cause__, OSError)


class TestHidTransportHandle(unittest.TestCase):
    """Tests for reading, naming and closing handles."""

    def setUp(self):
        self.transport = HidTransport(read_timeout_ms=10, join_timeout=1.0)
        self.device = MagicMock()
        self.device.read.return_value = []
        self.handle = HidHandle(DEVICE_A, self.device)

    def tearDown(self):
        self.transport.close(self.handle)

    def test_product_name(self):
        self.device.get_product_string.return_value = "SpaceNavigator for Notebooks"
        self.assertEqual(self.transport.product_name(self.handle), "SpaceNavigator for Notebooks")

    def test_product_name_fallback(self):
        self.device.get_product_string.return_value = None
        self.assertEqual(self.transport.product_name(self.handle), "SpaceNavigator")

        self.device.get_product_string.side_effect = OSError("not supported")
        self.assertEqual(self.transport.product_name(self.handle), "SpaceNavigator")

        handle = HidHandle(DEVICE_B, self.device)
        self.assertEqual(self.transport.product_name(handle), "Unknown device")

    def test_read_once_dispatches_split_report(self):
        callback = MagicMock()
        self.handle.callback = callback
        self.device.read.return_value = [1, 10, 0, 20, 0, 30, 0]

        self.assertTrue(self.transport._read_once(self.handle))

        self.device.read.assert_called_once_with(64, 10)
        callback.assert_called_once_with(1, bytes([10, 0, 20, 0, 30, 0]))

    def test_read_once_timeout(self):
        callback = MagicMock()
        self.handle.callback = callback

        self.assertTrue(self.transport._read_once(self.handle))
        callback.assert_not_called()

    def test_read_once_error_stops_reader(self):
        self.device.read.side_effect = OSError("read error")

        with self.assertLogs('spacehid.transport.hidapi_transport', level='WARNING'):
            self.assertFalse(self.transport._read_once(self.handle))

    def test_read_once_callback_error_logged(self):
        self.handle.callback = MagicMock(side_effect=RuntimeError("boom"))
        self.device.read.return_value = [2, 0, 0, 0, 0, 0, 0]

        with self.assertLogs('spacehid.transport.hidapi_transport', level='ERROR'):
            self.assertTrue(self.transport._read_once(self.handle))

    def test_reader_thread_delivers_reports(self):
        """Test on_report starts a reader that delivers in order."""
        reports = [[1, 1, 0, 2, 0, 3, 0], [2, 4, 0, 5, 0, 6, 0]]

        def fake_read(size, timeout_ms):
            if reports:
                return reports.pop(0)
            time.sleep(timeout_ms / 1000.0)
            return []

        self.device.read.side_effect = fake_read
        received = []
        done = threading.Event()

        def on_report(report_id, payload):
            received.append((report_id, payload))
            if len(received) == 2:
                done.set()

        self.transport.on_report(self.handle, on_report)

        self.assertTrue(done.wait(timeout=2.0))
        self.assertEqual(received, [
            (1, bytes([1, 0, 2, 0, 3, 0])),
            (2, bytes([4, 0, 5, 0, 6, 0])),
        ])

        self.transport.close(self.handle)
        self.assertFalse(self.handle.reader_thread.is_alive())

    def test_close_idempotent(self):
        self.transport.close(self.handle)
        self.transport.close(self.handle)

        self.device.close.assert_called_once()
        self.assertTrue(self.handle.closed)
        self.assertIsNone(self.handle.callback)

    def test_close_error_logged(self):
        self.device.close.side_effect = OSError("gone")

        with self.assertLogs('spacehid.transport.hidapi_transport', level='ERROR'):
            self.transport.close(self.handle)

        self.assertTrue(self.handle.closed)

    def test_on_report_after_close_ignored(self):
        self.transport.close(self.handle)

        with self.assertLogs('spacehid.transport.hidapi_transport', level='WARNING'):
            self.transport.on_report(self.handle, MagicMock())

        self.assertIsNone(self.handle.reader_thread)


@patch('spacehid.transport.hidapi_transport.find_identity')
class TestHidDeviceRegistrySelection(unittest.TestCase):
    """Tests for enumeration and user selection."""

    def test_list_authorized_devices(self, mock_find):
        mock_find.return_value = [DEVICE_A, DEVICE_B]

        devices = HidDeviceRegistry().list_authorized_devices(IDENTITY)

        self.assertEqual(devices, [DEVICE_A, DEVICE_B])
        mock_find.assert_called_once_with(IDENTITY)

    def test_selection_without_chooser(self, mock_find):
        mock_find.return_value = [DEVICE_A]

        with self.assertLogs('spacehid.transport.hidapi_transport', level='WARNING'):
            self.assertEqual(HidDeviceRegistry().request_user_selection(IDENTITY), [])

    def test_selection_with_chooser(self, mock_find):
        mock_find.return_value = [DEVICE_A, DEVICE_B]
        chooser = MagicMock(return_value=DEVICE_B)

        result = HidDeviceRegistry(chooser=chooser).request_user_selection(IDENTITY)

        self.assertEqual(result, [DEVICE_B])
        chooser.assert_called_once_with([DEVICE_A, DEVICE_B])

    def test_selection_cancelled(self, mock_find):
        mock_find.return_value = [DEVICE_A]
        chooser = MagicMock(return_value=None)

        self.assertEqual(HidDeviceRegistry(chooser=chooser).request_user_selection(IDENTITY), [])

    def test_selection_no_candidates(self, mock_find):
        mock_find.return_value = []
        chooser = MagicMock()

        self.assertEqual(HidDeviceRegistry(chooser=chooser).request_user_selection(IDENTITY), [])
        chooser.assert_not_called()


@patch('spacehid.transport.hidapi_transport.enumerate_devices')
class TestHidDeviceRegistryRemoval(unittest.TestCase):
    """Tests for removal detection."""

    def test_first_poll_is_baseline(self, mock_enumerate):
        mock_enumerate.return_value = [DEVICE_A]
        registry = HidDeviceRegistry()

        self.assertEqual(registry.poll_once(), [])

    def test_poll_reports_removed_devices(self, mock_enumerate):
        registry = HidDeviceRegistry()
        callback = MagicMock()
        registry._removal_callbacks.append(callback)

        mock_enumerate.return_value = [DEVICE_A, DEVICE_B]
        registry.poll_once()
        mock_enumerate.return_value = [DEVICE_B]
        removed = registry.poll_once()

        self.assertEqual(removed, [DEVICE_A])
        callback.assert_called_once_with(DEVICE_A)

    def test_added_devices_not_reported(self, mock_enumerate):
        registry = HidDeviceRegistry()
        mock_enumerate.return_value = []
        registry.poll_once()
        mock_enumerate.return_value = [DEVICE_A]

        self.assertEqual(registry.poll_once(), [])

    def test_subscribe_starts_watcher(self, mock_enumerate):
        mock_enumerate.return_value = [DEVICE_A]
        registry = HidDeviceRegistry(poll_interval=60.0)
        callback = MagicMock()

        unsubscribe = registry.subscribe_removal(callback)
        try:
            self.assertTrue(registry._thread.is_alive())

            # Baseline was taken on start, so the next poll sees the removal
            mock_enumerate.return_value = []
            registry.poll_once()
            callback.assert_called_once_with(DEVICE_A)

            unsubscribe()
            mock_enumerate.return_value = [DEVICE_A]
            registry.poll_once()
            mock_enumerate.return_value = []
            registry.poll_once()
            callback.assert_called_once()
        finally:
            registry.stop()

        self.assertIsNone(registry._thread)

    def test_removal_callback_error_logged(self, mock_enumerate):
        registry = HidDeviceRegistry()
        bad = MagicMock(side_effect=RuntimeError("boom"))
        good = MagicMock()
        registry._removal_callbacks.extend([bad, good])

        mock_enumerate.return_value = [DEVICE_A]
        registry.poll_once()
        mock_enumerate.return_value = []
        with self.assertLogs('spacehid.transport.hidapi_transport', level='ERROR'):
            registry.poll_once()

        good.assert_called_once_with(DEVICE_A)


if __name__ == '__main__':
    unittest.main()
