#!/usr/bin/env python3
"""
Interactive motion monitor.

Connects to an already-available 6-DoF controller, or asks which one to use,
and prints every motion event until Ctrl+C.
"""

import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from spacehid import DeviceInfo, OpenFailedError, SessionManager
from spacehid.transport import HidDeviceRegistry, HidTransport

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)


def choose_device(candidates: List[DeviceInfo]) -> Optional[DeviceInfo]:
    """Console chooser: list candidates and read a number."""
    print("\nAvailable devices:")
    for idx, info in enumerate(candidates, 1):
        print(f"  {idx}. {info.product or 'Unknown'} ({info.device_id})")

    answer = input("Select a device (empty to cancel): ").strip()
    if not answer:
        return None
    try:
        return candidates[int(answer) - 1]
    except (ValueError, IndexError):
        print("Invalid selection.")
        return None


def print_event(event):
    print(f"{event.type.value:<10} {event}")


def main():
    manager = SessionManager(HidDeviceRegistry(chooser=choose_device), HidTransport())
    manager.subscribe(print_event)

    try:
        print("Looking for an authorized device...")
        device = manager.initialize()
        if device is None:
            device = manager.request_scan()
        if device is None:
            print("No device connected.")
            return

        print("Move the controller (Ctrl+C to stop)...")
        while True:
            time.sleep(0.5)

    except OpenFailedError as e:
        print(f"Failed to open device: {e}")
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        manager.close()
        print("Done.")


if __name__ == "__main__":
    main()
