"""Exceptions raised by the SpaceHID driver layer."""


class SpaceHIDError(RuntimeError):
    """Base class for all SpaceHID errors."""
    pass


class MalformedReportError(SpaceHIDError, ValueError):
    """Raised when a raw report payload does not have the expected length."""
    def __init__(self, message, payload=None):
        super().__init__(message)
        self.payload = payload


class OpenFailedError(SpaceHIDError):
    """Raised when a device could not be opened (permission, busy, removed)."""
    def __init__(self, message, device=None):
        super().__init__(message)
        self.device = device  # DeviceInfo, kept untyped to avoid circular imports
