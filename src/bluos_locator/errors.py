"""
Error types for BluOS player discovery and verification
"""

from typing import Optional


class BluOSLocatorError(Exception):
    """Base class for all locator errors"""


class ConfigurationError(BluOSLocatorError, ValueError):
    """Invalid configuration value (bad timeout, malformed config file)"""


class DiscoveryError(BluOSLocatorError):
    """A single service-type query failed; non-fatal to the discovery pass"""

    def __init__(self, service_type: str, cause: Exception):
        self.service_type = service_type
        self.cause = cause
        super().__init__(f"Discovery query for {service_type} failed: {cause}")


class NoDevicesFoundError(BluOSLocatorError):
    """Discovery completed without any candidate"""

    def __init__(self, message: str = "no BluOS devices found on network"):
        super().__init__(message)


class NoWorkingDeviceError(BluOSLocatorError):
    """Candidates were found but none passed the working-device check"""

    def __init__(self, tried: int):
        self.tried = tried
        super().__init__(f"no working BluOS devices found (tested {tried} device(s))")


class ProbeError(BluOSLocatorError):
    """Base for failures of a single HTTP probe"""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(message)


class DeviceConnectionError(ProbeError):
    """Transport failed to connect at all (refused, timeout, DNS, reset)"""

    def __init__(self, url: str, cause: Optional[Exception] = None):
        self.cause = cause
        if cause is None:
            reason = "connection failed"
        else:
            # asyncio.TimeoutError stringifies to an empty message
            reason = str(cause) or type(cause).__name__
        super().__init__(url, f"GET error for {url}: {reason}")


class DeviceStatusError(ProbeError):
    """A response was received with a non-success HTTP status"""

    def __init__(self, url: str, status: int):
        self.status = status
        super().__init__(url, f"Status error for {url}: {status}")


class ResolutionError(BluOSLocatorError):
    """Neither discovery nor fallback configuration produced an address"""
