"""
Discovery data structures and models
"""

import ipaddress
from typing import Dict, List, Optional
from dataclasses import dataclass, field

from ..errors import DeviceConnectionError, DeviceStatusError, DiscoveryError, ProbeError


@dataclass
class ServiceRecord:
    """A single resolved mDNS reply"""
    name: str
    host: str
    port: int
    ipv4: Optional[str] = None


@dataclass
class DiscoveredDevice:
    """A BluOS player address found during one discovery pass"""
    ipv4: str
    port: int
    host: str = ""
    service_name: str = ""

    @property
    def base_url(self) -> str:
        return f"http://{self.ipv4}:{self.port}"

    @classmethod
    def from_record(cls, record: ServiceRecord) -> Optional["DiscoveredDevice"]:
        """Build a device from a reply, or None if the reply has no usable IPv4 address"""
        if not record.ipv4:
            return None
        try:
            ipaddress.IPv4Address(record.ipv4)
        except ValueError:
            return None
        return cls(ipv4=record.ipv4, port=record.port, host=record.host, service_name=record.name)


@dataclass
class DiscoverySession:
    """Transient state of one discovery pass"""
    pending_service_types: List[str]
    deadline: float
    devices: Dict[str, DiscoveredDevice] = field(default_factory=dict)  # base_url -> device, first-seen order
    errors: List[DiscoveryError] = field(default_factory=list)

    def add(self, record: ServiceRecord) -> Optional[DiscoveredDevice]:
        """Record a reply; returns the device only when it is new to this session"""
        device = DiscoveredDevice.from_record(record)
        if device is None or device.base_url in self.devices:
            return None
        self.devices[device.base_url] = device
        return device

    def remaining(self, now: float) -> float:
        return self.deadline - now

    def results(self) -> List[DiscoveredDevice]:
        return list(self.devices.values())


@dataclass
class ReachabilityResult:
    """Outcome of probing one path on one candidate address"""
    base_url: str
    path: str
    status: Optional[int] = None
    error: Optional[ProbeError] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        """Device answered the probe with 200"""
        return self.status == 200

    @property
    def responded(self) -> bool:
        """Any HTTP response came back, whatever the status"""
        return self.status is not None

    @property
    def connection_failed(self) -> bool:
        return isinstance(self.error, DeviceConnectionError)

    @property
    def status_failed(self) -> bool:
        return isinstance(self.error, DeviceStatusError)


@dataclass
class ResolutionResult:
    """Address chosen by device resolution and how it was chosen"""
    url: str
    outcome: str  # "selected", "fallback"
    candidates: List[str] = field(default_factory=list)


@dataclass
class PlayerHealth:
    """Liveness summary of a resolved player"""
    url: str
    status: str  # "online", "degraded", "unreachable"
    state: Optional[str] = None
    service: Optional[str] = None
    detail: Optional[str] = None
