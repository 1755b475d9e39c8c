"""
Discovery module for BluOS player discovery and verification
"""

from .manager import PlayerDiscovery, ResolutionStage
from .models import DiscoveredDevice, DiscoverySession, ReachabilityResult, ResolutionResult, ServiceRecord, PlayerHealth
from .mdns_discovery import DiscoveryProber, ZeroconfQuerier
from .verification import probe_endpoint, select_working_device, is_reachable
from .health import check_player_health

__all__ = [
    'PlayerDiscovery', 'ResolutionStage',
    'DiscoveredDevice', 'DiscoverySession', 'ReachabilityResult', 'ResolutionResult', 'ServiceRecord', 'PlayerHealth',
    'DiscoveryProber', 'ZeroconfQuerier',
    'probe_endpoint', 'select_working_device', 'is_reachable',
    'check_player_health',
]
