"""
Device resolution: discovery first, verification of every candidate, fallback to configuration
"""

import time
import logging
from enum import Enum
from typing import List, Optional

from ..config_loader import LocatorConfig
from ..errors import BluOSLocatorError, ConfigurationError, NoDevicesFoundError, ResolutionError
from .mdns_discovery import DiscoveryProber
from .models import DiscoveredDevice, ResolutionResult
from .verification import select_working_device

logger = logging.getLogger(__name__)


class ResolutionStage(str, Enum):
    START = "start"
    DISCOVERING = "discovering"
    VERIFYING = "verifying"
    SELECTED = "selected"
    FALLBACK = "fallback"
    FAILED = "failed"


class PlayerDiscovery:
    """Produces a single usable BluOS player address"""

    def __init__(self, config: LocatorConfig, prober: Optional[DiscoveryProber] = None):
        self.config = config
        self.prober = prober or DiscoveryProber(
            service_types=config.discovery.service_types,
            domain=config.discovery.domain,
            query_pause=config.discovery.query_pause_seconds,
        )
        self.stage = ResolutionStage.START
        self.candidates: List[str] = []

    def _enter(self, stage: ResolutionStage) -> None:
        logger.debug(f"Resolution stage: {self.stage.value} -> {stage.value}")
        self.stage = stage

    async def discover_candidates(self) -> List[DiscoveredDevice]:
        """One discovery pass with the configured timeout"""
        return await self.prober.discover(self.config.discovery.timeout_seconds)

    async def find_valid_player(self) -> str:
        """
        Discover players and return the first one answering its status path
        Raises NoDevicesFoundError or NoWorkingDeviceError
        """
        self._enter(ResolutionStage.DISCOVERING)
        devices = await self.discover_candidates()
        self.candidates = [device.base_url for device in devices]

        if not self.candidates:
            raise NoDevicesFoundError()

        self._enter(ResolutionStage.VERIFYING)
        verification = self.config.verification
        return await select_working_device(
            self.candidates,
            status_path=verification.status_path,
            timeout=verification.select_timeout_seconds,
        )

    async def resolve(self) -> ResolutionResult:
        """Resolve the player address; discovery is attempted once, never retried"""
        start_time = time.time()
        self.stage = ResolutionStage.START
        self.candidates = []

        if self.config.discovery.enabled:
            try:
                url = await self.find_valid_player()
                self._enter(ResolutionStage.SELECTED)
                logger.info(f"Using discovered BluOS device: {url} ({time.time() - start_time:.1f}s)")
                return ResolutionResult(url=url, outcome=self.stage.value, candidates=list(self.candidates))
            except ConfigurationError:
                # Configuration mistakes are not papered over by the fallback
                self._enter(ResolutionStage.FAILED)
                raise
            except BluOSLocatorError as e:
                logger.warning(f"Auto-discovery failed: {e}")
        else:
            logger.info("Auto-discovery disabled in configuration")

        if self.config.fallback_url:
            self._enter(ResolutionStage.FALLBACK)
            logger.info(f"Using configured BluOS device: {self.config.fallback_url}")
            return ResolutionResult(url=self.config.fallback_url, outcome=self.stage.value, candidates=list(self.candidates))

        self._enter(ResolutionStage.FAILED)
        network = f" on network '{self.config.network_name}'" if self.config.network_name else ""
        raise ResolutionError(f"no device found via discovery{network} and no BLUE_URL configured")

    async def resolve_player_url(self) -> str:
        result = await self.resolve()
        return result.url
