"""
Player Locator - orchestrates configuration, discovery and health checks for the menu-bar plugin
"""

import logging
from typing import Dict, List, Optional

from ..config_loader import load_config, setup_logging, build_locator_config
from ..discovery.health import check_player_health
from ..discovery.manager import PlayerDiscovery
from ..discovery.mdns_discovery import DiscoveryProber
from ..discovery.models import DiscoveredDevice, PlayerHealth, ResolutionResult

logger = logging.getLogger(__name__)


class PlayerLocator:
    """Entry point used by the command line; builds its configuration once at startup"""

    def __init__(self, config_path: Optional[str] = None, config: Optional[Dict] = None,
                 prober: Optional[DiscoveryProber] = None, configure_logging: bool = True):
        self.config = config if config is not None else load_config(config_path)
        if configure_logging:
            setup_logging(self.config)

        self.locator_config = build_locator_config(self.config)
        self.discovery = PlayerDiscovery(self.locator_config, prober)

        if self.locator_config.network_name:
            logger.info(f"Expected network: {self.locator_config.network_name}")

    async def resolve(self) -> ResolutionResult:
        return await self.discovery.resolve()

    async def discover(self) -> List[DiscoveredDevice]:
        """Discovery only, without verification or fallback"""
        return await self.discovery.discover_candidates()

    async def check(self) -> PlayerHealth:
        """Resolve the player, then report whether it is online, degraded or unreachable"""
        result = await self.discovery.resolve()
        health = await check_player_health(result.url, self.locator_config.verification)
        logger.info(f"Player {health.url} is {health.status} (resolved via {result.outcome})")
        return health
