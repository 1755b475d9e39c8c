"""
Reachability checks for discovered BluOS players
"""

import time
import asyncio
import aiohttp
import logging
from typing import Sequence

from ..errors import DeviceConnectionError, DeviceStatusError, NoDevicesFoundError, NoWorkingDeviceError
from ..http_helper import create_player_session
from .models import ReachabilityResult

logger = logging.getLogger(__name__)

DEFAULT_STATUS_PATH = "/Status"
DEFAULT_REACHABILITY_PATHS = ("/Status", "/Volume", "/")
SELECT_TIMEOUT = 3.0
REACHABILITY_TIMEOUT = 15.0


async def probe_endpoint(session: aiohttp.ClientSession, base_url: str, path: str) -> ReachabilityResult:
    """GET one path and classify the outcome as success, status failure or connection failure"""
    url = f"{base_url}{path}"
    start_time = time.monotonic()
    try:
        async with session.get(url) as response:
            status = response.status
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        return ReachabilityResult(
            base_url=base_url,
            path=path,
            error=DeviceConnectionError(url, e),
            elapsed=time.monotonic() - start_time,
        )

    result = ReachabilityResult(base_url=base_url, path=path, status=status, elapsed=time.monotonic() - start_time)
    if not result.ok:
        result.error = DeviceStatusError(url, status)
    return result


async def select_working_device(
    candidates: Sequence[str],
    status_path: str = DEFAULT_STATUS_PATH,
    timeout: float = SELECT_TIMEOUT
) -> str:
    """
    Return the first candidate answering the status path with 200
    Candidates are tried strictly in order; later ones are never contacted once one succeeds
    """
    if not candidates:
        raise NoDevicesFoundError()

    async with create_player_session(timeout) as session:
        for base_url in candidates:
            logger.info(f"Testing BluOS device: {base_url}{status_path}")
            result = await probe_endpoint(session, base_url, status_path)

            if result.ok:
                logger.info(f"Found working BluOS device: {base_url}")
                return base_url

            if result.connection_failed:
                logger.info(f"Device {base_url} unreachable: {result.error}")
            else:
                logger.info(f"Device {base_url} returned status {result.status}")

    raise NoWorkingDeviceError(tried=len(candidates))


async def is_reachable(
    base_url: str,
    paths: Sequence[str] = DEFAULT_REACHABILITY_PATHS,
    timeout: float = REACHABILITY_TIMEOUT
) -> bool:
    """
    Liveness check that tolerates a misbehaving API
    Any HTTP response on any path counts; False only when no path could be connected to
    """
    async with create_player_session(timeout) as session:
        for path in paths:
            logger.debug(f"Checking device reachability via: {base_url}{path}")
            result = await probe_endpoint(session, base_url, path)

            if result.responded:
                logger.info(f"Device is reachable via {path} (status: {result.status})")
                return True

            logger.info(f"Failed to reach device via {path}: {result.error}")

    logger.warning(f"Device {base_url} appears to be completely unreachable")
    return False
