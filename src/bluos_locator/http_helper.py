# HTTP Helper for BluOS player connections
# Session configuration and the bounded-retry XML fetch used for /Status

import asyncio
import aiohttp
import logging

from .errors import DeviceConnectionError, DeviceStatusError, ProbeError

logger = logging.getLogger(__name__)


def create_player_session(timeout_seconds: float = 5) -> aiohttp.ClientSession:
    """
    Create properly configured aiohttp session for local BluOS player connections (always HTTP)
    Prevents connection leaks with proper cleanup and limits
    """
    connector = aiohttp.TCPConnector(
        limit_per_host=2,           # Max 2 connections per player IP
        ssl=False,                  # Players serve plain HTTP on port 11000
        force_close=True,           # Force connection cleanup
        enable_cleanup_closed=True  # Additional cleanup
    )

    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=timeout_seconds)
    )


async def fetch_xml(
    url: str,
    timeout_seconds: float = 10,
    retry_attempts: int = 3,
    retry_delay: float = 0.5
) -> bytes:
    """
    GET an XML document from a player, retrying connection and status failures
    Raises the last DeviceConnectionError or DeviceStatusError once attempts run out
    """
    logger.debug(f"Fetching XML from: {url}")
    last_error: ProbeError = DeviceConnectionError(url)

    async with create_player_session(timeout_seconds) as session:
        for attempt in range(1, retry_attempts + 1):
            try:
                async with session.get(url) as response:
                    if response.status == 200:
                        data = await response.read()
                        logger.debug(f"Retrieved {len(data)} bytes from {url} on attempt {attempt}/{retry_attempts}")
                        return data
                    logger.warning(f"Bad status code from {url} (attempt {attempt}/{retry_attempts}): {response.status}")
                    last_error = DeviceStatusError(url, response.status)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.warning(f"Error connecting to {url} (attempt {attempt}/{retry_attempts}): {e!r}")
                last_error = DeviceConnectionError(url, e)

            if attempt < retry_attempts:
                await asyncio.sleep(retry_delay)

    raise last_error
