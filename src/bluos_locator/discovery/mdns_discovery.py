"""
mDNS discovery of BluOS players
"""

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from zeroconf import IPVersion, ServiceStateChange
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from ..constants import BLUOS_SERVICE_TYPES, DEFAULT_DOMAIN
from ..errors import ConfigurationError, DiscoveryError
from .models import DiscoveredDevice, DiscoverySession, ServiceRecord

logger = logging.getLogger(__name__)

# Upper bound for resolving a single service name into address and port
RESOLVE_TIMEOUT = 1.5
# How long a cancelled query may take to release its socket once the deadline fired
CLEANUP_GRACE = 0.1

_DONE = None


class ZeroconfQuerier:
    """Issues DNS-SD queries over one multicast socket held for a whole discovery pass"""

    def __init__(self):
        self._azc: Optional[AsyncZeroconf] = None

    async def __aenter__(self) -> "ZeroconfQuerier":
        self._azc = AsyncZeroconf(ip_version=IPVersion.V4Only)
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._azc:
            await self._azc.async_close()
            self._azc = None

    async def query(self, service_type: str, domain: str, timeout: float, sink: asyncio.Queue) -> None:
        """Browse one service type for `timeout` seconds, pushing resolved replies into `sink`"""
        if self._azc is None:
            raise RuntimeError("ZeroconfQuerier used outside of its context")

        loop = asyncio.get_running_loop()
        full_type = f"{service_type}.{domain}."
        names: asyncio.Queue = asyncio.Queue()

        def on_service_state_change(zeroconf, service_type, name, state_change):
            if state_change in (ServiceStateChange.Added, ServiceStateChange.Updated):
                loop.call_soon_threadsafe(names.put_nowait, name)

        browser = AsyncServiceBrowser(self._azc.zeroconf, full_type, handlers=[on_service_state_change])
        deadline = loop.time() + timeout
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                try:
                    name = await asyncio.wait_for(names.get(), remaining)
                except asyncio.TimeoutError:
                    break

                # Resolving must fit in what is left of this service type's share
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                record = await self._resolve(full_type, name, min(remaining, RESOLVE_TIMEOUT))
                if record:
                    await sink.put(record)
        finally:
            await browser.async_cancel()

    async def _resolve(self, full_type: str, name: str, timeout: float) -> Optional[ServiceRecord]:
        info = AsyncServiceInfo(full_type, name)
        if not await info.async_request(self._azc.zeroconf, max(1, int(timeout * 1000))):
            logger.debug(f"Could not resolve {name}")
            return None

        addresses = info.parsed_addresses(IPVersion.V4Only)
        return ServiceRecord(
            name=name,
            host=info.server or "",
            port=info.port or 0,
            ipv4=addresses[0] if addresses else None,
        )


class DiscoveryProber:
    """Finds BluOS players with best-effort multicast discovery under a hard deadline"""

    def __init__(
        self,
        service_types: Sequence[str] = BLUOS_SERVICE_TYPES,
        domain: str = DEFAULT_DOMAIN,
        query_pause: float = 0.1,
        querier_factory: Callable = ZeroconfQuerier,
        queue_size: int = 32
    ):
        self.service_types = list(service_types)
        if not self.service_types:
            raise ConfigurationError("At least one service type is required for discovery")
        self.domain = domain
        self.query_pause = query_pause
        self.querier_factory = querier_factory
        self.queue_size = queue_size
        self.last_session: Optional[DiscoverySession] = None

    async def discover(self, timeout: float) -> List[DiscoveredDevice]:
        """
        Query every service type, returning unique devices in first-seen order
        Replies collected before the deadline are returned even if queries are still running
        """
        if timeout <= 0:
            raise ConfigurationError(f"Discovery timeout must be positive, got {timeout}")

        loop = asyncio.get_running_loop()
        per_query_timeout = timeout / len(self.service_types)
        logger.info(f"Starting BluOS device discovery (timeout: {timeout:.1f}s)")

        session = DiscoverySession(
            pending_service_types=list(self.service_types),
            deadline=loop.time() + timeout,
        )
        self.last_session = session
        replies: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        producer = asyncio.create_task(self._run_queries(session, per_query_timeout, replies))

        finished = False
        try:
            while True:
                remaining = session.remaining(loop.time())
                if remaining <= 0:
                    break
                try:
                    record = await asyncio.wait_for(replies.get(), remaining)
                except asyncio.TimeoutError:
                    break
                if record is _DONE:
                    finished = True
                    break

                device = session.add(record)
                if device:
                    logger.info(f"Discovered BluOS device: {device.base_url} (service: {device.service_name}, hostname: {device.host})")
        finally:
            await self._stop_producer(producer)

        devices = session.results()
        if finished:
            logger.info(f"Discovery completed. Found {len(devices)} unique BluOS device(s)")
        else:
            logger.info(f"Discovery timeout reached. Found {len(devices)} unique BluOS device(s)")
        return devices

    async def _run_queries(self, session: DiscoverySession, per_query_timeout: float, replies: asyncio.Queue) -> None:
        """Background producer: one query per service type, in declared order"""
        try:
            async with self.querier_factory() as querier:
                while session.pending_service_types:
                    service_type = session.pending_service_types.pop(0)
                    logger.debug(f"Browsing for service type: {service_type}")
                    try:
                        await querier.query(service_type, self.domain, per_query_timeout, replies)
                    except Exception as e:
                        error = DiscoveryError(service_type, e)
                        session.errors.append(error)
                        logger.warning(str(error))

                    # Small delay between queries to avoid flooding the network segment
                    if session.pending_service_types:
                        await asyncio.sleep(self.query_pause)
        except OSError as e:
            # No usable multicast interface; nothing can be discovered this pass
            logger.warning(f"Discovery transport unavailable: {e}")
        except Exception as e:
            logger.error(f"Discovery querier failed: {e!r}")

        await replies.put(_DONE)

    async def _stop_producer(self, producer: asyncio.Task) -> None:
        if producer.done():
            if not producer.cancelled() and producer.exception():
                logger.error(f"Discovery producer failed: {producer.exception()!r}")
            return

        producer.cancel()
        # Late replies are dropped; a slow socket close must not stretch the deadline
        done, _ = await asyncio.wait({producer}, timeout=CLEANUP_GRACE)
        if not done:
            logger.debug("Discovery queries still shutting down after deadline")
