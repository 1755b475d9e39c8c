"""
Player health: distinguishes a working player from a degraded API and a dead host
"""

import logging
from typing import Optional
from xml.etree import ElementTree

from ..config_loader import VerificationSettings
from ..errors import ProbeError
from ..http_helper import fetch_xml
from .models import PlayerHealth
from .verification import is_reachable

logger = logging.getLogger(__name__)


def _xml_text(root: ElementTree.Element, tag: str) -> Optional[str]:
    """Get text content of a child element"""
    el = root.find(tag)
    return el.text if el is not None and el.text else None


async def check_player_health(base_url: str, settings: Optional[VerificationSettings] = None) -> PlayerHealth:
    """Fetch /Status; if that fails, fall back to the multi-path liveness check"""
    settings = settings or VerificationSettings()
    status_url = f"{base_url}{settings.status_path}"

    try:
        xml_bytes = await fetch_xml(
            status_url,
            timeout_seconds=settings.request_timeout_seconds,
            retry_attempts=settings.retry_attempts,
            retry_delay=settings.retry_delay_seconds,
        )
        root = ElementTree.fromstring(xml_bytes)
    except ProbeError as e:
        detail = str(e)
    except ElementTree.ParseError as e:
        logger.warning(f"Failed to parse status XML from {status_url}: {e}")
        detail = f"XML parsing error: {e}"
    else:
        state = _xml_text(root, "state")
        service = _xml_text(root, "service")
        logger.info(f"Player state: {state}, Service: {service}")
        return PlayerHealth(url=base_url, status="online", state=state, service=service)

    if await is_reachable(base_url, settings.reachability_paths, settings.reachability_timeout_seconds):
        logger.warning(f"Device {base_url} is reachable but its API is misbehaving: {detail}")
        return PlayerHealth(url=base_url, status="degraded", detail=detail)

    return PlayerHealth(url=base_url, status="unreachable", detail=detail)
