"""
Network Connectivity Check

Advisory check used before long uploads to tell the user whether the device
is online. The result never gates or cancels the upload pipeline.
"""

from typing import List, Optional

import requests

from config import settings
from utils.logger import get_logger

logger = get_logger(__name__)


def check_network_connectivity(endpoints: Optional[List[str]] = None,
                               timeout: Optional[float] = None) -> bool:
    """
    Try a list of endpoints until one answers with a success status.

    Args:
        endpoints: URLs to try in order. Defaults to settings.CONNECTIVITY_ENDPOINTS.
        timeout: Per-endpoint timeout in seconds. Defaults to settings.CONNECTIVITY_TIMEOUT.

    Returns:
        bool: True if any endpoint responded successfully, False otherwise.
    """
    endpoints = endpoints if endpoints is not None else settings.CONNECTIVITY_ENDPOINTS
    timeout = timeout if timeout is not None else settings.CONNECTIVITY_TIMEOUT

    for endpoint in endpoints:
        try:
            response = requests.get(
                endpoint,
                timeout=timeout,
                headers={'Accept': 'application/json, text/plain, */*',
                         'User-Agent': settings.USER_AGENT}
            )
            if response.ok:
                logger.info(f"Network connectivity confirmed via: {endpoint}")
                return True
            logger.debug(f"Network check got HTTP {response.status_code} from {endpoint}")
        except requests.exceptions.RequestException as e:
            logger.debug(f"Network check failed for {endpoint}: {e}")

    logger.warning("All network connectivity checks failed")
    return False
