"""
Cloud Miner API Client

This module provides the HTTP reporting sink used by the AI mining engine
to push aggregate hashrate and efficiency numbers to the cloud miner
service.
"""

import logging
from typing import Any, Dict, Optional

from .base import BaseAPIClient
from .schemas import PerformanceReport

logger = logging.getLogger(__name__)


class CloudMinerClient(BaseAPIClient):
    """
    Client for the cloud miner performance endpoint.

    Implements ``report_performance(label, hashrate, efficiency)`` so it can
    be passed to ``AIMiningCore`` as its reporting sink.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10,
        max_retries: int = 3
    ):
        """
        Initialize the cloud miner client.

        Args:
            base_url: Base URL for the cloud miner API
            api_key: Optional bearer token
            timeout: Request timeout in seconds
            max_retries: Maximum number of connection-level retries
        """
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            headers=headers
        )

    def report_performance(self, label: str, hashrate: float, efficiency: float) -> None:
        """
        Post a performance report.

        Raises:
            pydantic.ValidationError: If the numbers are out of range
            requests.exceptions.RequestException: If the request still fails
                after retries
        """
        report = PerformanceReport(label=label, hashrate=hashrate, efficiency=efficiency)
        self.post("/performance", json=report.model_dump())
        logger.debug(f"Reported performance for {label}")

    def get_status(self) -> Dict[str, Any]:
        """Get the status of the cloud miner API."""
        return self.get("/status").json()
