"""
Base HTTP client functionality for fleet mining collaborators.

This module provides common functionality for API clients, including:
- Session and connection-level retries
- Request-level retry logic with exponential backoff
- Error handling
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

logger = logging.getLogger(__name__)

# Request-level retries on transport errors (connection refused, timeouts)
REQUEST_ATTEMPTS = 3

TRANSPORT_ERRORS = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)


class BaseAPIClient:
    """Base class for API clients with common functionality."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
        status_forcelist: Optional[List[int]] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        """
        Initialize the base API client.

        Args:
            base_url: Base URL for the API
            timeout: Request timeout in seconds
            max_retries: Maximum number of connection-level retries
            backoff_factor: Backoff factor for connection-level retries
            status_forcelist: HTTP status codes to retry on
            headers: Headers sent with every request
        """
        self.base_url = base_url
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json", **(headers or {})}

        self.session = requests.Session()

        if status_forcelist is None:
            status_forcelist = [429, 500, 502, 503, 504]

        retries = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=status_forcelist,
            allowed_methods=["GET", "POST"]
        )

        self.session.mount('http://', HTTPAdapter(max_retries=retries))
        self.session.mount('https://', HTTPAdapter(max_retries=retries))

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None
    ) -> requests.Response:
        """
        Make an HTTP request to the API.

        Raises:
            requests.exceptions.RequestException: If the request fails or the
                response has an error status
        """
        try:
            response = self.session.request(
                method=method,
                url=self._url(endpoint),
                params=params,
                json=json,
                headers=self.headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            return response
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error: {str(e)}")
            raise

    @retry(
        stop=stop_after_attempt(REQUEST_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type(TRANSPORT_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Make a GET request to the API with retry logic."""
        return self._make_request("GET", endpoint, params=params)

    @retry(
        stop=stop_after_attempt(REQUEST_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type(TRANSPORT_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    def post(self, endpoint: str, json: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Make a POST request to the API with retry logic."""
        return self._make_request("POST", endpoint, json=json)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
