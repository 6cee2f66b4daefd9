"""GraphQL client for a single store's Admin API endpoint."""

import time
import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..models.config import StoreConfig

logger = logging.getLogger(__name__)


class GraphQLError(RuntimeError):
    """Raised when a response carries top-level GraphQL errors."""

    def __init__(self, errors: Any):
        self.errors = errors
        if isinstance(errors, list):
            message = "; ".join(
                e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in errors
            )
        else:
            message = str(errors)
        super().__init__(f"GraphQL errors: {message}")


class GraphQLClient:
    """
    Client for one store's GraphQL endpoint.

    Requests are sent one at a time; a minimum interval between requests
    keeps the client under the store's rate limit. Throttled requests
    (HTTP 429) are retried by the transport, nothing else is.
    """

    def __init__(self, config: StoreConfig, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: Store endpoint and credentials
            session: Custom requests session
        """
        self.config = config
        self.url = config.url
        self._session = session or self._create_session()
        self._session.headers["X-Shopify-Access-Token"] = config.access_token
        self._session.headers["Content-Type"] = "application/json"
        self._last_request_time = 0.0

    def _create_session(self) -> requests.Session:
        """Create a requests session that backs off on throttling."""
        session = requests.Session()

        retries = Retry(
            total=self.config.max_retries,
            backoff_factor=2.0,
            status_forcelist=[429],
            allowed_methods=frozenset(["POST"]),
            respect_retry_after_header=True,
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retries)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        return session

    def _rate_limit_wait(self):
        """Wait to respect rate limits."""
        if self.config.rate_limit > 0:
            elapsed = time.time() - self._last_request_time
            wait_time = (1.0 / self.config.rate_limit) - elapsed
            if wait_time > 0:
                time.sleep(wait_time)
        self._last_request_time = time.time()

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute a query or mutation.

        Args:
            query: GraphQL document
            variables: Variables for the document

        Returns:
            The response's ``data`` object

        Raises:
            requests.RequestException: On network or HTTP failure
            GraphQLError: If the response carries ``errors``
        """
        payload = {"query": query, "variables": variables or {}}

        self._rate_limit_wait()
        logger.debug(f"POST {self.url} variables={variables}")

        response = self._session.post(self.url, json=payload, timeout=self.config.timeout)
        response.raise_for_status()

        result = response.json()
        if result.get("errors"):
            raise GraphQLError(result["errors"])

        return result.get("data") or {}
