"""
HTTP client for the elevation profile endpoint.

Synchronous, one request at a time -- callers wrap post_request() in
asyncio.to_thread(). No retries: a failed batch is logged by the caller
and the run continues.
"""

import logging

import requests

from ..constants import DEFAULT_SERVICE_URL, DEFAULT_TIMEOUT_S, AppConfig
from ..models.wire import GridRequest

logger = logging.getLogger(__name__)


class ProfileClient:
    """POSTs LineString requests and returns raw response bodies."""

    def __init__(
        self,
        url: str = DEFAULT_SERVICE_URL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self._session = session or requests.Session()
        self._session.headers.setdefault(
            "User-Agent", f"{AppConfig.NAME}/{AppConfig.VERSION}"
        )

    def post_request(self, request: GridRequest) -> bytes:
        """Send one batch and return the response body.

        Raises:
            requests.RequestException: on connection failure, timeout,
                or a non-2xx status
        """
        body = request.model_dump_json()
        logger.debug(f"POST {self.url} ({len(request.coordinates)} points, {len(body)} bytes)")

        response = self._session.post(
            self.url,
            data=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
            timeout=self.timeout_s,
        )
        response.raise_for_status()

        logger.debug(f"Response {response.status_code} ({len(response.content)} bytes)")
        return response.content

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "ProfileClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
