"""
HTTP transport for the Logger Simple API.

One POST per call; retries belong to ``RetryPolicy``.
"""

import logging
from dataclasses import dataclass

import httpx

from .config import ClientOptions
from .errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResponse:
    """Status and body of a completed round trip."""

    status_code: int
    body: str


class HttpTransport:
    """Posts JSON payloads to the service root over a pooled ``httpx.Client``."""

    def __init__(self, options: ClientOptions, transport: httpx.BaseTransport | None = None):
        """
        Initialize the transport.

        Args:
            options: Client options (URL, timeouts, TLS flag, user agent)
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.url = options.base_url.rstrip("/") + "/"
        self._client = httpx.Client(
            timeout=httpx.Timeout(options.timeout, connect=options.connect_timeout),
            verify=options.tls_verify,
            headers={
                "User-Agent": options.user_agent,
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    def post(self, body: bytes) -> RawResponse:
        """
        Send one request.

        Raises:
            TransportError: no status could be obtained
        """
        try:
            response = self._client.post(self.url, content=body)
        except httpx.TimeoutException as e:
            raise TransportError(f"Transport error: timed out ({type(e).__name__})") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Transport error: {str(e) or type(e).__name__}") from e

        logger.debug(f"POST {self.url} -> HTTP {response.status_code}")
        return RawResponse(status_code=response.status_code, body=response.text)

    def close(self):
        self._client.close()
