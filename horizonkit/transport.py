"""
Horizonkit - HTTP transport and response classification.

``HorizonTransport`` is the only place that talks to httpx. Transport-level
failures leave it as ``CONNECTION_ERROR``; ``raise_for_status`` maps HTTP
outcomes to the rest of the error taxonomy.
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import httpx

from .config import ClientConfig
from .exceptions import ErrorKind, HorizonError
from .models import RateLimit

logger = logging.getLogger("horizonkit.transport")


class HorizonTransport:
    """
    Synchronous HTTP transport shared by every request builder.

    Example:
        ```python
        with HorizonTransport(ClientConfig()) as transport:
            response = transport.get("https://horizon.stellar.org/ledgers")
        ```
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.config = config or ClientConfig()
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self.config.timeout)

    @property
    def client(self) -> httpx.Client:
        return self._client

    def get(self, url: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        """Issue one GET request."""
        logger.debug("GET %s params=%s", url, params)
        try:
            return self._client.get(url, params=params, headers=self.config.headers)
        except httpx.TransportError as e:
            raise HorizonError(
                f"Connection error on GET {url}: {e}",
                kind=ErrorKind.CONNECTION_ERROR,
            ) from e

    def post(self, url: str, data: dict[str, Any]) -> httpx.Response:
        """Issue one form-encoded POST request."""
        logger.debug("POST %s", url)
        try:
            return self._client.post(url, data=data, headers=self.config.headers)
        except httpx.TransportError as e:
            raise HorizonError(
                f"Connection error on POST {url}: {e}",
                kind=ErrorKind.CONNECTION_ERROR,
            ) from e

    @contextmanager
    def stream(self, url: str) -> Iterator[httpx.Response]:
        """Open a Server-Sent Events connection; the body is read lazily."""
        headers = dict(self.config.headers)
        headers["Accept"] = "text/event-stream"
        headers["Cache-Control"] = "no-cache"
        logger.debug("STREAM %s", url)
        try:
            with self._client.stream("GET", url, headers=headers, timeout=None) as response:
                yield response
        except httpx.TransportError as e:
            raise HorizonError(
                f"Connection error on stream {url}: {e}",
                kind=ErrorKind.CONNECTION_ERROR,
            ) from e

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HorizonTransport":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def _error_body(response: httpx.Response) -> Optional[Any]:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def raise_for_status(response: httpx.Response) -> None:
    """Raise the ``HorizonError`` matching a non-2xx response."""
    status = response.status_code
    if 200 <= status < 300:
        return

    body = _error_body(response)
    if status == 404:
        raise HorizonError(
            f"Resource not found: {response.request.url}",
            kind=ErrorKind.NOT_FOUND,
            status_code=status,
            response=body,
        )
    if status == 429:
        try:
            rate_limit = RateLimit.from_headers(response.headers)
        except HorizonError:
            rate_limit = None
        raise HorizonError(
            "Too many requests",
            kind=ErrorKind.TOO_MANY_REQUESTS,
            status_code=status,
            response=body,
            rate_limit=rate_limit,
        )
    raise HorizonError(
        f"Request failed with status {status}",
        kind=ErrorKind.SERVER_ERROR,
        status_code=status,
        response=body,
    )


def decode_json(response: httpx.Response) -> Any:
    """Decode a required JSON body."""
    if not response.content:
        raise HorizonError(
            f"Empty response body (status {response.status_code})",
            kind=ErrorKind.DECODE_ERROR,
            status_code=response.status_code,
        )
    try:
        return json.loads(response.content)
    except ValueError as e:
        raise HorizonError(
            f"Invalid JSON response (status {response.status_code}): {response.text[:200]}",
            kind=ErrorKind.DECODE_ERROR,
            status_code=response.status_code,
        ) from e
