"""
Horizonkit - Request builder.

One generic builder serves every collection endpoint. Resource-specific
filtering is done with small filter values (see ``horizonkit.filters``)
applied through ``RequestBuilder.where``.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Generic, Iterator, Optional, TypeVar, Union
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from .exceptions import ErrorKind, HorizonError
from .models import Order, Page
from .validation import validate_positive_int, validate_segment

if TYPE_CHECKING:
    from .pagination import PageFetcher
    from .streaming import RecordQueue, StreamSession

logger = logging.getLogger("horizonkit.builder")

T = TypeVar("T")

RequestFilter = Callable[["RequestBuilder[Any]"], None]


@dataclass(frozen=True)
class RequestDescriptor:
    """A finalized request: base endpoint, path segments and query parameters."""

    base_url: str
    segments: tuple[str, ...]
    params: tuple[tuple[str, str], ...] = ()

    @property
    def uri(self) -> str:
        parts = urlsplit(self.base_url)
        path = parts.path.rstrip("/")
        path += "".join("/" + quote(segment, safe="") for segment in self.segments)
        return urlunsplit(
            (parts.scheme, parts.netloc, path or "/", urlencode(self.params), "")
        )

    def __str__(self) -> str:
        return self.uri


class RequestBuilder(Generic[T]):
    """
    Accumulates path segments and query parameters for one resource.

    The path starts at the resource's default segments and may be replaced
    exactly once with ``set_segments``. Query parameters are last-write-wins.

    Example:
        ```python
        page = (
            client.payments()
            .where(for_account("GABC..."))
            .order(Order.DESC)
            .limit(20)
            .execute()
        )
        ```
    """

    def __init__(
        self,
        fetcher: "PageFetcher",
        base_url: str,
        resource: str,
        decoder: Callable[[dict[str, Any]], T],
    ):
        self._fetcher = fetcher
        self.base_url = base_url
        self.resource = resource
        self.decoder = decoder
        self._segments: tuple[str, ...] = tuple(resource.split("/"))
        self._segments_set = False
        self._params: dict[str, str] = {}

    @property
    def segments(self) -> tuple[str, ...]:
        return self._segments

    @property
    def params(self) -> dict[str, str]:
        return dict(self._params)

    def set_segments(self, *segments: Union[str, int]) -> "RequestBuilder[T]":
        """Replace the whole path. Allowed only once per builder."""
        if self._segments_set:
            raise HorizonError(
                f"Path segments already set to /{'/'.join(self._segments)}",
                kind=ErrorKind.BUILDER_MISUSE,
            )
        for segment in segments:
            validate_segment(segment)
        self._segments = tuple(str(segment) for segment in segments)
        self._segments_set = True
        return self

    def param(self, name: str, value: Any) -> "RequestBuilder[T]":
        """Add or overwrite one query parameter."""
        self._params[name] = str(value)
        return self

    def cursor(self, token: str) -> "RequestBuilder[T]":
        """
        Set the ``cursor`` parameter.

        A cursor is an opaque paging token pointing to a position in the
        collection; ``"now"`` starts a stream at the present.
        """
        return self.param("cursor", token)

    def limit(self, number: int) -> "RequestBuilder[T]":
        """Set the maximum number of records per page."""
        validate_positive_int(number, "limit")
        return self.param("limit", number)

    def order(self, direction: Union[Order, str]) -> "RequestBuilder[T]":
        try:
            direction = Order(direction)
        except ValueError as e:
            raise HorizonError(
                f"order must be 'asc' or 'desc', got {direction!r}",
                kind=ErrorKind.BUILDER_MISUSE,
            ) from e
        return self.param("order", direction.value)

    def where(self, *filters: RequestFilter) -> "RequestBuilder[T]":
        """Apply filter values in order."""
        for request_filter in filters:
            request_filter(self)
        return self

    def build(self) -> RequestDescriptor:
        return RequestDescriptor(
            base_url=self.base_url,
            segments=self._segments,
            params=tuple(self._params.items()),
        )

    def build_uri(self) -> str:
        return self.build().uri

    # ==================== Execution ====================

    def execute(self) -> Page[T]:
        """Fetch the first page of the built request."""
        return self._fetcher.fetch_page(self.build_uri(), self.decoder)

    def record(self) -> T:
        """Fetch the built URI as a single record rather than a page."""
        return self._fetcher.fetch_record(self.build_uri(), self.decoder)

    def pages(self) -> Iterator[Page[T]]:
        """Lazily walk pages forward from the built request."""
        return self._fetcher.iter_pages(self.build_uri(), self.decoder)

    def records(self, max_pages: Optional[int] = None) -> Iterator[T]:
        """Lazily yield records across pages."""
        return self._fetcher.iter_records(self.build_uri(), self.decoder, max_pages)

    def stream(
        self,
        handler: Callable[[T], None],
        error_handler: Optional[Callable[[HorizonError], None]] = None,
    ) -> "StreamSession[T]":
        """Open a live stream on the built request and start delivering records."""
        from .streaming import StreamSession

        session = StreamSession(
            self._fetcher.transport,
            self.build_uri(),
            self.decoder,
            handler,
            error_handler=error_handler,
        )
        session.start()
        return session

    def stream_queue(self) -> "RecordQueue[T]":
        """Open a live stream consumed by pulling records from a queue."""
        from .streaming import RecordQueue

        queue = RecordQueue(self._fetcher.transport, self.build_uri(), self.decoder)
        queue.start()
        return queue
