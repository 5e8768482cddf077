"""
Horizonkit - Page fetching and cursor-based iteration.

A page is fetched with one GET and never mutated afterwards; moving to the
next page is a fresh, independent fetch of the page's ``next`` link.
"""

import logging
from typing import Any, Callable, Iterator, Optional, TypeVar

from .exceptions import ErrorKind, HorizonError
from .models import Page, PageLinks, RateLimit
from .transport import HorizonTransport, decode_json, raise_for_status
from .validation import InputValidationError

logger = logging.getLogger("horizonkit.pagination")

T = TypeVar("T")

Decoder = Callable[[dict[str, Any]], T]


def decode_record(data: Any, decoder: Decoder) -> T:
    """Run a record decoder, turning shape mismatches into ``DECODE_ERROR``."""
    if not isinstance(data, dict):
        raise HorizonError(
            f"Expected a JSON object, got {type(data).__name__}",
            kind=ErrorKind.DECODE_ERROR,
            response=data,
        )
    try:
        return decoder(data)
    except InputValidationError as e:
        raise HorizonError(
            f"Record has an invalid field: {e.message}",
            kind=ErrorKind.DECODE_ERROR,
            response=data,
        ) from e
    except (KeyError, TypeError, ValueError) as e:
        raise HorizonError(
            f"Record does not match the expected shape: {e!r}",
            kind=ErrorKind.DECODE_ERROR,
            response=data,
        ) from e


def decode_page(
    data: Any, decoder: Decoder, rate_limit: Optional[RateLimit] = None
) -> Page[T]:
    """
    Decode a page envelope.

    The flat shape ``{"records": [...], "links": {...}}`` is preferred; the
    HAL shape ``{"_embedded": {"records": [...]}, "_links": {...}}`` served by
    Horizon is accepted when the flat one is absent.
    """
    if not isinstance(data, dict):
        raise HorizonError(
            "Page envelope must be a JSON object",
            kind=ErrorKind.DECODE_ERROR,
            response=data,
        )

    records = data.get("records")
    if records is None:
        records = (data.get("_embedded") or {}).get("records")
    links = data.get("links")
    if links is None:
        links = data.get("_links")

    if not isinstance(records, list):
        raise HorizonError(
            "Page envelope has no records array",
            kind=ErrorKind.DECODE_ERROR,
            response=data,
        )
    if links is not None and not isinstance(links, dict):
        raise HorizonError(
            "Page envelope links must be an object",
            kind=ErrorKind.DECODE_ERROR,
            response=data,
        )

    return Page(
        records=[decode_record(item, decoder) for item in records],
        links=PageLinks.from_dict(links),
        rate_limit=rate_limit or RateLimit(),
        decoder=decoder,
    )


class PageFetcher:
    """Executes built requests and walks the resulting pages."""

    def __init__(self, transport: HorizonTransport):
        self.transport = transport

    def fetch_page(self, uri: str, decoder: Decoder) -> Page[T]:
        """Issue one GET for ``uri`` and decode the page envelope."""
        response = self.transport.get(uri)
        raise_for_status(response)
        rate_limit = RateLimit.from_headers(response.headers)
        page = decode_page(decode_json(response), decoder, rate_limit)
        logger.debug("Fetched %d records from %s", len(page), uri)
        return page

    def fetch_record(self, uri: str, decoder: Decoder) -> T:
        """Issue one GET for ``uri`` and decode a single record."""
        response = self.transport.get(uri)
        raise_for_status(response)
        return decode_record(decode_json(response), decoder)

    def next_page(self, page: Page[T]) -> Optional[Page[T]]:
        """
        Fetch the page after ``page``.

        Returns ``None`` without any request when there is no ``next`` link.
        """
        if page.links.next is None:
            return None
        return self.fetch_page(page.links.next.href, self._decoder_of(page))

    def previous_page(self, page: Page[T]) -> Optional[Page[T]]:
        if page.links.prev is None:
            return None
        return self.fetch_page(page.links.prev.href, self._decoder_of(page))

    def iter_pages(
        self, uri: str, decoder: Decoder, max_pages: Optional[int] = None
    ) -> Iterator[Page[T]]:
        """
        Lazily yield pages starting at ``uri``.

        Stops after an empty page or when there is no ``next`` link. Iteration
        can be resumed later from any page's ``links.next.href``.
        """
        fetched = 0
        page: Optional[Page[T]] = self.fetch_page(uri, decoder)
        while page is not None:
            yield page
            fetched += 1
            if not page.records or (max_pages is not None and fetched >= max_pages):
                return
            page = self.next_page(page)

    def iter_records(
        self, uri: str, decoder: Decoder, max_pages: Optional[int] = None
    ) -> Iterator[T]:
        for page in self.iter_pages(uri, decoder, max_pages):
            yield from page.records

    @staticmethod
    def _decoder_of(page: Page[T]) -> Decoder:
        if page.decoder is None:
            raise HorizonError(
                "Page has no record decoder; it was not produced by a fetcher",
                kind=ErrorKind.BUILDER_MISUSE,
            )
        return page.decoder
