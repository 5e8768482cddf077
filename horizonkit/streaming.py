"""
Horizonkit - SSE streaming support.

Horizon endpoints can be consumed as Server-Sent Events: the connection stays
open and the server pushes new records as ledgers close. A ``StreamSession``
owns one connection and delivers decoded records to a handler, one at a time,
in arrival order, on a background thread.
"""

import json
import logging
import threading
from dataclasses import dataclass
from queue import Empty, Queue
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar, Union

import httpx

from .exceptions import ErrorKind, HorizonError
from .models import StreamState
from .pagination import Decoder, decode_record
from .transport import HorizonTransport, raise_for_status

logger = logging.getLogger("horizonkit.streaming")

T = TypeVar("T")

KEEPALIVE_PAYLOAD = '"hello"'


@dataclass
class SSEEvent:
    """An event received from the SSE stream."""

    type: str
    data: str
    id: Optional[str] = None
    retry: Optional[int] = None


def is_keepalive(data: str) -> bool:
    """True for the keep-alive payload Horizon sends on connect and when idle."""
    return data.strip() == KEEPALIVE_PAYLOAD


def iter_sse_events(lines: Iterable[str]) -> Iterator[SSEEvent]:
    """Parse SSE wire lines into events. Comment lines are skipped."""
    event_type = "message"
    event_data = ""
    event_id: Optional[str] = None
    retry: Optional[int] = None

    for line in lines:
        line = line.rstrip("\r\n")

        if line.startswith(":"):
            continue

        if not line:
            if event_data:
                yield SSEEvent(
                    type=event_type,
                    data=event_data.rstrip("\n"),
                    id=event_id,
                    retry=retry,
                )
            event_type = "message"
            event_data = ""
            event_id = None
            continue

        if ":" in line:
            name, _, value = line.partition(":")
            value = value[1:] if value.startswith(" ") else value
        else:
            name = line
            value = ""

        if name == "event":
            event_type = value
        elif name == "data":
            event_data += value + "\n"
        elif name == "id":
            event_id = value
        elif name == "retry" and value.isdigit():
            retry = int(value)


ErrorHandler = Callable[[Exception], None]


class StreamSession(Generic[T]):
    """
    One open stream bound to a resource URI and a record handler.

    States move ``OPEN -> RECEIVING -> CLOSED``. ``CLOSED`` is terminal and is
    reached by ``close()`` or by a connection failure, which is passed to
    ``error_handler``. There is no reconnection.

    Usage:
        ```python
        def on_ledger(ledger):
            print(ledger.sequence)

        session = client.ledgers().cursor("now").stream(on_ledger)
        # ... do other work ...
        session.close()
        ```
    """

    def __init__(
        self,
        transport: HorizonTransport,
        uri: str,
        decoder: Decoder,
        handler: Callable[[T], None],
        error_handler: Optional[ErrorHandler] = None,
        close_handler: Optional[Callable[[], None]] = None,
    ):
        self.transport = transport
        self.uri = uri
        self.decoder = decoder
        self.handler = handler
        self.error_handler = error_handler
        self.close_handler = close_handler
        self.last_event_id: Optional[str] = None
        self._state = StreamState.OPEN
        # Held while a record is being delivered; close() takes it so that no
        # delivery starts after close() returns.
        self._delivery_lock = threading.RLock()
        self._response: Optional[httpx.Response] = None
        self._thread: Optional[threading.Thread] = None
        self._close_notified = False

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state == StreamState.CLOSED

    def start(self) -> None:
        """Start receiving on a background thread."""
        if self._thread is not None or self.closed:
            return
        self._thread = threading.Thread(
            target=self._run, name=f"horizonkit-stream:{self.uri}", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        try:
            with self.transport.stream(self.uri) as response:
                if not response.is_success:
                    response.read()
                    raise_for_status(response)
                self._response = response
                with self._delivery_lock:
                    if self.closed:
                        return
                    self._state = StreamState.RECEIVING
                logger.debug("Stream receiving from %s", self.uri)

                for event in iter_sse_events(response.iter_lines()):
                    if self.closed:
                        break
                    self._on_event(event)
        except Exception as e:
            if self.closed:
                logger.debug("Stream %s ended after close: %r", self.uri, e)
            else:
                if not isinstance(e, HorizonError):
                    e = HorizonError(
                        f"Stream failed: {e}", kind=ErrorKind.CONNECTION_ERROR
                    )
                logger.warning("Stream %s failed: %s", self.uri, e)
                self._report(e)
        finally:
            self._response = None
            self._mark_closed()

    def _on_event(self, event: SSEEvent) -> None:
        if is_keepalive(event.data):
            return
        if event.id:
            self.last_event_id = event.id
        try:
            record = decode_record(json.loads(event.data), self.decoder)
        except ValueError:
            self._report(
                HorizonError(
                    f"Invalid JSON in stream event: {event.data[:200]}",
                    kind=ErrorKind.DECODE_ERROR,
                )
            )
            return
        except HorizonError as e:
            self._report(e)
            return
        self._deliver(record)

    def _deliver(self, record: T) -> None:
        with self._delivery_lock:
            if self.closed:
                return
            try:
                self.handler(record)
            except Exception as e:
                self._report(e)

    def _report(self, error: Exception) -> None:
        if self.error_handler:
            self.error_handler(error)
        else:
            logger.error("Unhandled stream error on %s: %s", self.uri, error)

    def _mark_closed(self) -> None:
        with self._delivery_lock:
            self._state = StreamState.CLOSED
            notify = not self._close_notified
            self._close_notified = True
        if notify and self.close_handler:
            self.close_handler()

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Stop delivery. Safe to call more than once and from the handler."""
        with self._delivery_lock:
            if self.closed:
                return
            self._state = StreamState.CLOSED
        response = self._response
        if response is not None:
            try:
                response.close()
            except (httpx.HTTPError, RuntimeError) as e:
                logger.debug("Error closing stream response: %r", e)
        if self._thread is None:
            self._mark_closed()
        elif self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the session is closed. Returns False on timeout."""
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            return not self._thread.is_alive()
        return self.closed

    def __enter__(self) -> "StreamSession[T]":
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


_CLOSED = object()


class RecordQueue(Generic[T]):
    """
    A stream consumed as a pull channel.

    Records arrive in order; errors are collected separately in ``errors``.
    Iteration ends once the stream is closed and drained.

    Usage:
        ```python
        with RecordQueue(transport, uri, LedgerRecord.from_dict) as queue:
            for ledger in queue:
                process(ledger)
        ```
    """

    def __init__(self, transport: HorizonTransport, uri: str, decoder: Decoder):
        self._queue: "Queue[Union[T, object]]" = Queue()
        self.errors: list[Exception] = []
        self._session: StreamSession[T] = StreamSession(
            transport,
            uri,
            decoder,
            handler=self._queue.put,
            error_handler=self.errors.append,
            close_handler=lambda: self._queue.put(_CLOSED),
        )
        self._drained = False

    @property
    def session(self) -> StreamSession[T]:
        return self._session

    def start(self) -> None:
        self._session.start()

    def get(self, timeout: Optional[float] = None) -> Optional[T]:
        """Next record, or None on timeout or once the stream has ended."""
        if self._drained:
            return None
        try:
            item = self._queue.get(timeout=timeout)
        except Empty:
            return None
        if item is _CLOSED:
            self._drained = True
            return None
        return item

    def __iter__(self) -> Iterator[T]:
        while not self._drained:
            item = self._queue.get()
            if item is _CLOSED:
                self._drained = True
                return
            yield item

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "RecordQueue[T]":
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
