"""Line reassembly for newline-delimited streams delivered in arbitrary chunks."""

import codecs
import inspect
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Tuple, Union, runtime_checkable

from .exceptions import StreamClosedError

logger = logging.getLogger(__name__)

Delivery = Tuple[str, bool]


@runtime_checkable
class LineConsumer(Protocol):
    """Receives completed lines in stream order.

    Exactly one call carries ``is_last=True`` for a stream that produced at
    least one line; a stream of blank lines produces no calls at all.
    """

    def accept(self, line: str, is_last: bool) -> None:
        ...


class CallbackConsumer:
    """Adapts a plain ``fn(line, is_last)`` callable to the LineConsumer interface."""

    def __init__(self, cb: Callable[[str, bool], None]):
        self.cb = cb

    def accept(self, line: str, is_last: bool):
        return self.cb(line, is_last)


class CollectingConsumer:
    """Buffers every delivery for later retrieval."""

    def __init__(self) -> None:
        self.deliveries: List[Delivery] = []

    def accept(self, line: str, is_last: bool) -> None:
        self.deliveries.append((line, is_last))

    def lines(self) -> List[str]:
        return [line for line, _ in self.deliveries]

    @property
    def completed(self) -> bool:
        return bool(self.deliveries) and self.deliveries[-1][1]


ConsumerLike = Union[LineConsumer, Callable[[str, bool], None]]


def as_consumer(consumer: ConsumerLike) -> LineConsumer:
    """Wrap bare callables; pass LineConsumer implementations through."""
    if isinstance(consumer, LineConsumer):
        return consumer
    if callable(consumer):
        return CallbackConsumer(consumer)
    raise TypeError(f"Expected a LineConsumer or callable, got {type(consumer).__name__}")


def is_async_consumer(consumer: LineConsumer) -> bool:
    if isinstance(consumer, CallbackConsumer):
        return inspect.iscoroutinefunction(consumer.cb)
    return inspect.iscoroutinefunction(consumer.accept)


class LineReassembler:
    """
    Buffers partial lines across fragments and emits complete ones to a consumer.

    Lines extracted from a fragment are held back until the next fragment
    arrives, so the last line of the stream can be flagged with
    ``is_last=True`` once the terminal fragment is seen. A single instance
    handles exactly one stream.

    Async consumers are only accepted with ``allow_async=True``, for drivers
    that await each delivery themselves (see `afetch_data`).
    """

    def __init__(self, consumer: ConsumerLike, encoding: str = "utf-8", allow_async: bool = False):
        self.consumer = as_consumer(consumer)
        if not allow_async and is_async_consumer(self.consumer):
            raise TypeError("Async line consumers must be driven with afetch_data; this reassembler delivers synchronously")
        self.remainder = ""  # carryover partial line
        self.pending_batch: List[str] = []
        self.stream_ended = False
        self.lines_delivered = 0
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")

    def push(self, text: str, is_terminal: bool = False) -> List[Delivery]:
        """Advance the state machine by one fragment.

        Returns the ``(line, is_last)`` pairs that are now ready, without
        invoking the consumer.

        Raises:
            StreamClosedError: If the terminal fragment was already pushed
        """
        if self.stream_ended:
            raise StreamClosedError("Stream already ended; no further fragments are accepted")
        if not text and not is_terminal:
            return []

        segments = (self.remainder + (text or "")).split("\n")
        self.remainder = segments.pop()
        current_batch = [segment for segment in segments if segment.strip()]

        if not is_terminal:
            ready = [(line, False) for line in self.pending_batch]
            self.pending_batch = current_batch
            self.lines_delivered += len(ready)
            return ready

        final = self.pending_batch + current_batch
        if self.remainder.strip():
            final.append(self.remainder)
        self.pending_batch = []
        self.remainder = ""
        self.stream_ended = True
        self.lines_delivered += len(final)
        last_index = len(final) - 1
        return [(line, index == last_index) for index, line in enumerate(final)]

    def decode(self, data: bytes, is_terminal: bool = False) -> str:
        """Decode a raw chunk, keeping incomplete multi-byte sequences for the next one."""
        return self._decoder.decode(data or b"", final=is_terminal)

    def on_fragment(self, text: str, is_terminal: bool = False) -> None:
        for line, is_last in self.push(text, is_terminal):
            self._deliver(line, is_last)

    def on_bytes(self, data: bytes, is_terminal: bool = False) -> None:
        self.on_fragment(self.decode(data, is_terminal), is_terminal)

    def _deliver(self, line: str, is_last: bool) -> None:
        # A failing consumer must not stop the lines behind it
        try:
            outcome = self.consumer.accept(line, is_last)
        except Exception as e:
            logger.exception(f"Line consumer failed (is_last={is_last}): {e}; line: {line[:200]!r}")
            return
        if inspect.isawaitable(outcome):
            if inspect.iscoroutine(outcome):
                outcome.close()
            raise TypeError("Line consumer returned an awaitable; drive async consumers with afetch_data")


@dataclass
class StreamResult:
    lines: int
    status_code: Optional[int] = None
    exit_code: Optional[int] = None
    stderr: str = ""
