"""HTTP byte source: streams a response body through a LineReassembler."""

import inspect
import logging
from typing import Any, Mapping, Optional

import httpx

from .config import StreamSettings
from .exceptions import RequestFailedError, StreamReadError
from .reassembler import ConsumerLike, LineReassembler, StreamResult

logger = logging.getLogger(__name__)


def fetch_data(
    url: str,
    consumer: ConsumerLike,
    method: str = "GET",
    headers: Optional[Mapping[str, str]] = None,
    *,
    client: Optional[httpx.Client] = None,
    settings: Optional[StreamSettings] = None,
    **request_kwargs: Any,
) -> StreamResult:
    """Issue a request and hand every newline-delimited line of the body to `consumer`.

    Args:
        url: Target URL
        consumer: LineConsumer, or a plain `fn(line, is_last)` callable
        method: HTTP method (default: GET)
        headers: Optional request headers
        client: Optional httpx.Client to reuse; it is left open afterwards
        settings: Chunk size, timeout and encoding (default: StreamSettings())
        **request_kwargs: Passed through to `client.stream` (json=, content=, params=, ...)

    Returns:
        StreamResult with the number of delivered lines and the HTTP status code

    Raises:
        RequestFailedError: If the request fails or the server answers with an error status
        StreamReadError: If reading the body is aborted; buffered lines are dropped
    """
    settings = settings or StreamSettings()
    reassembler = LineReassembler(consumer, encoding=settings.encoding)
    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=settings.timeout)

    try:
        logger.info(f"Streaming {method} {url}")
        with client.stream(method, url, headers=headers, **request_kwargs) as response:
            response.raise_for_status()
            try:
                for chunk in response.iter_bytes(settings.chunk_size):
                    reassembler.on_bytes(chunk)
            except httpx.HTTPError as e:
                logger.error(f"Stream read error from {url}: {e}")
                raise StreamReadError(f"Stream read failed: {e}") from e
            reassembler.on_bytes(b"", is_terminal=True)

        logger.info(f"Stream from {url} complete: {reassembler.lines_delivered} lines")
        return StreamResult(lines=reassembler.lines_delivered, status_code=response.status_code)

    except httpx.HTTPError as e:
        logger.error(f"Request failed: {method} {url}: {e}")
        raise RequestFailedError(f"Request failed: {e}") from e
    finally:
        if owns_client:
            client.close()


def fetch_get(url: str, consumer: ConsumerLike, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> StreamResult:
    return fetch_data(url, consumer, "GET", headers, **kwargs)


def fetch_post(url: str, consumer: ConsumerLike, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> StreamResult:
    return fetch_data(url, consumer, "POST", headers, **kwargs)


async def _adeliver(reassembler: LineReassembler, text: str, is_terminal: bool) -> None:
    for line, is_last in reassembler.push(text, is_terminal):
        try:
            outcome = reassembler.consumer.accept(line, is_last)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.exception(f"Line consumer failed (is_last={is_last}): {e}; line: {line[:200]!r}")


async def afetch_data(
    url: str,
    consumer: ConsumerLike,
    method: str = "GET",
    headers: Optional[Mapping[str, str]] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[StreamSettings] = None,
    **request_kwargs: Any,
) -> StreamResult:
    """Async counterpart of `fetch_data`.

    The consumer's `accept` may be a coroutine function; each line is awaited
    before the next one is delivered.
    """
    settings = settings or StreamSettings()
    reassembler = LineReassembler(consumer, encoding=settings.encoding, allow_async=True)
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=settings.timeout)

    try:
        logger.info(f"Streaming {method} {url}")
        async with client.stream(method, url, headers=headers, **request_kwargs) as response:
            response.raise_for_status()
            try:
                async for chunk in response.aiter_bytes(settings.chunk_size):
                    await _adeliver(reassembler, reassembler.decode(chunk), False)
            except httpx.HTTPError as e:
                logger.error(f"Stream read error from {url}: {e}")
                raise StreamReadError(f"Stream read failed: {e}") from e
            await _adeliver(reassembler, reassembler.decode(b"", is_terminal=True), True)

        logger.info(f"Stream from {url} complete: {reassembler.lines_delivered} lines")
        return StreamResult(lines=reassembler.lines_delivered, status_code=response.status_code)

    except httpx.HTTPError as e:
        logger.error(f"Request failed: {method} {url}: {e}")
        raise RequestFailedError(f"Request failed: {e}") from e
    finally:
        if owns_client:
            await client.aclose()


async def afetch_get(url: str, consumer: ConsumerLike, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> StreamResult:
    return await afetch_data(url, consumer, "GET", headers, **kwargs)


async def afetch_post(url: str, consumer: ConsumerLike, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> StreamResult:
    return await afetch_data(url, consumer, "POST", headers, **kwargs)
