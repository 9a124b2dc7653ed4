"""Incremental newline-delimited JSON stream parsing."""

from .reassembler import (
    LineReassembler,
    LineConsumer,
    CallbackConsumer,
    CollectingConsumer,
    StreamResult,
)
from .consumers import JsonLineConsumer, default_printer
from .config import StreamSettings
from .fetch import fetch_data, fetch_get, fetch_post, afetch_data, afetch_get, afetch_post
from .ssh import SSHStreamSource
from .exceptions import (
    NDJSONStreamError,
    TransportError,
    RequestFailedError,
    StreamReadError,
    OverallTimeoutError,
    HostUnreachableError,
    AuthenticationFailedError,
    KeyFileNotFoundError,
    StreamClosedError
)

__all__ = [
    "LineReassembler",
    "LineConsumer",
    "CallbackConsumer",
    "CollectingConsumer",
    "StreamResult",
    "JsonLineConsumer",
    "default_printer",
    "StreamSettings",
    "fetch_data",
    "fetch_get",
    "fetch_post",
    "afetch_data",
    "afetch_get",
    "afetch_post",
    "SSHStreamSource",
    "NDJSONStreamError",
    "TransportError",
    "RequestFailedError",
    "StreamReadError",
    "OverallTimeoutError",
    "HostUnreachableError",
    "AuthenticationFailedError",
    "KeyFileNotFoundError",
    "StreamClosedError"
]
__version__ = "0.1.0"
