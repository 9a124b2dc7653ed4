"""Runtime settings shared by the byte source drivers."""

import os
from dataclasses import dataclass

ENV_PREFIX = "NDJSON_STREAM_"


@dataclass(frozen=True)
class StreamSettings:
    chunk_size: int = 4096  # Size of data chunks to read from the source
    timeout: float = 30.0
    encoding: str = "utf-8"

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "StreamSettings":
        """Build settings from environment variables, falling back to defaults.

        Reads ``<prefix>CHUNK_SIZE``, ``<prefix>TIMEOUT`` and ``<prefix>ENCODING``.

        Raises:
            ValueError: If a numeric variable cannot be parsed or is not positive
        """
        defaults = cls()
        chunk_size = _read_number(f"{prefix}CHUNK_SIZE", int, defaults.chunk_size)
        timeout = _read_number(f"{prefix}TIMEOUT", float, defaults.timeout)
        encoding = os.getenv(f"{prefix}ENCODING") or defaults.encoding
        return cls(chunk_size=chunk_size, timeout=timeout, encoding=encoding)


def _read_number(name: str, kind, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = kind(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value
