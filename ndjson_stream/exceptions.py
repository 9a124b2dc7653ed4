"""Custom exceptions for ndjson_stream package."""


class NDJSONStreamError(Exception):
    """Base exception for ndjson_stream errors."""
    pass


class TransportError(NDJSONStreamError):
    """Base exception for failures of the underlying byte source."""
    pass


class RequestFailedError(TransportError):
    """Raised when the request could not be issued or returned an error status."""
    pass


class StreamReadError(TransportError):
    """Raised when reading the body of a stream is aborted."""
    pass


class OverallTimeoutError(StreamReadError):
    """Raised when a remote command produces no output within the overall timeout."""
    pass


class HostUnreachableError(TransportError):
    """Raised when the remote host is unreachable or connection cannot be established."""
    pass


class AuthenticationFailedError(TransportError):
    """Raised when SSH authentication fails."""
    pass


class KeyFileNotFoundError(NDJSONStreamError):
    """Raised when SSH private key file doesn't exist."""
    pass


class StreamClosedError(NDJSONStreamError):
    """Raised when a fragment is fed to a reassembler whose stream has already ended."""
    pass
