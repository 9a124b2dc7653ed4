"""SSH byte source: streams a remote command's stdout through a LineReassembler."""

import logging
import time
from pathlib import Path
from typing import Optional

import paramiko
from paramiko.ssh_exception import (
    AuthenticationException,
    NoValidConnectionsError,
    SSHException,
)

from .config import StreamSettings
from .exceptions import (
    TransportError,
    KeyFileNotFoundError,
    AuthenticationFailedError,
    HostUnreachableError,
    OverallTimeoutError,
    StreamReadError,
)
from .reassembler import ConsumerLike, LineReassembler, StreamResult

logger = logging.getLogger(__name__)


class SSHStreamSource:
    """Runs commands on a remote host over SSH and streams their output line by line.

    Each call to `stream_command` drives a fresh LineReassembler with the
    command's stdout; stderr is collected and returned in the result.
    """

    def __init__(
        self,
        host: str,
        user: str,
        key_path: str,
        port: int = 22,
        timeout: int = 30,
        settings: Optional[StreamSettings] = None,
    ) -> None:
        """Initialize SSH connection parameters.

        Args:
            host: Remote host IP or hostname
            user: Username for SSH connection
            key_path: Path to private key file
            port: SSH port (default: 22)
            timeout: Connection timeout in seconds (default: 30)
            settings: Chunk size and encoding used when reading output

        Raises:
            KeyFileNotFoundError: If key file doesn't exist
        """
        self.host = host
        self.user = user
        self.key_path = Path(key_path)
        self.port = port
        self.timeout = timeout
        self.settings = settings or StreamSettings()
        self._client: Optional[paramiko.SSHClient] = None

        if not self.key_path.exists():
            raise KeyFileNotFoundError(f"Private key file not found: {key_path}")

    def _load_key(self) -> paramiko.RSAKey:
        try:
            return paramiko.RSAKey.from_private_key_file(str(self.key_path))
        except paramiko.PasswordRequiredException:
            logger.error(f"Key {self.key_path} is passphrase-protected, which is not supported")
            raise TransportError("Private key requires passphrase")
        except (SSHException, OSError, ValueError) as e:
            logger.error(f"Could not read key {self.key_path}: {e}")
            raise TransportError(f"Invalid private key: {e}") from e

    def connect(self) -> bool:
        """Open the SSH session the command streams will run over.

        Raises:
            TransportError: If the key cannot be used or the session cannot be opened;
                AuthenticationFailedError and HostUnreachableError for the common cases
        """
        self.disconnect()
        pkey = self._load_key()
        logger.info(f"Opening SSH session to {self.user}@{self.host}:{self.port}")

        client = paramiko.SSHClient()
        try:
            client.connect(
                hostname=self.host,
                port=self.port,
                username=self.user,
                pkey=pkey,
                timeout=self.timeout,
                look_for_keys=False,  # Only use provided key
                allow_agent=False
            )
        except Exception as e:
            client.close()
            error = self._connect_error(e)
            logger.error(f"SSH session to {self.host}:{self.port} failed: {error}")
            raise error from e

        self._client = client
        logger.info("SSH session ready")
        return True

    def _connect_error(self, e: Exception) -> TransportError:
        # Most specific first: AuthenticationException is an SSHException
        if isinstance(e, AuthenticationException):
            return AuthenticationFailedError(f"Authentication failed: {e}")
        if isinstance(e, NoValidConnectionsError):
            return HostUnreachableError(f"Cannot connect to {self.host}:{self.port}")
        if isinstance(e, SSHException):
            return TransportError(f"SSH error: {e}")
        return TransportError(f"Connection error: {e}")

    def disconnect(self) -> None:
        """Close SSH connection and cleanup resources."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def is_connected(self) -> bool:
        if self._client is None:
            return False
        transport = self._client.get_transport()
        return transport is not None and transport.is_active()

    def stream_command(
        self,
        command: str,
        consumer: ConsumerLike,
        timeout: float = 60.0,
        inactivity_timeout: float = 10.0,
        poll_interval: float = 0.01,
    ) -> StreamResult:
        """
        Run a command and deliver each line of its stdout to `consumer`.

        Args:
            command: Command to execute remotely
            consumer: LineConsumer, or a plain `fn(line, is_last)` callable
            timeout: Maximum time to wait for the first output
            inactivity_timeout: Silence after which the connection is re-checked
            poll_interval: Sleep between polls while the channel is idle
        Returns:
            StreamResult(lines, exit_code, stderr)
        """
        if not self.is_connected():
            raise TransportError("Not connected to remote host")

        chunk_size = self.settings.chunk_size
        reassembler = LineReassembler(consumer, encoding=self.settings.encoding)
        stderr_parts: list[bytes] = []

        chan = self._client.get_transport().open_session()
        try:
            chan.exec_command(command)
            chan.settimeout(0.0)  # non-blocking

            start_time = time.monotonic()
            last_activity_time = start_time

            while True:
                idle = True
                if chan.recv_ready():
                    data = chan.recv(chunk_size)
                    if data:
                        reassembler.on_bytes(data)
                        last_activity_time = time.monotonic()
                        idle = False

                if chan.recv_stderr_ready():
                    data = chan.recv_stderr(chunk_size)
                    if data:
                        stderr_parts.append(data)
                        last_activity_time = time.monotonic()
                        idle = False

                current_time = time.monotonic()

                # No output at all within the overall timeout
                if (current_time - start_time) > timeout and last_activity_time == start_time:
                    raise OverallTimeoutError(f"Exceeded overall timeout of {timeout} seconds")

                if (current_time - last_activity_time) > inactivity_timeout and not self.is_connected():
                    raise StreamReadError("Lost connection during command execution")

                if chan.exit_status_ready() and not chan.recv_ready() and not chan.recv_stderr_ready():
                    break

                if idle:
                    time.sleep(poll_interval)

            reassembler.on_bytes(b"", is_terminal=True)
            exit_code = chan.recv_exit_status()
            stderr = b"".join(stderr_parts).decode(self.settings.encoding, errors="replace")
            logger.info(f"Command finished with exit code {exit_code}: {reassembler.lines_delivered} lines")
            return StreamResult(lines=reassembler.lines_delivered, exit_code=exit_code, stderr=stderr)

        except StreamReadError:
            raise
        except Exception as e:
            logger.error(f"Streaming exec failed: {e}")
            raise StreamReadError(f"Streaming command execution failed: {e}") from e
        finally:
            chan.close()

    def __enter__(self) -> "SSHStreamSource":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        status = "connected" if self.is_connected() else "disconnected"
        return f"SSHStreamSource({self.user}@{self.host}:{self.port}, {status})"
