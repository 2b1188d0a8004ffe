"""Synchronous beanstalkd connection."""

import logging
import socket
import weakref
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, List, Optional, Sequence, Union

from .config import ClientConfig, parse_address
from .job import Job, JobRef
from .protocol import (
    CRLF,
    DEFAULT_DELAY,
    DEFAULT_PRIORITY,
    DEFAULT_TTR,
    BeanstalkConnectionError,
    CommandFailure,
    Status,
    UnexpectedResponse,
    format_command,
    format_put,
    parse_response,
)
from .stats import StatMapping, parse_yaml


logger = logging.getLogger(__name__)


class Connection:
    """One open connection to a beanstalkd broker.

    The protocol allows a single command in flight: every method writes one
    command and blocks until the full reply is read. A Connection is not
    thread-safe; callers sharing one across threads must lock around it.

    Usage:
        with connect("localhost:11300") as conn:
            conn.put("hello")
            job = conn.reserve()
            job.delete()
    """

    def __init__(self, sock: socket.socket, config: Optional[ClientConfig] = None) -> None:
        self._config = config or ClientConfig()
        self._socket: Optional[socket.socket] = sock
        self._reader = sock.makefile("rb")

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._socket is None

    def close(self) -> None:
        """Close the connection to the broker.

        A read blocked in another thread is woken up and fails with
        BeanstalkConnectionError.
        """
        if self._socket:
            sock, self._socket = self._socket, None
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._reader.close()
            sock.close()
            logger.info(f"Closed connection to {self._config.host}:{self._config.port}")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Framing

    def write(self, data: Union[str, bytes]) -> None:
        """Send data followed by exactly one CRLF."""
        if not self._socket:
            raise BeanstalkConnectionError("Not connected")
        if isinstance(data, str):
            data = data.encode(self._config.encoding)
        try:
            self._socket.sendall(data + CRLF)
        except OSError as e:
            raise BeanstalkConnectionError(f"Write failed: {e}") from e

    def read_line(self) -> bytes:
        """Read one CRLF-terminated line and return it without the terminator.

        If the stream ends after part of a line, the partial line is
        returned as is.
        """
        if not self._socket:
            raise BeanstalkConnectionError("Not connected")

        data = bytearray()
        while True:
            try:
                chunk = self._reader.read(1)
            except (OSError, ValueError) as e:
                raise BeanstalkConnectionError(f"Read failed: {e}") from e
            if not chunk:
                if not data:
                    raise BeanstalkConnectionError("Connection closed by broker")
                break
            data += chunk
            if data.endswith(CRLF):
                del data[-2:]
                break

        return bytes(data)

    def read_body(self, length: int) -> bytes:
        """Read a body of ``length`` bytes and its trailing CRLF."""
        try:
            data = self._reader.read(length + len(CRLF))
        except (OSError, ValueError) as e:
            raise BeanstalkConnectionError(f"Read failed: {e}") from e
        if len(data) < length + len(CRLF):
            raise BeanstalkConnectionError(
                f"Connection closed while reading a {length} byte body"
            )
        if not data.endswith(CRLF):
            raise UnexpectedResponse("BAD_BODY_TERMINATOR", [repr(data[-2:])])
        return data[:length]

    # Response interpretation

    def interact(
        self,
        command: Union[str, bytes],
        expected_ok: Sequence[str],
        expected_err: Sequence[str] = (),
    ) -> List[str]:
        """Send a command and classify the status line.

        Returns:
            The result tokens following an ``expected_ok`` status.

        Raises:
            CommandFailure: If the status is one of ``expected_err``.
            UnexpectedResponse: For any other status.
        """
        if isinstance(command, bytes):
            logger.debug(f"Sending: {command.split(CRLF, 1)[0]!r}")
        else:
            logger.debug(f"Sending: {command!r}")
        self.write(command)

        line = self.read_line().decode(self._config.encoding, errors="replace")
        logger.debug(f"Received: {line!r}")
        response = parse_response(line)

        if response.status in expected_ok:
            return response.results
        elif response.status in expected_err:
            raise CommandFailure(response.status, response.results)
        else:
            raise UnexpectedResponse(response.status, response.results)

    def interact_value(
        self,
        command: Union[str, bytes],
        expected_ok: Sequence[str],
        expected_err: Sequence[str] = (),
    ) -> str:
        """Like interact, returning only the first result token."""
        results = self.interact(command, expected_ok, expected_err)
        if not results:
            raise UnexpectedResponse(expected_ok[0], results)
        return results[0]

    def interact_job(
        self,
        command: str,
        expected_ok: Sequence[str],
        expected_err: Sequence[str] = (),
        reserved: bool = True,
    ) -> Job:
        """Send a command whose reply is ``<status> <id> <bytes>`` plus a body."""
        results = self.interact(command, expected_ok, expected_err)
        if len(results) != 2:
            raise UnexpectedResponse(expected_ok[0], results)
        jid, length = _parse_int(results[0]), _parse_length(results[1])
        body = self.read_body(length)
        return Job(weakref.ref(self), jid, length, body, reserved)

    def interact_peek(self, command: str) -> Optional[Job]:
        """Run a peek command; returns None when nothing matches."""
        try:
            return self.interact_job(
                command, [Status.FOUND], [Status.NOT_FOUND], reserved=False
            )
        except CommandFailure as e:
            if e.status == Status.NOT_FOUND:
                return None
            raise

    def interact_yaml(
        self,
        command: str,
        expected_ok: Sequence[str],
        expected_err: Sequence[str] = (),
    ) -> Union[StatMapping, List[str]]:
        """Send a command whose reply is ``<status> <bytes>`` plus a YAML block."""
        results = self.interact(command, expected_ok, expected_err)
        if len(results) != 1:
            raise UnexpectedResponse(expected_ok[0], results)
        length = _parse_length(results[0])
        body = self.read_body(length)
        try:
            return parse_yaml(body.decode(self._config.encoding))
        except (UnicodeDecodeError, ValueError) as e:
            raise UnexpectedResponse("BAD_YAML", [str(e)]) from e

    # Producer commands

    def put(
        self,
        body: Union[str, bytes],
        priority: int = DEFAULT_PRIORITY,
        delay: int = DEFAULT_DELAY,
        ttr: int = DEFAULT_TTR,
    ) -> int:
        """Put a job into the used tube.

        Returns:
            The id of the new job.

        Raises:
            TypeError: If body is neither str nor bytes.
            CommandFailure: On JOB_TOO_BIG, BURIED or DRAINING.
        """
        if isinstance(body, str):
            body = body.encode(self._config.encoding)
        elif not isinstance(body, (bytes, bytearray, memoryview)):
            raise TypeError("Job body must be str or bytes")

        command = format_put(bytes(body), priority, delay, ttr)
        jid = self.interact_value(
            command,
            [Status.INSERTED],
            [Status.JOB_TOO_BIG, Status.BURIED, Status.DRAINING],
        )
        return _parse_int(jid)

    def use(self, tube: str) -> str:
        """Use a tube for subsequent puts. Returns the tube name."""
        return self.interact_value(format_command("use", tube), [Status.USING])

    # Worker commands

    def reserve(self, timeout: Optional[int] = None) -> Optional[Job]:
        """Reserve a job from the watched tubes.

        Without a timeout this blocks until a job is available. With one,
        it returns None when the broker answers TIMED_OUT.
        """
        if timeout is None:
            command = format_command("reserve")
        else:
            command = format_command("reserve-with-timeout", timeout)
        try:
            return self.interact_job(
                command,
                [Status.RESERVED],
                [Status.DEADLINE_SOON, Status.TIMED_OUT],
                reserved=True,
            )
        except CommandFailure as e:
            if e.status == Status.TIMED_OUT:
                return None
            raise

    def delete(self, jid: int) -> None:
        self.interact(format_command("delete", jid), [Status.DELETED], [Status.NOT_FOUND])

    def release(
        self, jid: int, priority: int = DEFAULT_PRIORITY, delay: int = DEFAULT_DELAY
    ) -> None:
        """Put a reserved job back into the ready queue (or delayed, with a delay)."""
        self.interact(
            format_command("release", jid, priority, delay),
            [Status.RELEASED, Status.BURIED],
            [Status.NOT_FOUND],
        )

    def bury(self, jid: int, priority: int = DEFAULT_PRIORITY) -> None:
        self.interact(
            format_command("bury", jid, priority), [Status.BURIED], [Status.NOT_FOUND]
        )

    def touch(self, jid: int) -> None:
        """Ask for more time to work on a reserved job."""
        self.interact(format_command("touch", jid), [Status.TOUCHED], [Status.NOT_FOUND])

    def watch(self, tube: str) -> int:
        """Add a tube to the watch list. Returns the number of watched tubes."""
        count = self.interact_value(format_command("watch", tube), [Status.WATCHING])
        return _parse_int(count)

    def ignore(self, tube: str) -> int:
        """Remove a tube from the watch list. Returns the number still watched.

        Raises:
            CommandFailure: NOT_IGNORED when it is the last watched tube.
        """
        count = self.interact_value(
            format_command("ignore", tube), [Status.WATCHING], [Status.NOT_IGNORED]
        )
        return _parse_int(count)

    # Other commands

    def peek(self, jid: int) -> Optional[Job]:
        return self.interact_peek(format_command("peek", jid))

    def peek_ready(self) -> Optional[Job]:
        return self.interact_peek(format_command("peek-ready"))

    def peek_delayed(self) -> Optional[Job]:
        return self.interact_peek(format_command("peek-delayed"))

    def peek_buried(self) -> Optional[Job]:
        return self.interact_peek(format_command("peek-buried"))

    def kick(self, bound: int = 1) -> int:
        """Kick up to ``bound`` buried (or else delayed) jobs. Returns the count."""
        count = self.interact_value(format_command("kick", bound), [Status.KICKED])
        return _parse_int(count)

    def kick_job(self, jid: int) -> None:
        self.interact(format_command("kick-job", jid), [Status.KICKED], [Status.NOT_FOUND])

    def stats(self) -> StatMapping:
        """Server-level statistics."""
        return self.interact_yaml(format_command("stats"), [Status.OK])

    def stats_job(self, jid: int) -> StatMapping:
        return self.interact_yaml(
            format_command("stats-job", jid), [Status.OK], [Status.NOT_FOUND]
        )

    def stats_tube(self, tube: str) -> StatMapping:
        return self.interact_yaml(
            format_command("stats-tube", tube), [Status.OK], [Status.NOT_FOUND]
        )

    def list_tubes(self) -> List[str]:
        return _as_list(self.interact_yaml(format_command("list-tubes"), [Status.OK]))

    def list_tube_used(self) -> str:
        return self.interact_value(format_command("list-tube-used"), [Status.USING])

    def list_tubes_watched(self) -> List[str]:
        return _as_list(
            self.interact_yaml(format_command("list-tubes-watched"), [Status.OK])
        )

    using = list_tube_used
    watching = list_tubes_watched

    def pause_tube(self, tube: str, delay: int) -> None:
        """Stop handing out jobs from a tube for ``delay`` seconds."""
        self.interact(
            format_command("pause-tube", tube, delay), [Status.PAUSED], [Status.NOT_FOUND]
        )

    def job(self, jid: int) -> JobRef:
        """Refer to a job on this connection by id."""
        return JobRef(self, jid)


def _parse_int(token: str) -> int:
    try:
        return int(token)
    except (TypeError, ValueError):
        raise UnexpectedResponse("BAD_INTEGER", [str(token)]) from None


def _parse_length(token: str) -> int:
    length = _parse_int(token)
    if length < 0:
        raise UnexpectedResponse("BAD_LENGTH", [token])
    return length


def _as_list(value) -> List[str]:
    if isinstance(value, list):
        return value
    if not value:
        return []
    raise UnexpectedResponse("BAD_LIST", list(value))


def connect(
    address: Optional[str] = None,
    port: Optional[int] = None,
    *,
    config: Optional[ClientConfig] = None,
) -> Connection:
    """Open a connection to a broker.

    Args:
        address: Host name, or ``"host:port"``.
        port: Port number, overriding one given in ``address``.
        config: Base configuration; defaults to ClientConfig().

    Raises:
        BeanstalkConnectionError: If the broker cannot be reached.
    """
    config = config or ClientConfig()
    if address is not None:
        host, address_port = parse_address(address)
        config = replace(config, host=host)
        if address_port is not None:
            config = replace(config, port=address_port)
    if port is not None:
        config = replace(config, port=port)

    try:
        sock = socket.create_connection(
            (config.host, config.port), timeout=config.connect_timeout
        )
    except OSError as e:
        raise BeanstalkConnectionError(
            f"Cannot connect to {config.host}:{config.port}: {e}"
        ) from e
    sock.settimeout(None)
    logger.info(f"Connected to beanstalkd at {config.host}:{config.port}")
    return Connection(sock, config)


@contextmanager
def session(
    address: Optional[str] = None,
    port: Optional[int] = None,
    *,
    config: Optional[ClientConfig] = None,
) -> Iterator[Connection]:
    """Open a connection for the duration of a block and always close it."""
    conn = connect(address, port, config=config)
    try:
        yield conn
    finally:
        conn.close()
