"""Wire protocol formatter and status-line parser for beanstalkd."""

from dataclasses import dataclass, field
from typing import List, Union


CRLF = b"\r\n"

DEFAULT_PRIORITY = 2 ** 31
DEFAULT_DELAY = 0
DEFAULT_TTR = 120


class Status:
    """Status tokens the broker answers with."""

    OK = "OK"
    INSERTED = "INSERTED"
    RESERVED = "RESERVED"
    FOUND = "FOUND"
    USING = "USING"
    WATCHING = "WATCHING"
    PAUSED = "PAUSED"
    DELETED = "DELETED"
    RELEASED = "RELEASED"
    BURIED = "BURIED"
    KICKED = "KICKED"
    TOUCHED = "TOUCHED"

    NOT_FOUND = "NOT_FOUND"
    NOT_IGNORED = "NOT_IGNORED"
    JOB_TOO_BIG = "JOB_TOO_BIG"
    DRAINING = "DRAINING"
    DEADLINE_SOON = "DEADLINE_SOON"
    TIMED_OUT = "TIMED_OUT"


class BeanstalkError(Exception):
    """Base class for every error raised by the client."""

    pass


class BeanstalkConnectionError(BeanstalkError, ConnectionError):
    """Raised when the transport cannot be opened or fails mid-exchange."""

    pass


class _StatusError(BeanstalkError):
    def __init__(self, status: str, results: List[str]) -> None:
        self.status = status
        self.results = list(results)
        detail = " ".join([status] + self.results)
        super().__init__(detail)


class CommandFailure(_StatusError):
    """Raised when the broker answers with an expected failure status.

    Attributes:
        status: The status token, e.g. ``NOT_FOUND``.
        results: Remaining tokens of the status line.
    """


class UnexpectedResponse(_StatusError):
    """Raised when the broker answers with a status the command does not allow.

    This always means the client and broker disagree about the stream.
    """


@dataclass
class StatusResponse:
    """A status line split into its token and result tokens."""

    status: str
    results: List[str] = field(default_factory=list)


def format_command(verb: str, *args: Union[str, int]) -> str:
    """Join a verb and its arguments into one command line.

    Format:
        <verb> <arg1> <arg2> ... <argN>

    No terminator is added; the connection appends CRLF on write.
    """
    if not args:
        return verb
    return " ".join([verb] + [str(arg) for arg in args])


def format_put(body: bytes, priority: int, delay: int, ttr: int) -> bytes:
    """Format a put command: header line, CRLF, then the raw body.

    The body is not terminated here, the write that sends it adds the
    final CRLF.
    """
    header = format_command("put", priority, delay, ttr, len(body))
    return header.encode("ascii") + CRLF + body


def parse_response(line: str) -> StatusResponse:
    """Split a status line on single spaces into status and results."""
    status, *results = line.split(" ")
    return StatusResponse(status=status, results=results)
