"""Client layer for pystalk."""

from .config import ClientConfig
from .connection import Connection, connect, session
from .job import Job, JobOperations, JobRef
from .protocol import (
    DEFAULT_DELAY,
    DEFAULT_PRIORITY,
    DEFAULT_TTR,
    BeanstalkConnectionError,
    BeanstalkError,
    CommandFailure,
    UnexpectedResponse,
)
from .stats import parse_yaml

__all__ = [
    "ClientConfig",
    "Connection",
    "connect",
    "session",
    "Job",
    "JobOperations",
    "JobRef",
    "DEFAULT_DELAY",
    "DEFAULT_PRIORITY",
    "DEFAULT_TTR",
    "BeanstalkConnectionError",
    "BeanstalkError",
    "CommandFailure",
    "UnexpectedResponse",
    "parse_yaml",
]
