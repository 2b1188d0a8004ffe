"""pystalk: a blocking client for the beanstalkd work queue."""

from .client import (
    DEFAULT_DELAY,
    DEFAULT_PRIORITY,
    DEFAULT_TTR,
    BeanstalkConnectionError,
    BeanstalkError,
    ClientConfig,
    CommandFailure,
    Connection,
    Job,
    JobRef,
    UnexpectedResponse,
    connect,
    session,
)
from .client import operations

__all__ = [
    "DEFAULT_DELAY",
    "DEFAULT_PRIORITY",
    "DEFAULT_TTR",
    "BeanstalkConnectionError",
    "BeanstalkError",
    "ClientConfig",
    "CommandFailure",
    "Connection",
    "Job",
    "JobRef",
    "UnexpectedResponse",
    "connect",
    "session",
    "operations",
]
