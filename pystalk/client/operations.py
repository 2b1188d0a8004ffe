"""Job operations callable on a job handle or on a connection plus id.

Each function takes a ``target``: either a Job/JobRef, or a Connection
together with a job id. The job form always runs the connection form on
the job's owning connection and id.

    delete(job)
    delete(conn, 42)
"""

from typing import Optional, Union

from .connection import Connection
from .job import JobOperations, JobRef
from .protocol import DEFAULT_DELAY, DEFAULT_PRIORITY
from .stats import StatMapping


Target = Union[Connection, JobOperations]


def resolve(target: Target, jid: Optional[int] = None) -> JobOperations:
    """Normalize a call shape to a job handle."""
    if isinstance(target, JobOperations):
        if jid is not None:
            raise TypeError("A job id cannot be combined with a job handle")
        return target
    if isinstance(target, Connection):
        if jid is None:
            raise TypeError("A job id is required with a connection")
        return JobRef(target, jid)
    raise TypeError(f"Expected a Connection or a job, got {type(target).__name__}")


def stats(target: Target, jid: Optional[int] = None) -> StatMapping:
    """Job statistics, or server statistics for a bare connection."""
    if isinstance(target, Connection) and jid is None:
        return target.stats()
    return resolve(target, jid).stats()


def kick(target: Target, bound: int = 1) -> Optional[int]:
    """Kick one job, or up to ``bound`` jobs when given a connection.

    Returns:
        The number of jobs kicked for the connection form, else None.
    """
    if isinstance(target, Connection):
        return target.kick(bound)
    resolve(target).kick()
    return None


def kick_job(target: Target, jid: Optional[int] = None) -> None:
    resolve(target, jid).kick()


def bury(
    target: Target, jid: Optional[int] = None, priority: Optional[int] = None
) -> None:
    resolve(target, jid).bury(priority)


def release(
    target: Target,
    jid: Optional[int] = None,
    priority: int = DEFAULT_PRIORITY,
    delay: int = DEFAULT_DELAY,
) -> None:
    resolve(target, jid).release(priority, delay)


def touch(target: Target, jid: Optional[int] = None) -> None:
    resolve(target, jid).touch()


def delete(target: Target, jid: Optional[int] = None) -> None:
    resolve(target, jid).delete()
