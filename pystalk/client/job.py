"""Job handles and the operations they share."""

import logging
import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from .protocol import (
    DEFAULT_DELAY,
    DEFAULT_PRIORITY,
    BeanstalkConnectionError,
    CommandFailure,
    Status,
)

if TYPE_CHECKING:
    from .connection import Connection
    from .stats import StatMapping


logger = logging.getLogger(__name__)


class JobOperations:
    """Operations addressed to one job.

    Subclasses provide ``connection`` and ``id``; every verb here is the
    connection's id-shaped command applied to that pair.
    """

    connection: "Connection"
    id: int

    def stats(self) -> "StatMapping":
        return self.connection.stats_job(self.id)

    def kick(self) -> None:
        self.connection.kick_job(self.id)

    def bury(self, priority: Optional[int] = None) -> None:
        if priority is None:
            priority = DEFAULT_PRIORITY
        self.connection.bury(self.id, priority)

    def release(
        self, priority: int = DEFAULT_PRIORITY, delay: int = DEFAULT_DELAY
    ) -> None:
        self.connection.release(self.id, priority, delay)

    def touch(self) -> None:
        self.connection.touch(self.id)

    def delete(self) -> None:
        self.connection.delete(self.id)


@dataclass(frozen=True)
class JobRef(JobOperations):
    """A job named by its id on an explicit connection."""

    connection: "Connection" = field(repr=False, compare=False)
    id: int


@dataclass(frozen=True)
class Job(JobOperations):
    """A job fetched from the broker by reserve or peek.

    The owning connection is held weakly: a Job routes operations back to
    it but never keeps it open.

    Attributes:
        id: Broker-assigned job id.
        length: Declared body length in bytes.
        body: The raw job body.
        reserved: True only for jobs obtained through reserve.
    """

    owner_ref: "weakref.ReferenceType[Connection]" = field(repr=False, compare=False)
    id: int
    length: int
    body: bytes
    reserved: bool = False

    @property
    def owner(self) -> "Connection":
        conn = self.owner_ref()
        if conn is None:
            raise BeanstalkConnectionError(f"Connection owning job {self.id} is gone")
        return conn

    @property
    def connection(self) -> "Connection":
        return self.owner

    def bury(self, priority: Optional[int] = None) -> None:
        """Bury the job, keeping its current priority unless one is given."""
        if priority is None:
            priority = self._current_priority()
        self.connection.bury(self.id, priority)

    def _current_priority(self) -> int:
        try:
            stats = self.stats()
        except CommandFailure as e:
            if e.status != Status.NOT_FOUND:
                raise
            logger.debug(f"Job {self.id} not found, burying with default priority")
            return DEFAULT_PRIORITY
        return stats.get("pri", DEFAULT_PRIORITY)
