"""Retry of individual jobs inside a result aggregate."""

import asyncio
import logging
from dataclasses import dataclass, field

from master_valley.domain.errors import DuplicateRetryError, UnknownKeyError
from master_valley.domain.jobs import Job
from master_valley.domain.photos import Photo
from master_valley.services.jobs import execute_job, install_if_current
from master_valley.services.results import ResultAggregate, SessionEpoch
from master_valley.services.transform import TransformService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryTicket:
    """A retry that passed the in-flight check."""

    key: str
    job: Job
    previous: Job
    generation: int


@dataclass
class RetryCoordinator:
    """Re-run one job by key, rejecting overlapping retries of the same key."""

    transform_service: TransformService
    epoch: SessionEpoch
    _in_flight: dict[str, int] = field(default_factory=dict)

    @property
    def in_flight(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    def begin(self, aggregate: ResultAggregate | None, key: str) -> RetryTicket:
        """Claim a key for retry and mark its job as running."""
        if aggregate is None or key not in aggregate:
            raise UnknownKeyError(key)
        if key in self._in_flight:
            raise DuplicateRetryError(key)
        generation = self.epoch.value
        previous = aggregate.get(key)
        running = previous.running()
        aggregate.install(running, generation)
        self._in_flight[key] = generation
        logger.info("Retrying %s (generation %d)", key, generation)
        return RetryTicket(
            key=key, job=running, previous=previous, generation=generation
        )

    async def run(
        self, aggregate: ResultAggregate, photo: Photo, ticket: RetryTicket
    ) -> Job | None:
        """Execute a claimed retry; returns the installed job, or None if stale."""
        try:
            finished = await execute_job(self.transform_service, photo, ticket.job)
            if not install_if_current(aggregate, finished, self.epoch):
                return None
            return finished
        except asyncio.CancelledError:
            install_if_current(aggregate, ticket.previous, self.epoch)
            logger.info("Retry of %s cancelled; previous result restored", ticket.key)
            raise
        finally:
            if self._in_flight.get(ticket.key) == ticket.generation:
                del self._in_flight[ticket.key]

    async def retry_job(
        self, aggregate: ResultAggregate | None, photo: Photo, key: str
    ) -> Job | None:
        ticket = self.begin(aggregate, key)
        return await self.run(aggregate, photo, ticket)

    def clear(self) -> None:
        self._in_flight.clear()
