"""Fan-out scheduler for full transform requests."""

import asyncio
import logging
from dataclasses import dataclass

from master_valley.domain.errors import InvalidStyleError
from master_valley.domain.jobs import Job
from master_valley.domain.photos import Photo
from master_valley.domain.styles import FullTransformStyle
from master_valley.services.jobs import execute_job, install_if_current
from master_valley.services.results import ResultAggregate, SessionEpoch
from master_valley.services.transform import TransformService

logger = logging.getLogger(__name__)


@dataclass
class BatchJobScheduler:
    """Create one job per member style and merge results by key."""

    transform_service: TransformService
    epoch: SessionEpoch
    max_concurrency: int | None = None

    def prepare(self, style: FullTransformStyle, generation: int) -> ResultAggregate:
        """Build a batch aggregate of pending jobs in member order."""
        if not style.member_styles:
            raise InvalidStyleError(f"Full transform '{style.id}' has no member styles")
        keys = [member.id for member in style.member_styles]
        if len(set(keys)) != len(keys):
            raise InvalidStyleError(
                f"Full transform '{style.id}' repeats a member style"
            )
        jobs = [Job.pending(member, generation) for member in style.member_styles]
        return ResultAggregate.batch(jobs)

    async def run(self, photo: Photo, aggregate: ResultAggregate) -> ResultAggregate:
        """Run every pending job concurrently; failures stay local to their job."""
        limit = self.max_concurrency or len(aggregate.keys()) or 1
        semaphore = asyncio.Semaphore(limit)
        logger.info(
            "Running %d batch jobs with concurrency %d", len(aggregate.keys()), limit
        )
        await asyncio.gather(
            *(
                self._run_job(photo, job, aggregate, semaphore)
                for job in aggregate.jobs()
            )
        )
        return aggregate

    async def _run_job(
        self,
        photo: Photo,
        job: Job,
        aggregate: ResultAggregate,
        semaphore: asyncio.Semaphore,
    ) -> None:
        async with semaphore:
            if not install_if_current(aggregate, job.running(), self.epoch):
                return
            finished = await execute_job(self.transform_service, photo, job)
        install_if_current(aggregate, finished, self.epoch)
