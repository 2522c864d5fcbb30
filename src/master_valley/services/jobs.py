"""Execution and merging of single transform jobs."""

import logging

from master_valley.domain.errors import StaleGenerationError, TransformError
from master_valley.domain.jobs import Job
from master_valley.domain.photos import Photo
from master_valley.services.results import ResultAggregate, SessionEpoch
from master_valley.services.transform import TransformService

logger = logging.getLogger(__name__)


async def execute_job(service: TransformService, photo: Photo, job: Job) -> Job:
    """Run the transform for a job and return its terminal copy."""
    try:
        outcome = await service.transform(photo, job.style)
    except TransformError as exc:
        logger.warning("Job %s failed: %s", job.key, exc.reason)
        return job.failed(exc.reason)
    return job.succeeded(image=outcome.image, artist=outcome.artist, work=outcome.work)


def install_if_current(
    aggregate: ResultAggregate, job: Job, epoch: SessionEpoch
) -> bool:
    """Install a job unless its generation is stale; stale jobs are dropped."""
    try:
        aggregate.install(job, epoch.value)
    except StaleGenerationError as exc:
        logger.debug("Discarding result: %s", exc)
        return False
    return True
