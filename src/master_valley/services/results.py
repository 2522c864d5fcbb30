"""Result aggregate and session epoch."""

from dataclasses import dataclass, field
from enum import StrEnum

from master_valley.domain.errors import StaleGenerationError, UnknownKeyError
from master_valley.domain.jobs import Job, JobStatus

ChatNote = dict[str, object]


@dataclass
class SessionEpoch:
    """Generation counter advanced exactly once per reset."""

    value: int = 0

    def advance(self) -> int:
        self.value += 1
        return self.value

    def is_current(self, generation: int) -> bool:
        return generation == self.value


class ResultMode(StrEnum):
    SINGLE = "single"
    BATCH = "batch"


@dataclass
class ResultAggregate:
    """Single source of truth for a lone result or a keyed batch of results."""

    mode: ResultMode
    single_job: Job | None = None
    batch_jobs: dict[str, Job] | None = None
    annotations: dict[str, list[ChatNote]] = field(default_factory=dict)

    @classmethod
    def single(cls, job: Job) -> "ResultAggregate":
        return cls(mode=ResultMode.SINGLE, single_job=job)

    @classmethod
    def batch(cls, jobs: list[Job]) -> "ResultAggregate":
        return cls(mode=ResultMode.BATCH, batch_jobs={job.key: job for job in jobs})

    def keys(self) -> list[str]:
        if self.mode is ResultMode.SINGLE:
            return [self.single_job.key] if self.single_job else []
        return list(self.batch_jobs or {})

    def jobs(self) -> list[Job]:
        if self.mode is ResultMode.SINGLE:
            return [self.single_job] if self.single_job else []
        return list((self.batch_jobs or {}).values())

    def __contains__(self, key: object) -> bool:
        return key in self.keys()

    def get(self, key: str) -> Job:
        """Return the job for a key or raise UnknownKeyError."""
        if self.mode is ResultMode.SINGLE:
            if self.single_job is not None and self.single_job.key == key:
                return self.single_job
            raise UnknownKeyError(key)
        job = (self.batch_jobs or {}).get(key)
        if job is None:
            raise UnknownKeyError(key)
        return job

    def install(self, job: Job, current_generation: int) -> None:
        """Replace the job stored under ``job.key``.

        Only the entry for that key changes. Jobs from an older generation are
        rejected with StaleGenerationError.
        """
        if job.generation != current_generation:
            raise StaleGenerationError(job.key, job.generation, current_generation)
        self.get(job.key)
        if self.mode is ResultMode.SINGLE:
            self.single_job = job
        else:
            self.batch_jobs[job.key] = job

    @property
    def is_settled(self) -> bool:
        jobs = self.jobs()
        return bool(jobs) and all(job.is_settled for job in jobs)

    def count(self, status: JobStatus) -> int:
        return sum(1 for job in self.jobs() if job.status is status)

    def annotate(self, key: str, note: ChatNote) -> None:
        """Attach an opaque chat note to a key."""
        self.get(key)
        self.annotations.setdefault(key, []).append(dict(note))

    def notes(self, key: str) -> list[ChatNote]:
        return list(self.annotations.get(key, []))

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "mode": self.mode.value,
            "settled": self.is_settled,
            "annotations": {
                key: list(notes) for key, notes in self.annotations.items()
            },
        }
        if self.mode is ResultMode.SINGLE:
            payload["job"] = self.single_job.to_dict() if self.single_job else None
        else:
            payload["jobs"] = [job.to_dict() for job in self.jobs()]
        return payload
