"""Domain models for transform jobs."""

from dataclasses import dataclass, replace
from enum import StrEnum

from master_valley.domain.styles import SingleStyle


class JobStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({JobStatus.SUCCEEDED, JobStatus.FAILED})


@dataclass(frozen=True)
class Job:
    """One photo rendered in one style, tagged with its session generation."""

    key: str
    style: SingleStyle
    generation: int
    status: JobStatus = JobStatus.PENDING
    image: str | None = None
    artist: str | None = None
    work: str | None = None
    error: str | None = None

    @classmethod
    def pending(cls, style: SingleStyle, generation: int) -> "Job":
        """Create a pending job keyed by the style id."""
        return cls(key=style.id, style=style, generation=generation)

    @property
    def is_settled(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def running(self) -> "Job":
        return replace(self, status=JobStatus.RUNNING)

    def succeeded(self, image: str, artist: str | None, work: str | None) -> "Job":
        return replace(
            self,
            status=JobStatus.SUCCEEDED,
            image=image,
            artist=artist,
            work=work,
            error=None,
        )

    def failed(self, error: str) -> "Job":
        return replace(
            self,
            status=JobStatus.FAILED,
            image=None,
            artist=None,
            work=None,
            error=error,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "key": self.key,
            "style_id": self.style.id,
            "style_name": self.style.display_name,
            "status": self.status.value,
            "image": self.image,
            "artist": self.artist,
            "work": self.work,
            "error": self.error,
            "generation": self.generation,
        }
