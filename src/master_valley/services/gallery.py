"""Gallery service receiving finished result snapshots."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from master_valley.domain.errors import SelectionError
from master_valley.domain.jobs import JobStatus
from master_valley.services.workflow import Screen, WorkflowSession


class GalleryRepository(Protocol):
    """Persistence interface for saved results."""

    def save_result(
        self, user_id: str, style_id: str, mode: str, items: list[dict[str, object]]
    ) -> UUID:
        """Store a finished result and return its id."""


@dataclass
class GalleryService:
    """Forward finished results to the external gallery store."""

    repository: GalleryRepository

    def save(self, user_id: str, session: WorkflowSession) -> UUID:
        """Save the succeeded entries of the session's current results."""
        if session.state is not Screen.RESULT or session.aggregate is None:
            raise SelectionError("Only finished results can be saved to the gallery")
        items = [
            job.to_dict()
            for job in session.aggregate.jobs()
            if job.status is JobStatus.SUCCEEDED
        ]
        if not items:
            raise SelectionError("No succeeded results to save")
        return self.repository.save_result(
            user_id=user_id,
            style_id=session.style.id,
            mode=session.aggregate.mode.value,
            items=items,
        )
