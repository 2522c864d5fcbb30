"""In-memory registry of workflow sessions per user."""

import logging
from dataclasses import dataclass, field

from master_valley.services.catalog import StyleCatalog
from master_valley.services.transform import TransformService
from master_valley.services.workflow import WorkflowSession

logger = logging.getLogger(__name__)


@dataclass
class SessionRegistry:
    """Holds one memory-resident workflow session per authenticated user."""

    catalog: StyleCatalog
    transform_service: TransformService
    max_concurrency: int | None = None
    _sessions: dict[str, WorkflowSession] = field(default_factory=dict)

    def get_or_create(self, user_id: str) -> WorkflowSession:
        """Return the user's session, creating a fresh one if needed."""
        session = self._sessions.get(user_id)
        if session is None:
            session = WorkflowSession(
                catalog=self.catalog,
                transform_service=self.transform_service,
                max_concurrency=self.max_concurrency,
            )
            self._sessions[user_id] = session
            logger.info("Created workflow session for user %s", user_id)
        return session

    def get(self, user_id: str) -> WorkflowSession | None:
        return self._sessions.get(user_id)

    def end(self, user_id: str) -> None:
        """Reset and forget the user's session, if any."""
        session = self._sessions.pop(user_id, None)
        if session is not None:
            session.reset()

    def list_sessions(self) -> list[dict[str, object]]:
        return [
            {
                "user_id": user_id,
                "state": session.state.value,
                "generation": session.epoch.value,
                "style": session.style.id if session.style else None,
            }
            for user_id, session in self._sessions.items()
        ]
