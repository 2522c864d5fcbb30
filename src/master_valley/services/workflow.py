"""Screen-level state machine for one transformation session."""

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass, field
from enum import StrEnum

from master_valley.domain.errors import SelectionError, UnknownStyleError
from master_valley.domain.jobs import Job
from master_valley.domain.photos import Photo
from master_valley.domain.styles import Category, FullTransformStyle, Style
from master_valley.services.batch import BatchJobScheduler
from master_valley.services.catalog import StyleCatalog
from master_valley.services.jobs import execute_job, install_if_current
from master_valley.services.results import (
    ChatNote,
    ResultAggregate,
    ResultMode,
    SessionEpoch,
)
from master_valley.services.retry import RetryCoordinator
from master_valley.services.selection import SelectionGate
from master_valley.services.transform import TransformService

logger = logging.getLogger(__name__)


class Screen(StrEnum):
    CATEGORY_SELECT = "category_select"
    STYLE_AND_PHOTO = "style_and_photo"
    PROCESSING = "processing"
    RESULT = "result"


@dataclass
class WorkflowSession:
    """State machine guiding one photo from category choice to results.

    Transitions that arrive in the wrong state raise SelectionError and leave
    the session untouched. Every asynchronous completion is tagged with the
    epoch it started in and is dropped if a reset happened meanwhile.
    """

    catalog: StyleCatalog
    transform_service: TransformService
    max_concurrency: int | None = None
    epoch: SessionEpoch = field(default_factory=SessionEpoch)
    state: Screen = Screen.CATEGORY_SELECT
    category: Category | None = None
    gate: SelectionGate | None = None
    photo: Photo | None = None
    style: Style | None = None
    aggregate: ResultAggregate | None = None
    current_index: int = 0
    scheduler: BatchJobScheduler = field(init=False)
    retries: RetryCoordinator = field(init=False)
    _tasks: dict[asyncio.Task, int] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self.scheduler = BatchJobScheduler(
            transform_service=self.transform_service,
            epoch=self.epoch,
            max_concurrency=self.max_concurrency,
        )
        self.retries = RetryCoordinator(
            transform_service=self.transform_service, epoch=self.epoch
        )

    def select_category(self, category_id: str) -> Category:
        self._require(Screen.CATEGORY_SELECT, "select a category")
        category = self.catalog.get(category_id)
        self.category = category
        self.gate = SelectionGate(on_pair_ready=self.pair_ready)
        self.state = Screen.STYLE_AND_PHOTO
        logger.info("Category %s selected", category_id)
        return category

    def set_photo(self, photo: Photo) -> None:
        self._require(Screen.STYLE_AND_PHOTO, "upload a photo")
        self.gate.set_photo(photo)

    def set_style(self, style_id: str) -> Style:
        self._require(Screen.STYLE_AND_PHOTO, "choose a style")
        style = self.category.find_style(style_id)
        if style is None:
            raise UnknownStyleError(style_id, self.category.id)
        self.gate.set_style(style)
        return style

    def pair_ready(self, photo: Photo, style: Style) -> None:
        """Start processing once both selections are present."""
        self._require(Screen.STYLE_AND_PHOTO, "start processing")
        generation = self.epoch.value
        if isinstance(style, FullTransformStyle):
            aggregate = self.scheduler.prepare(style, generation)
        else:
            aggregate = ResultAggregate.single(Job.pending(style, generation))
        self.photo = photo
        self.style = style
        self.gate = None
        self.aggregate = aggregate
        self.state = Screen.PROCESSING
        logger.info(
            "Processing %s with %d job(s) in generation %d",
            style.id,
            len(aggregate.keys()),
            generation,
        )
        self._spawn(self._process(photo, aggregate, generation), generation)

    def complete(self, aggregate: ResultAggregate) -> None:
        self._require(Screen.PROCESSING, "show results")
        self.aggregate = aggregate
        self.current_index = 0
        self.state = Screen.RESULT
        logger.info("Results ready for %s", self.style.id if self.style else "?")

    def back(self) -> None:
        self._require(Screen.STYLE_AND_PHOTO, "go back")
        self.category = None
        self.photo = None
        self.gate = None
        self.state = Screen.CATEGORY_SELECT

    def reset(self) -> None:
        """Return to category selection and invalidate all in-flight work."""
        generation = self.epoch.advance()
        self.state = Screen.CATEGORY_SELECT
        self.category = None
        self.gate = None
        self.photo = None
        self.style = None
        self.aggregate = None
        self.current_index = 0
        self.retries.clear()
        logger.info("Session reset to generation %d", generation)

    def start_retry(self, key: str) -> asyncio.Task:
        """Claim a key for retry and schedule it; errors are raised immediately."""
        self._require(Screen.RESULT, "retry a result")
        ticket = self.retries.begin(self.aggregate, key)
        return self._spawn(
            self.retries.run(self.aggregate, self.photo, ticket), ticket.generation
        )

    async def retry(self, key: str) -> Job | None:
        """Retry a key and wait; cancelling the caller does not stop the retry."""
        return await asyncio.shield(self.start_retry(key))

    def annotate(self, key: str, note: ChatNote) -> None:
        self._require(Screen.RESULT, "annotate a result")
        self.aggregate.annotate(key, note)

    def focus(self, index: int) -> Job:
        self._require(Screen.RESULT, "browse results")
        jobs = self.aggregate.jobs()
        if not 0 <= index < len(jobs):
            raise SelectionError(f"Result index {index} is out of range")
        self.current_index = index
        return jobs[index]

    def guide_message(self) -> str | None:
        if self.state is not Screen.STYLE_AND_PHOTO or self.gate is None:
            return None
        if self.gate.photo is not None and self.gate.style is None:
            return f"Choose a style from {self.category.display_name}"
        if self.gate.photo is None and self.gate.style is not None:
            return "Upload a photo"
        return None

    def estimated_cost(self) -> float | None:
        style = self.style or (self.gate.style if self.gate else None)
        if style is None:
            return None
        return self.catalog.estimated_cost(style)

    async def wait_idle(self, *, current_only: bool = False) -> None:
        """Wait for tasks started by this session.

        Cancelling the waiter does not cancel the tasks. With ``current_only``
        set, tasks from generations discarded by a reset are not waited for.
        """
        while True:
            pending = [
                task
                for task, generation in self._tasks.items()
                if not task.done()
                and (not current_only or self.epoch.is_current(generation))
            ]
            if not pending:
                return
            await asyncio.shield(asyncio.gather(*pending, return_exceptions=True))

    def to_dict(self) -> dict[str, object]:
        return {
            "state": self.state.value,
            "generation": self.epoch.value,
            "category": self.category.id if self.category else None,
            "style": self.style.id if self.style else None,
            "has_photo": self.photo is not None
            or (self.gate is not None and self.gate.photo is not None),
            "guide_message": self.guide_message(),
            "estimated_cost": self.estimated_cost(),
            "current_index": self.current_index,
            "retrying": sorted(self.retries.in_flight),
            "result": self.aggregate.to_dict() if self.aggregate else None,
        }

    async def _process(
        self, photo: Photo, aggregate: ResultAggregate, generation: int
    ) -> None:
        if aggregate.mode is ResultMode.BATCH:
            await self.scheduler.run(photo, aggregate)
        else:
            job = aggregate.single_job
            if install_if_current(aggregate, job.running(), self.epoch):
                finished = await execute_job(self.transform_service, photo, job)
                install_if_current(aggregate, finished, self.epoch)
        if not self.epoch.is_current(generation):
            logger.debug("Dropping results from generation %d", generation)
            return
        self.complete(aggregate)

    def _spawn(self, coro: Coroutine, generation: int) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks[task] = generation
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.pop(task, None)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Workflow task failed", exc_info=exc)

    def _require(self, expected: Screen, action: str) -> None:
        if self.state is not expected:
            raise SelectionError(
                f"Cannot {action} while in {self.state.value}; "
                f"expected {expected.value}"
            )
