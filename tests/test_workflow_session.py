"""Tests for the workflow state machine."""

import asyncio

import pytest

from master_valley.domain.errors import (
    DuplicateRetryError,
    SelectionError,
    UnknownCategoryError,
    UnknownKeyError,
    UnknownStyleError,
)
from master_valley.domain.jobs import JobStatus
from master_valley.domain.photos import Photo
from master_valley.services.catalog import StyleCatalog
from master_valley.services.results import ResultMode
from master_valley.services.transform import TransformService
from master_valley.services.workflow import Screen, WorkflowSession
from tests.conftest import FakeTransformClient, settle


def _session(catalog: StyleCatalog, client: FakeTransformClient) -> WorkflowSession:
    return WorkflowSession(catalog=catalog, transform_service=TransformService(client))


def test_movements_full_transform_with_one_failure_and_retry(
    catalog: StyleCatalog, photo: Photo
) -> None:
    client = FakeTransformClient(failing={"modernism"})
    session = _session(catalog, client)

    async def scenario() -> None:
        session.select_category("movements")
        session.set_photo(photo)
        session.set_style("movements-all")

        assert session.state is Screen.PROCESSING
        assert len(session.aggregate.keys()) == 11
        assert session.aggregate.count(JobStatus.PENDING) == 11

        await session.wait_idle()

        assert session.state is Screen.RESULT
        assert session.aggregate.mode is ResultMode.BATCH
        assert session.aggregate.count(JobStatus.SUCCEEDED) == 10
        assert session.aggregate.get("modernism").status is JobStatus.FAILED

        client.failing.clear()
        retried = await session.retry("modernism")

        assert retried is not None
        assert retried.status is JobStatus.SUCCEEDED
        assert session.aggregate.count(JobStatus.SUCCEEDED) == 11

    asyncio.run(scenario())


def test_reset_discards_late_batch_results(
    catalog: StyleCatalog, photo: Photo
) -> None:
    client = FakeTransformClient(hold=True)
    session = _session(catalog, client)

    async def scenario() -> None:
        session.select_category("oriental")
        session.set_style("oriental-all")
        session.set_photo(photo)
        old_aggregate = session.aggregate
        await settle()
        generation = session.epoch.value

        session.reset()

        assert session.epoch.value == generation + 1
        client.release("korean", "chinese", "japanese")
        await session.wait_idle()

        assert session.state is Screen.CATEGORY_SELECT
        assert session.aggregate is None
        assert session.photo is None
        assert all(job.status is JobStatus.RUNNING for job in old_aggregate.jobs())

    asyncio.run(scenario())


def test_single_style_records_optional_attribution(
    catalog: StyleCatalog, photo: Photo
) -> None:
    client = FakeTransformClient(artist="Vincent van Gogh", work="The Starry Night")
    session = _session(catalog, client)

    async def scenario() -> None:
        session.select_category("masters")
        session.set_style("vangogh-master")
        session.set_photo(photo)
        await session.wait_idle()

    asyncio.run(scenario())

    assert session.state is Screen.RESULT
    assert session.aggregate.mode is ResultMode.SINGLE
    job = session.aggregate.single_job
    assert job.status is JobStatus.SUCCEEDED
    assert job.artist == "Vincent van Gogh"
    assert job.work == "The Starry Night"


def test_single_style_without_metadata_is_success(
    catalog: StyleCatalog, photo: Photo
) -> None:
    session = _session(catalog, FakeTransformClient())

    async def scenario() -> None:
        session.select_category("oriental")
        session.set_photo(photo)
        session.set_style("korean")
        await session.wait_idle()

    asyncio.run(scenario())

    job = session.aggregate.single_job
    assert job.status is JobStatus.SUCCEEDED
    assert job.artist is None
    assert job.work is None


def test_single_retry_replaces_result(catalog: StyleCatalog, photo: Photo) -> None:
    client = FakeTransformClient(failing={"klimt-master"})
    session = _session(catalog, client)

    async def scenario() -> None:
        session.select_category("masters")
        session.set_photo(photo)
        session.set_style("klimt-master")
        await session.wait_idle()
        assert session.aggregate.single_job.status is JobStatus.FAILED

        client.failing.clear()
        await session.retry("klimt-master")

    asyncio.run(scenario())

    job = session.aggregate.single_job
    assert job.status is JobStatus.SUCCEEDED
    assert job.error is None


def test_duplicate_retry_through_session(catalog: StyleCatalog, photo: Photo) -> None:
    client = FakeTransformClient()
    session = _session(catalog, client)

    async def scenario() -> None:
        session.select_category("oriental")
        session.set_photo(photo)
        session.set_style("oriental-all")
        await session.wait_idle()
        client.hold = True

        task = session.start_retry("chinese")
        with pytest.raises(DuplicateRetryError):
            session.start_retry("chinese")
        await settle()
        client.release("chinese")
        await task

    asyncio.run(scenario())

    assert client.calls.count("chinese") == 2


def test_retry_requires_result_state(catalog: StyleCatalog) -> None:
    session = _session(catalog, FakeTransformClient())

    with pytest.raises(SelectionError):
        session.start_retry("korean")


def test_retry_unknown_key_in_result(catalog: StyleCatalog, photo: Photo) -> None:
    session = _session(catalog, FakeTransformClient())

    async def scenario() -> None:
        session.select_category("oriental")
        session.set_photo(photo)
        session.set_style("japanese")
        await session.wait_idle()
        with pytest.raises(UnknownKeyError):
            session.start_retry("korean")

    asyncio.run(scenario())

    assert session.aggregate.keys() == ["japanese"]


def test_out_of_order_events_are_rejected(catalog: StyleCatalog, photo: Photo) -> None:
    session = _session(catalog, FakeTransformClient())

    with pytest.raises(SelectionError):
        session.set_photo(photo)
    with pytest.raises(SelectionError):
        session.back()
    with pytest.raises(SelectionError):
        session.complete(None)

    assert session.state is Screen.CATEGORY_SELECT


def test_pair_ready_while_processing_is_rejected(
    catalog: StyleCatalog, photo: Photo
) -> None:
    client = FakeTransformClient(hold=True)
    session = _session(catalog, client)

    async def scenario() -> None:
        session.select_category("oriental")
        session.set_photo(photo)
        session.set_style("korean")
        aggregate = session.aggregate

        with pytest.raises(SelectionError):
            session.pair_ready(photo, catalog.get("oriental").member_styles[1])

        assert session.state is Screen.PROCESSING
        assert session.aggregate is aggregate
        await settle()
        client.release("korean")
        await session.wait_idle()

    asyncio.run(scenario())

    assert client.calls == ["korean"]


def test_unknown_category_and_style(catalog: StyleCatalog) -> None:
    session = _session(catalog, FakeTransformClient())

    with pytest.raises(UnknownCategoryError):
        session.select_category("sculpture")
    assert session.state is Screen.CATEGORY_SELECT

    session.select_category("oriental")
    with pytest.raises(UnknownStyleError):
        session.set_style("vangogh-master")


def test_back_clears_category_and_photo(catalog: StyleCatalog, photo: Photo) -> None:
    session = _session(catalog, FakeTransformClient())
    session.select_category("masters")
    session.set_photo(photo)

    session.back()

    assert session.state is Screen.CATEGORY_SELECT
    assert session.category is None
    assert session.photo is None
    assert session.gate is None
    assert session.epoch.value == 0


def test_guide_message_and_cost(catalog: StyleCatalog, photo: Photo) -> None:
    session = _session(catalog, FakeTransformClient())
    session.select_category("masters")
    assert session.guide_message() is None

    session.set_style("masters-all")
    assert session.guide_message() == "Upload a photo"
    assert session.estimated_cost() == 1.75

    session.back()
    session.select_category("masters")
    session.set_photo(photo)
    assert session.guide_message() == "Choose a style from Masters Collection"


def test_focus_and_annotate_results(catalog: StyleCatalog, photo: Photo) -> None:
    session = _session(catalog, FakeTransformClient())

    async def scenario() -> None:
        session.select_category("oriental")
        session.set_photo(photo)
        session.set_style("oriental-all")
        await session.wait_idle()

    asyncio.run(scenario())

    job = session.focus(2)
    assert job.key == "japanese"
    assert session.current_index == 2
    with pytest.raises(SelectionError):
        session.focus(3)

    session.annotate("korean", {"role": "user", "text": "Tell me about this"})
    assert session.aggregate.notes("korean") == [
        {"role": "user", "text": "Tell me about this"}
    ]

    session.reset()
    assert session.current_index == 0
    assert session.aggregate is None


def test_reset_clears_in_flight_retries(catalog: StyleCatalog, photo: Photo) -> None:
    client = FakeTransformClient()
    session = _session(catalog, client)

    async def scenario() -> None:
        session.select_category("oriental")
        session.set_photo(photo)
        session.set_style("oriental-all")
        await session.wait_idle()
        client.hold = True
        session.start_retry("korean")
        await settle()
        assert session.retries.in_flight == {"korean"}

        session.reset()

        assert session.retries.in_flight == frozenset()
        client.release("korean")
        await session.wait_idle()

    asyncio.run(scenario())

    assert session.aggregate is None
    assert session.state is Screen.CATEGORY_SELECT


def test_to_dict_reports_progress(catalog: StyleCatalog, photo: Photo) -> None:
    session = _session(catalog, FakeTransformClient())

    async def scenario() -> None:
        session.select_category("oriental")
        session.set_photo(photo)
        session.set_style("oriental-all")
        await session.wait_idle()

    asyncio.run(scenario())
    payload = session.to_dict()

    assert payload["state"] == "result"
    assert payload["style"] == "oriental-all"
    assert payload["estimated_cost"] == 0.6
    assert payload["result"]["mode"] == "batch"
    assert [job["key"] for job in payload["result"]["jobs"]] == [
        "korean",
        "chinese",
        "japanese",
    ]


def test_cancelled_waiter_does_not_stop_processing(
    catalog: StyleCatalog, photo: Photo
) -> None:
    client = FakeTransformClient(hold=True)
    session = _session(catalog, client)

    async def scenario() -> None:
        session.select_category("oriental")
        session.set_photo(photo)
        session.set_style("oriental-all")
        waiter = asyncio.create_task(session.wait_idle())
        await settle()
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        client.release("korean", "chinese", "japanese")
        await session.wait_idle()

    asyncio.run(scenario())

    assert session.state is Screen.RESULT
    assert session.aggregate.count(JobStatus.SUCCEEDED) == 3


def test_cancelled_retry_caller_leaves_retry_running(
    catalog: StyleCatalog, photo: Photo
) -> None:
    client = FakeTransformClient(failing={"korean"})
    session = _session(catalog, client)

    async def scenario() -> None:
        session.select_category("oriental")
        session.set_photo(photo)
        session.set_style("korean")
        await session.wait_idle()
        client.failing.clear()
        client.hold = True

        caller = asyncio.create_task(session.retry("korean"))
        await settle()
        caller.cancel()
        with pytest.raises(asyncio.CancelledError):
            await caller
        assert session.retries.in_flight == {"korean"}

        client.release("korean")
        await session.wait_idle()

    asyncio.run(scenario())

    assert session.aggregate.single_job.status is JobStatus.SUCCEEDED
    assert session.retries.in_flight == frozenset()


def test_current_only_wait_skips_discarded_generations(
    catalog: StyleCatalog, photo: Photo
) -> None:
    client = FakeTransformClient(hold=True)
    session = _session(catalog, client)

    async def scenario() -> None:
        session.select_category("oriental")
        session.set_photo(photo)
        session.set_style("korean")
        await settle()
        session.reset()
        client.hold = False

        session.select_category("oriental")
        session.set_photo(photo)
        session.set_style("japanese")
        await asyncio.wait_for(session.wait_idle(current_only=True), timeout=1)

        assert session.state is Screen.RESULT
        assert session.aggregate.keys() == ["japanese"]
        client.release("korean")
        await session.wait_idle()

    asyncio.run(scenario())

    assert session.aggregate.single_job.status is JobStatus.SUCCEEDED
