from __future__ import annotations

import asyncio

import pytest

from docmaster.core.errors import InvalidTransitionError
from docmaster.domain.models import IngestionStatus
from docmaster.persistence.repos import activities as activities_repo
from docmaster.persistence.repos import ingestions as ingestions_repo
from docmaster.persistence.store import EntityStore
from docmaster.services import telemetry
from docmaster.services.ingest.runner import (
    CANCELLED_LOG,
    COMPLETED_LOG,
    FAILED_LOG,
    PROCESSING_LOG,
    IngestionRunner,
)


class SteppedSleep:
    """Sleep replacement that blocks until the test releases one step."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self._permits = asyncio.Semaphore(0)

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await self._permits.acquire()

    def step(self) -> None:
        self._permits.release()


async def _settle() -> None:
    # Let scheduled tasks run until they block again.
    for _ in range(5):
        await asyncio.sleep(0)


def _runner(store: EntityStore, sleep) -> IngestionRunner:
    return IngestionRunner(store, processing_delay_s=1.0, completion_delay_s=5.0, sleep=sleep)


@pytest.mark.asyncio
async def test_ingestion_progresses_to_completed() -> None:
    store = EntityStore()
    sleep = SteppedSleep()
    runner = _runner(store, sleep)
    ingestion = ingestions_repo.create_ingestion(store, document_id=4, user_id=2)

    runner.start(ingestion)
    await _settle()
    assert ingestions_repo.get_ingestion(store, ingestion.id).status is IngestionStatus.PENDING
    assert sleep.delays == [1.0]
    assert runner.active_ids() == [ingestion.id]

    sleep.step()
    await _settle()
    processing = ingestions_repo.get_ingestion(store, ingestion.id)
    assert processing.status is IngestionStatus.PROCESSING
    assert processing.logs == PROCESSING_LOG
    assert processing.completed_at is None
    assert sleep.delays == [1.0, 5.0]

    sleep.step()
    await _settle()
    completed = ingestions_repo.get_ingestion(store, ingestion.id)
    assert completed.status is IngestionStatus.COMPLETED
    assert completed.logs == COMPLETED_LOG
    assert completed.completed_at is not None
    assert runner.active_ids() == []

    activities = activities_repo.list_activities(store)
    assert [(a.type, a.document_id, a.user_id) for a in activities] == [("ingestion", 4, 2)]
    assert telemetry.counters()["ingestion.completed"] == 1


@pytest.mark.asyncio
async def test_cancel_marks_failed_and_stops_progression() -> None:
    store = EntityStore()
    sleep = SteppedSleep()
    runner = _runner(store, sleep)
    ingestion = ingestions_repo.create_ingestion(store, document_id=1, user_id=1)
    task = runner.start(ingestion)
    await _settle()
    sleep.step()
    await _settle()

    cancelled = runner.cancel(ingestion.id)
    await _settle()

    assert cancelled.status is IngestionStatus.FAILED
    assert cancelled.logs == CANCELLED_LOG
    assert cancelled.completed_at is not None
    assert task.cancelled()
    assert runner.active_ids() == []
    assert activities_repo.list_activities(store) == []

    with pytest.raises(InvalidTransitionError):
        runner.cancel(ingestion.id)


@pytest.mark.asyncio
async def test_cancel_unknown_ingestion_returns_none() -> None:
    runner = _runner(EntityStore(), SteppedSleep())
    assert runner.cancel(99) is None


@pytest.mark.asyncio
async def test_failure_inside_progression_marks_failed() -> None:
    store = EntityStore()

    async def broken_sleep(delay: float) -> None:
        raise RuntimeError("disk unavailable")

    runner = _runner(store, broken_sleep)
    ingestion = ingestions_repo.create_ingestion(store, document_id=1, user_id=1)
    await runner.start(ingestion)

    failed = ingestions_repo.get_ingestion(store, ingestion.id)
    assert failed.status is IngestionStatus.FAILED
    assert failed.logs == FAILED_LOG
    assert failed.completed_at is not None


@pytest.mark.asyncio
async def test_cancel_for_document_only_touches_in_flight_ingestions() -> None:
    store = EntityStore()
    sleep = SteppedSleep()
    runner = _runner(store, sleep)
    finished = ingestions_repo.create_ingestion(store, document_id=1, user_id=1)
    ingestions_repo.set_status(store, finished.id, IngestionStatus.FAILED)
    running = ingestions_repo.create_ingestion(store, document_id=1, user_id=1)
    unrelated = ingestions_repo.create_ingestion(store, document_id=2, user_id=1)
    runner.start(running)
    runner.start(unrelated)
    await _settle()

    cancelled = runner.cancel_for_document(1)

    assert [row.id for row in cancelled] == [running.id]
    assert runner.active_ids() == [unrelated.id]
    await runner.shutdown()
    assert runner.active_ids() == []
    assert ingestions_repo.get_ingestion(store, unrelated.id).status is IngestionStatus.PENDING


@pytest.mark.asyncio
async def test_drain_waits_for_outstanding_progressions() -> None:
    store = EntityStore()

    async def instant(delay: float) -> None:
        await asyncio.sleep(0)

    runner = _runner(store, instant)
    ingestions = [ingestions_repo.create_ingestion(store, document_id=1, user_id=1) for _ in range(3)]
    for ingestion in ingestions:
        runner.start(ingestion)

    await runner.drain()

    statuses = {ingestions_repo.get_ingestion(store, row.id).status for row in ingestions}
    assert statuses == {IngestionStatus.COMPLETED}
    assert len(activities_repo.list_activities(store)) == 3


@pytest.mark.asyncio
async def test_cancel_for_user_stops_ingestions_they_started() -> None:
    store = EntityStore()
    runner = _runner(store, SteppedSleep())
    theirs = ingestions_repo.create_ingestion(store, document_id=1, user_id=7)
    someone_else = ingestions_repo.create_ingestion(store, document_id=1, user_id=8)
    runner.start(theirs)
    runner.start(someone_else)
    await _settle()

    cancelled = runner.cancel_for_user(7)

    assert [row.id for row in cancelled] == [theirs.id]
    assert ingestions_repo.get_ingestion(store, theirs.id).status is IngestionStatus.FAILED
    assert runner.active_ids() == [someone_else.id]
    await runner.shutdown()
