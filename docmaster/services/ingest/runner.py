from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from docmaster.core.errors import InvalidTransitionError
from docmaster.domain.models import ActivityType, Ingestion, IngestionStatus
from docmaster.persistence.repos import ingestions as ingestions_repo
from docmaster.persistence.store import EntityStore
from docmaster.services.activity import record_activity
from docmaster.services.telemetry import increment_counter


logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

PROCESSING_LOG = "Starting ingestion process..."
COMPLETED_LOG = "Document successfully ingested"
CANCELLED_LOG = "Ingestion cancelled"
FAILED_LOG = "Ingestion failed; check server logs"


class IngestionRunner:
    """Drives simulated ingestions through pending -> processing -> completed.

    Each ingestion gets one asyncio task that waits a fixed delay before each
    status change. The sleep callable is injectable so tests can release the
    progression deterministically instead of waiting on wall-clock timers.
    """

    def __init__(
        self,
        store: EntityStore,
        *,
        processing_delay_s: float,
        completion_delay_s: float,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._store = store
        self._processing_delay_s = processing_delay_s
        self._completion_delay_s = completion_delay_s
        self._sleep = sleep
        self._tasks: dict[int, asyncio.Task[None]] = {}

    def start(self, ingestion: Ingestion) -> asyncio.Task[None]:
        # Must be called from a running loop (request handlers, tests).
        task = asyncio.get_running_loop().create_task(
            self._run(ingestion.id), name=f"ingestion-{ingestion.id}"
        )
        self._tasks[ingestion.id] = task
        task.add_done_callback(lambda _task, ingestion_id=ingestion.id: self._forget(ingestion_id, _task))
        logger.info(
            "ingestion_scheduled ingestion_id=%s document_id=%s", ingestion.id, ingestion.document_id
        )
        return task

    def _forget(self, ingestion_id: int, task: asyncio.Task[None]) -> None:
        if self._tasks.get(ingestion_id) is task:
            del self._tasks[ingestion_id]

    def active_ids(self) -> list[int]:
        return sorted(self._tasks)

    async def _run(self, ingestion_id: int) -> None:
        try:
            await self._sleep(self._processing_delay_s)
            processing = ingestions_repo.set_status(
                self._store, ingestion_id, IngestionStatus.PROCESSING, PROCESSING_LOG
            )
            if processing is None:
                logger.warning("ingestion_missing ingestion_id=%s", ingestion_id)
                return
            await self._sleep(self._completion_delay_s)
            completed = ingestions_repo.set_status(
                self._store, ingestion_id, IngestionStatus.COMPLETED, COMPLETED_LOG
            )
            if completed is None:
                logger.warning("ingestion_missing ingestion_id=%s", ingestion_id)
                return
            record_activity(
                self._store,
                activity_type=ActivityType.INGESTION,
                user_id=completed.user_id,
                document_id=completed.document_id,
                details="Document was successfully ingested",
            )
            increment_counter("ingestion.completed")
            logger.info("ingestion_completed ingestion_id=%s", ingestion_id)
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001 - background task must record its own failure
            logger.exception("ingestion_failed ingestion_id=%s", ingestion_id)
            self._mark_failed(ingestion_id, FAILED_LOG)

    def _mark_failed(self, ingestion_id: int, logs: str) -> Ingestion | None:
        try:
            failed = ingestions_repo.set_status(self._store, ingestion_id, IngestionStatus.FAILED, logs)
        except InvalidTransitionError:
            logger.warning("ingestion_already_finished ingestion_id=%s", ingestion_id)
            return None
        increment_counter("ingestion.failed")
        return failed

    def cancel(self, ingestion_id: int) -> Ingestion | None:
        """Stop an in-flight ingestion and mark it failed.

        Returns None when the ingestion does not exist and raises
        InvalidTransitionError when it already reached a terminal status.
        """
        ingestion = ingestions_repo.get_ingestion(self._store, ingestion_id)
        if ingestion is None:
            return None
        if ingestion.status.is_terminal:
            raise InvalidTransitionError(ingestion.status.value, IngestionStatus.FAILED.value)
        task = self._tasks.pop(ingestion_id, None)
        if task is not None:
            task.cancel()
        cancelled = ingestions_repo.set_status(
            self._store, ingestion_id, IngestionStatus.FAILED, CANCELLED_LOG
        )
        increment_counter("ingestion.cancelled")
        logger.info("ingestion_cancelled ingestion_id=%s", ingestion_id)
        return cancelled

    def cancel_for_document(self, document_id: int) -> list[Ingestion]:
        return self._cancel_in_flight(ingestions_repo.list_ingestions(self._store, document_id=document_id))

    def cancel_for_user(self, user_id: int) -> list[Ingestion]:
        # Ingestions the user started, whoever owns the document.
        return self._cancel_in_flight(ingestions_repo.list_ingestions(self._store, user_id=user_id))

    def _cancel_in_flight(self, ingestions: list[Ingestion]) -> list[Ingestion]:
        cancelled: list[Ingestion] = []
        for ingestion in ingestions:
            if ingestion.status.is_terminal:
                continue
            result = self.cancel(ingestion.id)
            if result is not None:
                cancelled.append(result)
        return cancelled

    async def drain(self) -> None:
        # Wait until every scheduled progression has finished or been cancelled.
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
