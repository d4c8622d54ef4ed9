# Path: backend/carbonledger/services/report_worker.py

import asyncio
import time
from typing import List, Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from carbonledger.core.config import settings
from carbonledger.core.database import AsyncSessionLocal
from carbonledger.core.logging import log_report_event, report_logger
from carbonledger.models.report import Report, ReportStatus
from carbonledger.services.aggregation import build_report_payload
from carbonledger.services.report_jobs import fetch_report_inputs, mark_completed, mark_failed
from carbonledger.utils.time import utc_now


class ReportWorker:
    """
    Bounded pool of asyncio tasks that turn ``generating`` report jobs into
    ``completed`` or ``failed`` ones.

    The persisted job status is the source of truth: a job id is only a hint
    to look at the row, and a job that is no longer ``generating`` is skipped.
    Jobs left ``generating`` by a crash or shutdown are picked up again by
    ``recover()``.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        concurrency: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        queue_maxsize: Optional[int] = None,
    ):
        self.session_factory = session_factory or AsyncSessionLocal
        self.concurrency = concurrency or settings.REPORT_WORKER_CONCURRENCY
        self.timeout_seconds = timeout_seconds or settings.REPORT_GENERATION_TIMEOUT_SECONDS
        self.queue_maxsize = queue_maxsize if queue_maxsize is not None else settings.REPORT_QUEUE_MAXSIZE

        self._queue: Optional[asyncio.Queue] = None
        self._tasks: List[asyncio.Task] = []
        self._pending: Set[int] = set()

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    # ─────────────────────────────────────────────
    # ▶️ Lifecycle
    # ─────────────────────────────────────────────
    async def start(self) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue(maxsize=self.queue_maxsize)
        self._tasks = [
            asyncio.create_task(self._consume(index), name=f"report-worker-{index}")
            for index in range(self.concurrency)
        ]
        report_logger.info(f"Report worker started with {self.concurrency} task(s)")

    async def stop(self) -> None:
        """Cancel the pool. Interrupted jobs stay ``generating`` until the next recover()."""
        if not self.running:
            return
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._queue = None
        self._pending.clear()
        report_logger.info("Report worker stopped")

    async def submit(self, job_id: int) -> bool:
        """
        Enqueue a job id. Waits when the queue is full.

        Returns False when the worker is not running or the id is already
        queued; the job row keeps its status either way.
        """
        if not self.running:
            report_logger.warning(f"Report worker not running, job {job_id} left for recovery")
            return False
        if job_id in self._pending:
            return False
        self._pending.add(job_id)
        await self._queue.put(job_id)
        return True

    async def recover(self) -> int:
        """Re-enqueue every job still ``generating``. Returns how many were queued."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Report.id).where(Report.status == ReportStatus.generating).order_by(Report.id)
            )
            job_ids = list(result.scalars().all())

        queued = 0
        for job_id in job_ids:
            if await self.submit(job_id):
                queued += 1

        if job_ids:
            report_logger.info(f"Recovered {queued} interrupted report job(s)")
        return queued

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        if self._queue is not None:
            await self._queue.join()

    # ─────────────────────────────────────────────
    # ⚙️ Processing
    # ─────────────────────────────────────────────
    async def _consume(self, index: int) -> None:
        while True:
            job_id = await self._queue.get()
            try:
                await asyncio.wait_for(self.process(job_id), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                log_report_event(job_id, "timed_out", error=f"exceeded {self.timeout_seconds}s")
                await self._fail_quietly(job_id, f"Report generation timed out after {self.timeout_seconds} seconds")
            except Exception as e:
                report_logger.exception(f"Report worker {index} crashed on job {job_id}: {str(e)}")
            finally:
                self._pending.discard(job_id)
                self._queue.task_done()

    async def process(self, job_id: int) -> Optional[ReportStatus]:
        """
        Run one job to a terminal state in its own session.

        Returns the job's status afterwards, or None when the row is gone.
        """
        started = time.perf_counter()

        async with self.session_factory() as db:
            report = await db.get(Report, job_id)
            if report is None:
                log_report_event(job_id, "skipped_missing")
                return None
            if report.status != ReportStatus.generating:
                log_report_event(job_id, f"skipped_{report.status.value}", user_id=report.user_id)
                return report.status

            try:
                emissions, suppliers = await fetch_report_inputs(db, report)
                payload = build_report_payload(emissions, suppliers, generated_at=utc_now())
                data_points = len(emissions) + len(suppliers)
                elapsed = time.perf_counter() - started
                mark_completed(report, payload, data_points=data_points, generation_time_ms=elapsed * 1000)
                await db.commit()
            except Exception as e:
                log_report_event(
                    job_id, "failed",
                    user_id=report.user_id,
                    processing_time=time.perf_counter() - started,
                    error=f"{type(e).__name__}: {e}",
                )
                await self._record_failure(db, report, str(e))
                return ReportStatus.failed

            log_report_event(
                job_id, "completed",
                user_id=report.user_id,
                processing_time=elapsed,
                data_points=data_points,
            )
            return ReportStatus.completed

    @staticmethod
    async def _record_failure(db: AsyncSession, report: Report, reason: str) -> None:
        await db.rollback()
        await db.refresh(report)
        if report.status == ReportStatus.generating:
            mark_failed(report, reason)
            await db.commit()

    async def _fail_quietly(self, job_id: int, reason: str) -> None:
        try:
            async with self.session_factory() as db:
                report = await db.get(Report, job_id)
                if report is not None:
                    await self._record_failure(db, report, reason)
        except Exception as e:
            # Row stays generating and is retried by the next recover()
            report_logger.error(f"Could not mark report {job_id} failed: {str(e)}")


report_worker = ReportWorker()


def get_report_worker() -> ReportWorker:
    """Dependency for the process-wide report worker"""
    return report_worker
