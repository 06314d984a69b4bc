"""
Job poller: runs one bounded cycle over the due jobs.

A cycle reclaims stale running jobs, claims each due job through a
conditional update, dispatches it to its handler under a timeout and records
the outcome. Per-job failures are folded into the returned CycleSummary;
only job store faults escape ``run_cycle``.
"""

import asyncio
from datetime import datetime, timedelta

from publisphere.config.logging import get_logger
from publisphere.config.settings import Settings
from publisphere.v1.core.clock import Clock
from publisphere.v1.infra.jobs.dispatcher import Dispatcher
from publisphere.v1.infra.jobs.errors import ConflictError, UnknownJobTypeError
from publisphere.v1.infra.jobs.models import Job
from publisphere.v1.infra.jobs.outcomes import Failure, Outcome, Success
from publisphere.v1.infra.jobs.schemas import CycleSummary, JobRunResult
from publisphere.v1.infra.jobs.store import JobStore

logger = get_logger(__name__)

TIMEOUT_REASON = "timeout"


def compute_backoff(attempts: int, base_s: int, max_s: int) -> int:
    """Seconds to wait before the next attempt: base * 2^(attempts-1), capped."""
    return min(max_s, base_s * 2 ** max(0, attempts - 1))


class JobPoller:
    """Claims and executes due jobs, one cycle per call."""

    def __init__(
        self,
        store: JobStore,
        dispatcher: Dispatcher,
        settings: Settings,
        clock: Clock,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.settings = settings
        self.clock = clock

    async def run_cycle(self) -> CycleSummary:
        stale_before = self.clock.now() - timedelta(
            seconds=self.settings.job_stale_after_s
        )
        reclaimed = await self.store.reclaim_stale(stale_before)

        due = await self.store.fetch_due(self.settings.job_batch_size)
        outcomes = await self._run_batch(due)

        results = [r for r in outcomes if r is not None]
        summary = CycleSummary(
            processed_count=len(results),
            skipped_count=len(outcomes) - len(results),
            reclaimed_count=reclaimed.total,
            results=results,
        )
        logger.info(
            "Poller cycle finished",
            due=len(due),
            processed=summary.processed_count,
            completed=summary.completed_count,
            failed=summary.failed_count,
            skipped=summary.skipped_count,
            reclaimed=summary.reclaimed_count,
        )
        return summary

    async def _run_batch(self, jobs: list[Job]) -> list[JobRunResult | None]:
        if self.settings.job_concurrency <= 1 or len(jobs) <= 1:
            return [await self._run_one(job) for job in jobs]

        semaphore = asyncio.Semaphore(self.settings.job_concurrency)

        async def bounded(job: Job) -> JobRunResult | None:
            async with semaphore:
                return await self._run_one(job)

        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(bounded(job)) for job in jobs]
        except ExceptionGroup as group:
            raise group.exceptions[0] from group
        return [task.result() for task in tasks]

    async def _run_one(self, job: Job) -> JobRunResult | None:
        """Claim, execute and record one job. None means it was skipped."""
        log = logger.bind(job_id=str(job.id), job_type=job.job_type)

        try:
            claimed = await self.store.mark_running(job.id, job.attempts)
        except ConflictError:
            log.debug("Job claimed elsewhere, skipping")
            return None

        log = log.bind(attempt=claimed.attempts, max_attempts=claimed.max_attempts)

        try:
            handler = self.dispatcher.resolve(claimed.job_type)
        except UnknownJobTypeError as e:
            log.error("Unknown job type, failing permanently")
            return await self._record(
                claimed, Failure(str(e)), permanent=True, log=log
            )

        log.info("Processing job started")
        outcome = await self._execute(handler, claimed, log)
        return await self._record(claimed, outcome, permanent=False, log=log)

    async def _execute(self, handler, job: Job, log) -> Outcome:
        try:
            outcome = await asyncio.wait_for(
                handler.execute(job), timeout=self.settings.job_timeout_s
            )
        except TimeoutError:
            log.warning("Job timed out", timeout_s=self.settings.job_timeout_s)
            return Failure(TIMEOUT_REASON)
        except Exception as e:
            log.exception("Job handler raised", error_type=type(e).__name__)
            return Failure(f"{type(e).__name__}: {e}")

        if isinstance(outcome, Failure):
            log.warning("Job attempt failed", reason=outcome.reason)
        return outcome

    async def _record(
        self, job: Job, outcome: Outcome, *, permanent: bool, log
    ) -> JobRunResult | None:
        try:
            if isinstance(outcome, Success):
                await self.store.mark_completed(job.id)
                log.info("Processing job completed successfully")
                return self._result(job, "completed")

            if permanent or job.attempts >= job.max_attempts:
                await self.store.mark_failed_permanently(job.id, outcome.reason)
                log.error("Job failed permanently", reason=outcome.reason)
                return self._result(job, "failed", error=outcome.reason)

            next_run_at = self._next_run_at(job.attempts)
            await self.store.reschedule(job.id, next_run_at, outcome.reason)
            log.info("Job scheduled for retry", next_run_at=next_run_at.isoformat())
            return self._result(
                job, "retrying", error=outcome.reason, next_run_at=next_run_at
            )
        except ConflictError as e:
            # Reclaimed by another poller while the handler ran
            log.warning("Job outcome not recorded", error=str(e))
            return None

    def _next_run_at(self, attempts: int) -> datetime:
        delay = compute_backoff(
            attempts,
            self.settings.job_backoff_base_s,
            self.settings.job_max_backoff_s,
        )
        return self.clock.now() + timedelta(seconds=delay)

    @staticmethod
    def _result(
        job: Job,
        outcome: str,
        error: str | None = None,
        next_run_at: datetime | None = None,
    ) -> JobRunResult:
        return JobRunResult(
            id=job.id,
            job_type=job.job_type,
            outcome=outcome,
            attempts=job.attempts,
            error=error,
            next_run_at=next_run_at,
        )


class PollingWorker:
    """
    Runs poller cycles on a fixed interval inside one process.

    Used by ``publisphere worker start`` where no external cron triggers
    ``POST /v1/jobs/process``. Store faults are logged and the loop backs off
    instead of exiting.
    """

    def __init__(self, poller: JobPoller, interval_s: float, error_backoff_s: float = 5):
        self.poller = poller
        self.interval_s = interval_s
        self.error_backoff_s = error_backoff_s
        self.running = False
        self.cycles = 0
        self._stopped = asyncio.Event()

    async def start(self) -> None:
        """Start the polling loop; returns once ``stop`` is called."""
        if self.running:
            raise RuntimeError("Worker is already running")

        self.running = True
        self._stopped.clear()
        logger.info("Starting job worker", interval_s=self.interval_s)

        try:
            while self.running:
                delay = self.interval_s
                try:
                    summary = await self.poller.run_cycle()
                    self.cycles += 1
                    # A full batch means more jobs are probably due
                    if summary.processed_count + summary.skipped_count >= (
                        self.poller.settings.job_batch_size
                    ):
                        delay = 0
                except Exception:
                    logger.exception("Error in worker loop")
                    delay = self.error_backoff_s
                await self._sleep(delay)
        finally:
            self.running = False
            logger.info("Job worker stopped", cycles=self.cycles)

    async def stop(self) -> None:
        """Stop the worker after the current cycle."""
        logger.info("Stopping job worker")
        self.running = False
        self._stopped.set()

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=seconds)
        except TimeoutError:
            pass
