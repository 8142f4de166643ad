"""In-process transcription job queue with at-least-once delivery.

A job is acknowledged only when its handler returns. A handler failure
redelivers the job after an exponential backoff; once ``max_retries``
redeliveries are exhausted the job is moved to :attr:`dead_letters`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from src.ingestion.models import JobStatus, TranscriptionJob

logger = logging.getLogger(__name__)

JobHandler = Callable[[TranscriptionJob], Awaitable[object]]


class TranscriptionQueue:
    def __init__(
        self,
        handler: JobHandler,
        consumers: int = 2,
        max_retries: int = 3,
        retry_delay: float = 2.0,
    ) -> None:
        self.handler = handler
        self.consumers = max(1, consumers)
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.dead_letters: list[TranscriptionJob] = []
        self._queue: asyncio.Queue[tuple[TranscriptionJob, int]] = asyncio.Queue()
        self._workers: list[asyncio.Task[None]] = []
        self._redeliveries: set[asyncio.Task[None]] = set()

    async def send(self, job: TranscriptionJob) -> None:
        """Enqueue a job for its first delivery."""
        job.status = JobStatus.ENQUEUED
        await self._queue.put((job, 0))
        logger.info("Enqueued transcription job %s", job.transcript_id)

    def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._consume(), name=f"transcription-consumer-{n}")
            for n in range(self.consumers)
        ]

    async def stop(self) -> None:
        tasks = [*self._workers, *self._redeliveries]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._workers = []
        self._redeliveries.clear()

    async def join(self) -> None:
        """Wait until every job is acknowledged or dead-lettered."""
        await self._queue.join()

    async def _redeliver(self, job: TranscriptionJob, attempt: int, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            job.status = JobStatus.ENQUEUED
            await self._queue.put((job, attempt))
        finally:
            self._queue.task_done()

    async def _consume(self) -> None:
        while True:
            job, attempt = await self._queue.get()
            try:
                await self.handler(job)
            except Exception as exc:
                if attempt < self.max_retries:
                    delay = self.retry_delay * (2**attempt)
                    logger.warning(
                        "Job %s failed (attempt %d/%d), redelivering in %.1fs: %s",
                        job.transcript_id,
                        attempt + 1,
                        self.max_retries + 1,
                        delay,
                        exc,
                    )
                    task = asyncio.create_task(self._redeliver(job, attempt + 1, delay))
                    self._redeliveries.add(task)
                    task.add_done_callback(self._redeliveries.discard)
                    # _redeliver acknowledges this delivery once the retry is queued.
                    continue
                logger.error(
                    "Job %s failed after %d attempts, moving to dead letters: %s",
                    job.transcript_id,
                    attempt + 1,
                    exc,
                )
                self.dead_letters.append(job)
            else:
                logger.debug("Acknowledged job %s", job.transcript_id)
            self._queue.task_done()
