"""Queued push fan-out with bounded concurrency.

Webhook handling only enqueues jobs; a fixed pool of worker tasks drains the
queue, each send bounded by a timeout. Jobs are tracked until evicted from a
bounded history so tests and operators can see what happened to a fan-out.
Subscriptions rejected permanently (404/410) are reported but kept.
"""

import asyncio
from collections import OrderedDict
from dataclasses import dataclass, field
from time import perf_counter
from uuid import uuid4

from woomanager.common.config import settings
from woomanager.common.logging import logger, store_id_ctx
from woomanager.common.metrics import push_jobs_total, push_queue_depth, push_send_seconds
from woomanager.services.notifications.sender import PushDeliveryError, WebPushSender


@dataclass
class PushJob:
    store_id: int
    subscription: dict
    payload: dict
    job_id: str = field(default_factory=lambda: str(uuid4()))
    status: str = "queued"
    status_code: int | None = None
    error: str | None = None
    done: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def finish(self, status: str, status_code: int | None = None, error: str | None = None) -> None:
        self.status = status
        self.status_code = status_code
        self.error = error
        self.done.set()


class PushDispatcher:
    """Owns the push job queue and its worker tasks."""

    def __init__(
        self,
        sender: WebPushSender,
        concurrency: int = 8,
        timeout_seconds: float = 10.0,
        queue_maxsize: int = 1000,
        history_size: int = 500,
        service_name: str | None = None,
    ) -> None:
        self.sender = sender
        self.concurrency = max(1, concurrency)
        self.timeout_seconds = timeout_seconds
        self.queue_maxsize = queue_maxsize
        self.history_size = history_size
        self.service_name = service_name or settings.service_name
        self._queue: asyncio.Queue | None = None
        self._workers: list[asyncio.Task] = []
        self._jobs: OrderedDict[str, PushJob] = OrderedDict()

    @property
    def configured(self) -> bool:
        return self.sender.configured

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def _ensure_queue(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.queue_maxsize)
        return self._queue

    async def start(self) -> None:
        """Spawn worker tasks; a no-op when already running."""

        if self._workers:
            return
        queue = self._ensure_queue()
        self._workers = [
            asyncio.create_task(self._worker(queue), name=f"push-worker-{i}") for i in range(self.concurrency)
        ]
        logger.info("push dispatcher started workers=%s", self.concurrency)

    def _track(self, job: PushJob) -> None:
        self._jobs[job.job_id] = job
        while len(self._jobs) > self.history_size:
            self._jobs.popitem(last=False)

    def enqueue(self, store_id: int, subscriptions: list[dict], payload: dict) -> list[PushJob]:
        """Queue one job per subscription without waiting for delivery."""

        queue = self._ensure_queue()
        jobs = []
        for subscription in subscriptions:
            job = PushJob(store_id=store_id, subscription=subscription, payload=payload)
            try:
                queue.put_nowait(job)
            except asyncio.QueueFull:
                logger.warning("push queue full; job dropped store_id=%s job_id=%s", store_id, job.job_id)
                push_jobs_total.labels(service=self.service_name, outcome="dropped").inc()
                job.finish("failed", error="queue full")
            self._track(job)
            jobs.append(job)
        push_queue_depth.labels(service=self.service_name).set(queue.qsize())
        return jobs

    def get_job(self, job_id: str) -> PushJob | None:
        return self._jobs.get(job_id)

    async def _deliver(self, job: PushJob) -> None:
        token = store_id_ctx.set(str(job.store_id))
        started = perf_counter()
        endpoint = job.subscription.get("endpoint", "")
        try:
            status_code = await asyncio.wait_for(
                self.sender.send(job.subscription, job.payload),
                timeout=self.timeout_seconds,
            )
            job.finish("sent", status_code=status_code)
            push_jobs_total.labels(service=self.service_name, outcome="sent").inc()
        except asyncio.TimeoutError:
            logger.warning("push send timed out job_id=%s endpoint=%s", job.job_id, endpoint)
            job.finish("failed", error="timeout")
            push_jobs_total.labels(service=self.service_name, outcome="timeout").inc()
        except PushDeliveryError as exc:
            if exc.permanent:
                # Not pruned: removal stays a manual decision.
                logger.warning(
                    "push subscription permanently rejected status=%s endpoint=%s",
                    exc.status_code,
                    endpoint,
                )
                outcome = "rejected"
            else:
                logger.error("push send failed status=%s endpoint=%s error=%s", exc.status_code, endpoint, exc)
                outcome = "failed"
            job.finish("failed", status_code=exc.status_code, error=str(exc))
            push_jobs_total.labels(service=self.service_name, outcome=outcome).inc()
        except Exception as exc:
            logger.exception("push send crashed job_id=%s", job.job_id)
            job.finish("failed", error=str(exc))
            push_jobs_total.labels(service=self.service_name, outcome="failed").inc()
        finally:
            push_send_seconds.labels(service=self.service_name).observe(max(0.0, perf_counter() - started))
            store_id_ctx.reset(token)

    async def _worker(self, queue: asyncio.Queue) -> None:
        while True:
            job = await queue.get()
            try:
                await self._deliver(job)
            except asyncio.CancelledError:
                job.finish("cancelled")
                raise
            finally:
                queue.task_done()
                push_queue_depth.labels(service=self.service_name).set(queue.qsize())

    async def join(self) -> None:
        """Wait until every queued job has been processed."""

        await self._ensure_queue().join()

    async def stop(self) -> None:
        """Cancel workers and mark still-queued jobs as cancelled."""

        for task in self._workers:
            task.cancel()
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        if self._queue is not None:
            while not self._queue.empty():
                job = self._queue.get_nowait()
                job.finish("cancelled")
                self._queue.task_done()
                push_jobs_total.labels(service=self.service_name, outcome="cancelled").inc()
        logger.info("push dispatcher stopped")
