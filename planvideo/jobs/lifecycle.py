"""Supervises one render job from submission to a terminal state.

The manager owns the job handle and the authoritative `JobView`. A single
asyncio task drives the status polling for the live job; manual checks and
timer ticks share one in-flight status request. Every submission, cancel and
reset bumps a generation counter, and any response that belongs to an older
generation is dropped instead of applied.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import replace
import logging
import random

from opentelemetry import trace

from planvideo.core.config import Settings
from planvideo.core.errors import (
    JobStateError,
    PollExhaustedError,
    RemoteError,
    RenderJobError,
    ValidationError,
)
from planvideo.jobs import payloads
from planvideo.schemas.render import FormInput, JobSnapshot, JobState, JobView, RemoteState, RenderRequest
from planvideo.services.render_client import RenderServiceClient

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

StateListener = Callable[[JobView], None]


class JobLifecycleManager:
    def __init__(
        self,
        client: RenderServiceClient,
        *,
        poll_interval_seconds: float = 2.0,
        max_backoff_seconds: float = 15.0,
        retry_budget: int = 3,
        preview: bool = False,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval_seconds
        self._max_backoff = max(max_backoff_seconds, poll_interval_seconds)
        self._retry_budget = retry_budget
        self._preview = preview
        self._view = JobView()
        self._listeners: list[StateListener] = []
        self._generation = 0
        self._consecutive_failures = 0
        self._submit_task: asyncio.Task | None = None
        self._poll_task: asyncio.Task | None = None
        self._inflight_poll: asyncio.Task | None = None
        self._settled = asyncio.Event()
        self._settled.set()

    @classmethod
    def from_settings(cls, settings: Settings, client: RenderServiceClient | None = None) -> "JobLifecycleManager":
        if client is None:
            if not settings.render_api_key.get_secret_value():
                logger.warning("PV_RENDER_API_KEY is not set; render service calls will be unauthenticated")
            client = RenderServiceClient(
                base_url=settings.render_api_base_url,
                api_key=settings.render_api_key.get_secret_value(),
                timeout_seconds=settings.request_timeout_seconds,
            )
        return cls(
            client,
            poll_interval_seconds=settings.poll_interval_seconds,
            max_backoff_seconds=settings.max_backoff_seconds,
            retry_budget=settings.poll_retry_budget,
            preview=settings.preview_renders,
        )

    @property
    def view(self) -> JobView:
        return self._view

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def on_state_change(self, listener: StateListener) -> Callable[[], None]:
        """Register `listener` for every view change; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def submit_form(self, form: FormInput) -> JobView:
        self._ensure_can_submit()
        try:
            request = payloads.build(form, preview=self._preview)
        except ValidationError as exc:
            self._release_job()
            logger.warning("render form rejected: %s", exc)
            self._transition(JobView(state=JobState.FAILED, error_message=str(exc), error_kind=type(exc).__name__))
            return self._view
        return await self.submit(request)

    async def submit(self, request: RenderRequest) -> JobView:
        self._ensure_can_submit()
        self._release_job()
        generation = self._generation
        self._transition(JobView(state=JobState.SUBMITTING))

        with tracer.start_as_current_span("render_job.submit") as span:
            task = asyncio.ensure_future(self._client.submit(request))
            self._submit_task = task
            try:
                await asyncio.wait({task})
            except asyncio.CancelledError:
                if generation == self._generation:
                    self.cancel()
                raise
            if self._submit_task is task:
                self._submit_task = None

            if task.cancelled():
                return self._view
            exc = task.exception()
            if generation != self._generation:
                if exc is None:
                    logger.info("discarding render job id=%s submitted before cancellation", task.result().job_id)
                return self._view
            if exc is not None:
                self._fail_submission(exc)
                return self._view

            handle = task.result()
            span.set_attribute("render_job.id", handle.job_id)

        state = JobState.RENDERING if handle.state is RemoteState.RENDERING else JobState.QUEUED
        logger.info("render job submitted id=%s initial_state=%s", handle.job_id, state.value)
        self._transition(JobView(state=state, job_id=handle.job_id))
        self._poll_task = asyncio.create_task(
            self._poll_loop(generation),
            name=f"render-job-poll-{handle.job_id}",
        )
        return self._view

    async def check_now(self) -> JobView:
        if not self._has_live_job(self._generation):
            logger.debug("manual status check ignored in state=%s", self._view.state.value)
            return self._view
        await self._poll(self._generation)
        return self._view

    def cancel(self) -> JobView:
        if not self._view.state.is_active:
            return self._view
        logger.info("cancelling render job id=%s state=%s", self._view.job_id, self._view.state.value)
        self._release_job()
        self._transition(JobView())
        return self._view

    def reset(self) -> JobView:
        if self._view.state is JobState.IDLE:
            return self._view
        if self._view.state.is_active:
            return self.cancel()
        self._release_job()
        self._transition(JobView())
        return self._view

    async def wait_until_settled(self) -> JobView:
        """Block until the job leaves the active states (terminal, or idle after cancel)."""
        while self._view.state.is_active:
            await self._settled.wait()
        return self._view

    async def aclose(self) -> None:
        tasks = [task for task in (self._submit_task, self._poll_task, self._inflight_poll) if task is not None]
        self._release_job()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._listeners.clear()

    async def __aenter__(self) -> "JobLifecycleManager":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _ensure_can_submit(self) -> None:
        if self._view.state.is_active:
            raise JobStateError(f"render job is already {self._view.state.value}; cancel it before submitting")

    def _fail_submission(self, exc: BaseException) -> None:
        if isinstance(exc, RenderJobError):
            logger.error("render job submission failed: %s", exc)
        else:
            logger.error("render job submission failed unexpectedly", exc_info=exc)
        self._transition(JobView(state=JobState.FAILED, error_message=str(exc), error_kind=type(exc).__name__))

    def _has_live_job(self, generation: int) -> bool:
        return (
            generation == self._generation
            and self._view.job_id is not None
            and self._view.state in (JobState.QUEUED, JobState.RENDERING)
        )

    async def _poll_loop(self, generation: int) -> None:
        delay = self._poll_interval
        while self._has_live_job(generation):
            await asyncio.sleep(delay)
            if not self._has_live_job(generation):
                break
            await self._poll(generation)
            delay = self._next_delay(delay)

    def _next_delay(self, delay: float) -> float:
        if self._consecutive_failures == 0:
            return self._poll_interval
        jitter = random.uniform(0.0, 0.5)
        return min(delay * (2.0 + jitter), self._max_backoff)

    async def _poll(self, generation: int) -> None:
        # Timer ticks and manual checks share a single in-flight request.
        task = self._inflight_poll
        if task is None or task.done():
            task = asyncio.create_task(self._fetch_and_apply(generation, self._view.job_id))
            self._inflight_poll = task
        await asyncio.wait({task})

    async def _fetch_and_apply(self, generation: int, job_id: str) -> None:
        with tracer.start_as_current_span("render_job.poll") as span:
            span.set_attribute("render_job.id", job_id)
            try:
                snapshot = await self._client.fetch_status(job_id)
            except RenderJobError as exc:
                self._handle_poll_failure(generation, job_id, exc)
                return
            except Exception as exc:
                if self._has_live_job(generation):
                    logger.exception("status check crashed for render job id=%s", job_id)
                    self._fail(str(exc), type(exc).__name__)
                return

            if not self._has_live_job(generation):
                logger.debug("discarding late status for superseded render job id=%s", job_id)
                return
            self._consecutive_failures = 0
            self._apply_snapshot(snapshot)

    def _handle_poll_failure(self, generation: int, job_id: str, exc: RenderJobError) -> None:
        if not self._has_live_job(generation):
            logger.debug("discarding late status failure for superseded render job id=%s: %s", job_id, exc)
            return

        if isinstance(exc, RemoteError) and not exc.retryable:
            logger.error("render job id=%s status check failed permanently: %s", job_id, exc)
            self._fail(str(exc), type(exc).__name__)
            return

        self._consecutive_failures += 1
        if self._consecutive_failures > self._retry_budget:
            exhausted = PollExhaustedError(self._consecutive_failures, exc)
            logger.error("render job id=%s: %s", job_id, exhausted)
            self._fail(str(exhausted), type(exhausted).__name__)
            return

        logger.warning(
            "status check failed for render job id=%s (%s/%s): %s",
            job_id,
            self._consecutive_failures,
            self._retry_budget,
            exc,
        )

    def _apply_snapshot(self, snapshot: JobSnapshot) -> None:
        view = self._view
        if snapshot.state is RemoteState.FINISHED and snapshot.output_url:
            self._finish(replace(view, state=JobState.FINISHED, progress=100, output_url=snapshot.output_url))
            return
        if snapshot.state is RemoteState.FAILED or snapshot.error_message:
            self._finish(
                replace(
                    view,
                    state=JobState.FAILED,
                    progress=snapshot.progress,
                    error_message=snapshot.error_message or "render failed",
                    error_kind="RemoteError",
                )
            )
            return

        started = snapshot.progress > 0 or snapshot.state in (RemoteState.RENDERING, RemoteState.FINISHED)
        state = JobState.RENDERING if started or view.state is JobState.RENDERING else JobState.QUEUED
        self._transition(replace(view, state=state, progress=snapshot.progress))

    def _finish(self, view: JobView) -> None:
        self._cancel_task(self._poll_task)
        self._poll_task = None
        self._transition(view)

    def _fail(self, message: str, error_kind: str) -> None:
        self._finish(replace(self._view, state=JobState.FAILED, error_message=message, error_kind=error_kind))

    def _release_job(self) -> None:
        self._generation += 1
        self._consecutive_failures = 0
        for task in (self._submit_task, self._poll_task, self._inflight_poll):
            self._cancel_task(task)
        self._submit_task = None
        self._poll_task = None
        self._inflight_poll = None

    @staticmethod
    def _cancel_task(task: asyncio.Task | None) -> None:
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    def _transition(self, view: JobView) -> None:
        previous = self._view
        if view == previous:
            return
        self._view = view
        if view.state.is_active:
            self._settled.clear()
        else:
            self._settled.set()
        if view.state is not previous.state:
            logger.info(
                "render job id=%s state %s -> %s progress=%s",
                view.job_id or previous.job_id,
                previous.state.value,
                view.state.value,
                view.progress,
            )
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                logger.exception("render job state listener failed")
