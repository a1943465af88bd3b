"""Generation job lifecycle.

Idle -> Requested -> Generating -> {Succeeded, Failed}, back to Idle when the
generate screen closes or a new job starts. The orchestrator owns its
subscription to the engine's signals: ``open()`` connects, ``close()``
disconnects. Every engine event carries a job id; events for any job other
than the current one, or arriving outside Generating, are dropped.
"""

from __future__ import annotations

import contextlib
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

from photo_template.errors import EngineError, InputValidationError, JobInProgressError
from photo_template.logger import get_logger

if TYPE_CHECKING:
    from photo_template.image_engine.generation_engine import GenerationEngine

_logger = get_logger("orchestrator")


class JobStatus(Enum):
    IDLE = "idle"
    REQUESTED = "requested"
    GENERATING = "generating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_IN_FLIGHT = (JobStatus.REQUESTED, JobStatus.GENERATING)


@dataclass(frozen=True)
class GenerationJob:
    job_id: str
    template_id: int | str
    source_folder_path: str
    progress: int = 0
    status: JobStatus = JobStatus.REQUESTED
    archive_path: str | None = None
    error: str | None = None


Listener = Callable[["GenerationOrchestrator"], None]


def clamp_percent(value: float) -> int:
    return int(max(0, min(100, round(float(value)))))


class GenerationOrchestrator:
    def __init__(self, engine: GenerationEngine, *, cancel_on_close: bool = True) -> None:
        self._engine = engine
        self._cancel_on_close = cancel_on_close
        self._job: GenerationJob | None = None
        self._subscribed = False
        self._listeners: list[Listener] = []

    # ---- observation ----
    @property
    def job(self) -> GenerationJob | None:
        return self._job

    @property
    def status(self) -> JobStatus:
        return self._job.status if self._job is not None else JobStatus.IDLE

    @property
    def progress(self) -> int:
        return self._job.progress if self._job is not None else 0

    @property
    def busy(self) -> bool:
        return self.status in _IN_FLIGHT

    @property
    def subscribed(self) -> bool:
        return self._subscribed

    def add_listener(self, fn: Listener) -> None:
        self._listeners.append(fn)

    def remove_listener(self, fn: Listener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(fn)

    def _set_job(self, job: GenerationJob | None) -> None:
        self._job = job
        for fn in list(self._listeners):
            fn(self)

    # ---- subscription ----
    def open(self) -> None:
        """Reset to Idle and arm the progress subscription."""
        self._set_job(None)
        self._subscribe()

    def close(self) -> None:
        """Tear the subscription down and drop the job, whatever its status."""
        self._unsubscribe()
        job = self._job
        if job is not None and job.status in _IN_FLIGHT and self._cancel_on_close:
            try:
                self._engine.cancel(job.job_id)
            except EngineError as e:
                _logger.warning("cancel of job %s failed: %s", job.job_id, e)
        self._set_job(None)

    def _subscribe(self) -> None:
        if self._subscribed:
            return
        self._engine.progress.connect(self._on_progress)
        self._engine.succeeded.connect(self._on_succeeded)
        self._engine.failed.connect(self._on_failed)
        self._subscribed = True

    def _unsubscribe(self) -> None:
        if not self._subscribed:
            return
        for signal, slot in (
            (self._engine.progress, self._on_progress),
            (self._engine.succeeded, self._on_succeeded),
            (self._engine.failed, self._on_failed),
        ):
            with contextlib.suppress(RuntimeError, TypeError):
                signal.disconnect(slot)
        self._subscribed = False

    # ---- commands ----
    def start(self, template_id: int | str | None, folder_path: str | None) -> GenerationJob | None:
        """Start a job for the selected template and source folder.

        Raises:
            InputValidationError: no template selected or empty folder path.
            JobInProgressError: a job is already Requested or Generating.
        """
        if template_id is None or (isinstance(template_id, str) and not template_id.strip()):
            raise InputValidationError("template", "Please select a template")
        if not folder_path or not str(folder_path).strip():
            raise InputValidationError("folder", "Please select a source image folder")
        if self._job is not None and self._job.status in _IN_FLIGHT:
            raise JobInProgressError(self._job.job_id)

        self._subscribe()
        job = GenerationJob(
            job_id=uuid.uuid4().hex[:12],
            template_id=template_id,
            source_folder_path=str(folder_path),
        )
        self._set_job(job)
        _logger.debug("job %s requested", job.job_id)

        # Generating before the engine call so events it emits synchronously are kept.
        self._set_job(replace(job, status=JobStatus.GENERATING))
        try:
            self._engine.start(job.job_id, job.template_id, job.source_folder_path)
        except EngineError as e:
            _logger.error("job %s could not start: %s", job.job_id, e)
            current = self._job if self._job is not None else job
            self._set_job(replace(current, status=JobStatus.FAILED, error=str(e)))
        return self._job

    # ---- engine events ----
    def _current(self, job_id: str) -> GenerationJob | None:
        job = self._job
        if job is None or job.job_id != job_id or job.status is not JobStatus.GENERATING:
            return None
        return job

    def _on_progress(self, job_id: str, percent: float) -> None:
        job = self._current(job_id)
        if job is None:
            _logger.debug("dropping progress %s for job %s", percent, job_id)
            return
        # Not forced monotonic; the engine's order is taken as-is.
        self._set_job(replace(job, progress=clamp_percent(percent)))

    def _on_succeeded(self, job_id: str, archive_path: str) -> None:
        job = self._current(job_id)
        if job is None:
            _logger.debug("dropping success for job %s", job_id)
            return
        self._set_job(replace(job, status=JobStatus.SUCCEEDED, archive_path=str(archive_path)))

    def _on_failed(self, job_id: str, message: str) -> None:
        job = self._current(job_id)
        if job is None:
            _logger.debug("dropping failure for job %s", job_id)
            return
        self._set_job(replace(job, status=JobStatus.FAILED, error=str(message)))
