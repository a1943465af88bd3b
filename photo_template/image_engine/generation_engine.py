"""Background generation engine.

Each job runs on its own QThread. Worker signals are relayed through the
engine QObject, which lives on the GUI thread, so every subscriber is called
there and never from the worker.
"""

from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import QObject, QThread, Signal, Slot

from photo_template.errors import EngineError, StoreError
from photo_template.logger import get_logger
from photo_template.store.template_store import Template, TemplateStore

from .compositor import generate_images

_logger = get_logger("generation")


class GenerationWorker(QThread):
    """Worker thread compositing one folder with one template."""

    progress = Signal(str, int)  # job_id, percent
    succeeded = Signal(str, str)  # job_id, archive_path
    failed = Signal(str, str)  # job_id, message

    def __init__(
        self,
        job_id: str,
        template: Template,
        folder: Path,
        output_dir: Path,
        quality: int = 90,
    ):
        super().__init__()
        self.job_id = job_id
        self.template = template
        self.folder = folder
        self.output_dir = output_dir
        self.quality = quality
        self._cancel_requested = False

    def run(self) -> None:
        def _progress(done: int, total: int) -> None:
            self.progress.emit(self.job_id, int(done * 100 / total) if total else 0)

        try:
            archive = generate_images(
                template_img=self.template.template_img,
                crop_photo=self.template.crop_photo,
                crop_number=self.template.crop_number,
                source_folder=self.folder,
                output_dir=self.output_dir,
                quality=self.quality,
                on_progress=_progress,
                is_canceled=lambda: self._cancel_requested,
            )
        except InterruptedError:
            _logger.info("job %s canceled", self.job_id)
            self.failed.emit(self.job_id, "Generation canceled")
            return
        except (EngineError, ImportError, OSError) as ex:
            _logger.error("job %s failed: %s", self.job_id, ex)
            self.failed.emit(self.job_id, str(ex))
            return
        except Exception as ex:
            _logger.exception("job %s crashed", self.job_id)
            self.failed.emit(self.job_id, f"Unexpected error: {ex}")
            return

        self.succeeded.emit(self.job_id, str(archive))

    def cancel(self) -> None:
        self._cancel_requested = True


class GenerationEngine(QObject):
    """Starts generation jobs and publishes their progress per job id."""

    progress = Signal(str, int)
    succeeded = Signal(str, str)
    failed = Signal(str, str)

    def __init__(
        self,
        store: TemplateStore,
        output_dir: str | Path,
        quality: int = 90,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._store = store
        self._output_dir = Path(output_dir)
        self._quality = int(quality)
        self._workers: dict[str, GenerationWorker] = {}

    def start(self, job_id: str, template_id: int, folder_path: str) -> None:
        """Start a job in the background.

        Raises:
            EngineError: if the template cannot be loaded.
        """
        try:
            template = self._store.get(template_id)
        except StoreError as e:
            raise EngineError(f"Error loading template: {e}") from e

        worker = GenerationWorker(
            job_id,
            template,
            Path(folder_path),
            self._output_dir / job_id,
            quality=self._quality,
        )
        worker.progress.connect(self._on_worker_progress)
        worker.succeeded.connect(self._on_worker_succeeded)
        worker.failed.connect(self._on_worker_failed)
        worker.finished.connect(self._on_worker_finished)

        self._workers[job_id] = worker
        _logger.info("job %s started: template=%s folder=%s", job_id, template_id, folder_path)
        worker.start()

    def cancel(self, job_id: str) -> None:
        worker = self._workers.get(job_id)
        if worker is not None and worker.isRunning():
            _logger.info("job %s cancel requested", job_id)
            worker.cancel()

    def shutdown(self, timeout_ms: int = 5000) -> None:
        for worker in list(self._workers.values()):
            if worker.isRunning():
                worker.cancel()
                worker.wait(timeout_ms)
        self._workers.clear()

    def is_running(self, job_id: str) -> bool:
        worker = self._workers.get(job_id)
        return worker is not None and worker.isRunning()

    # ---- worker relays (GUI thread) ----
    @Slot(str, int)
    def _on_worker_progress(self, job_id: str, percent: int) -> None:
        self.progress.emit(job_id, percent)

    @Slot(str, str)
    def _on_worker_succeeded(self, job_id: str, archive_path: str) -> None:
        _logger.info("job %s finished: %s", job_id, archive_path)
        self.succeeded.emit(job_id, archive_path)

    @Slot(str, str)
    def _on_worker_failed(self, job_id: str, message: str) -> None:
        self.failed.emit(job_id, message)

    @Slot()
    def _on_worker_finished(self) -> None:
        worker = self.sender()
        for job_id, w in list(self._workers.items()):
            if w is worker:
                del self._workers[job_id]
                w.deleteLater()
