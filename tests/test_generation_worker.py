from __future__ import annotations

from pathlib import Path

import pytest
from fakes import FakeStore, make_template

from photo_template.errors import EngineError
from photo_template.image_engine import generation_engine
from photo_template.image_engine.generation_engine import GenerationEngine, GenerationWorker

pyvips = pytest.importorskip("pyvips")


def _solid(path: Path, width: int, height: int, rgb: list[int]) -> Path:
    (pyvips.Image.black(width, height) + rgb).cast("uchar").write_to_file(str(path))
    return path


def _collect(worker: GenerationWorker) -> dict[str, list]:
    events: dict[str, list] = {"progress": [], "succeeded": [], "failed": []}
    worker.progress.connect(lambda job_id, pct: events["progress"].append((job_id, pct)))
    worker.succeeded.connect(lambda job_id, path: events["succeeded"].append((job_id, path)))
    worker.failed.connect(lambda job_id, msg: events["failed"].append((job_id, msg)))
    return events


@pytest.fixture()
def template(tmp_path: Path):
    img = _solid(tmp_path / "template.png", 120, 260, [255, 255, 255])
    return make_template(1, template_img=str(img))


def test_worker_reports_progress_and_archive(template, tmp_path: Path) -> None:
    photos = tmp_path / "photos"
    photos.mkdir()
    for i in range(4):
        _solid(photos / f"{i + 1:03d}.png", 40, 60, [i * 50, 100, 100])

    worker = GenerationWorker("job-1", template, photos, tmp_path / "out")
    events = _collect(worker)
    worker.run()

    assert events["progress"] == [("job-1", 25), ("job-1", 50), ("job-1", 75), ("job-1", 100)]
    assert events["failed"] == []
    ((job_id, archive),) = events["succeeded"]
    assert job_id == "job-1"
    assert Path(archive).name == "generated_images.zip"
    assert Path(archive).is_file()


def test_worker_empty_folder_fails(template, tmp_path: Path) -> None:
    photos = tmp_path / "photos"
    photos.mkdir()
    worker = GenerationWorker("job-2", template, photos, tmp_path / "out")
    events = _collect(worker)
    worker.run()

    assert events["succeeded"] == []
    assert events["failed"] == [("job-2", "No image files found in the selected folder")]


def test_worker_cancel_before_run(template, tmp_path: Path) -> None:
    photos = tmp_path / "photos"
    photos.mkdir()
    _solid(photos / "a.png", 10, 10, [0, 0, 0])
    worker = GenerationWorker("job-3", template, photos, tmp_path / "out")
    events = _collect(worker)
    worker.cancel()
    worker.run()

    assert events["failed"] == [("job-3", "Generation canceled")]


def test_engine_start_unknown_template_raises(tmp_path: Path) -> None:
    engine = GenerationEngine(FakeStore(), tmp_path / "out")
    with pytest.raises(EngineError):
        engine.start("job-4", 404, str(tmp_path))
    assert not engine.is_running("job-4")


def test_worker_unexpected_error_still_fails_the_job(template, tmp_path: Path, monkeypatch) -> None:
    def _explode(**_kwargs):
        raise RuntimeError("codec exploded")

    monkeypatch.setattr(generation_engine, "generate_images", _explode)
    worker = GenerationWorker("job-5", template, tmp_path, tmp_path / "out")
    events = _collect(worker)
    worker.run()

    assert events["succeeded"] == []
    assert events["failed"] == [("job-5", "Unexpected error: codec exploded")]
