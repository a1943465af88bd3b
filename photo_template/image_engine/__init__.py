"""Image engine - batch generation of filled-in templates.

Usage:
    from photo_template.image_engine import GenerationEngine

    engine = GenerationEngine(store, output_dir)
    engine.progress.connect(on_progress)
    engine.start(job_id, template_id, "/path/to/photos")
"""

from .generation_engine import GenerationEngine, GenerationWorker

__all__ = ["GenerationEngine", "GenerationWorker"]
