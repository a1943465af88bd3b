"""Batch compositing backend using pyvips.

Pure functions, no Qt dependencies. A template image receives each source
photo fitted into its Photo region and, when a Number region is set, a
``N° <n>`` label taken from the source file name.
"""

from __future__ import annotations

import contextlib
import re
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

from photo_template.errors import EngineError, ParseError
from photo_template.logger import get_logger
from photo_template.ops.crop_geometry import Rectangle, deserialize

_logger = get_logger("compositor")

try:
    import pyvips  # type: ignore
except ImportError:
    pyvips = None  # type: ignore
    _logger.warning("pyvips is not available; generation will raise ImportError when used")

VALID_EXTS = {".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tiff"}
ARCHIVE_NAME = "generated_images.zip"
_NUMBER_RE = re.compile(r"([0-9]+)")
_LABEL_ALPHA = 150

ProgressFn = Callable[[int, int], None]
CancelFn = Callable[[], bool]


def _get_pyvips_module() -> Any:
    """Return the pyvips module or raise ImportError if unavailable."""
    if pyvips is None:
        _logger.error("pyvips requested but not available")
        raise ImportError("pyvips is not available")
    return pyvips


def find_image_files(folder: str | Path) -> list[Path]:
    """Supported images directly inside ``folder``, sorted by path."""
    root = Path(folder)
    if not root.is_dir():
        raise EngineError(f"Source folder does not exist: {folder}")
    return sorted(p for p in root.iterdir() if p.is_file() and p.suffix.lower() in VALID_EXTS)


def extract_number(stem: str, fallback: int) -> str:
    m = _NUMBER_RE.search(stem)
    return m.group(1) if m else str(fallback)


def parse_regions(crop_photo: str, crop_number: str) -> tuple[Rectangle, Rectangle | None]:
    """Photo region is mandatory; an empty Number field means no label."""
    try:
        photo = deserialize(crop_photo)
    except ParseError as e:
        raise EngineError(f"Error parsing crop coordinates: {e}") from e
    if not photo.defined:
        raise EngineError("The photo crop region is empty")

    number: Rectangle | None = None
    if crop_number.strip():
        try:
            number = deserialize(crop_number)
        except ParseError as e:
            raise EngineError(f"Error parsing crop_number coordinates: {e}") from e
    return photo, number


def _as_rgb(image: Any) -> Any:
    """8-bit sRGB without alpha; transparent areas become white."""
    vips = _get_pyvips_module()
    if image.interpretation not in (vips.Interpretation.SRGB, vips.Interpretation.B_W):
        image = image.colourspace(vips.Interpretation.SRGB)
    if image.hasalpha():
        image = image.flatten(background=[255] * (image.bands - 1))
    if image.bands == 1:
        image = image.bandjoin([image, image])
    if image.format != "uchar":
        image = image.cast("uchar")
    return image


def load_template(path: str | Path) -> Any:
    vips = _get_pyvips_module()
    try:
        return _as_rgb(vips.Image.new_from_file(str(path)))
    except vips.Error as e:
        raise EngineError(f"Error loading image {path}: {e}") from e


def fit_source(path: Path, box: Rectangle) -> Any:
    """Load ``path`` scaled to fit inside ``box`` with its aspect ratio kept."""
    vips = _get_pyvips_module()
    w = max(1, int(box.width))
    h = max(1, int(box.height))
    return _as_rgb(vips.Image.thumbnail(str(path), w, height=h))


def composite(template: Any, source: Any, box: Rectangle) -> Any:
    """Place ``source`` centred inside ``box`` on top of ``template``."""
    off_x = max(0, (int(box.width) - source.width) // 2)
    off_y = max(0, (int(box.height) - source.height) // 2)
    return template.insert(source, int(box.x) + off_x, int(box.y) + off_y)


def draw_number_label(image: Any, box: Rectangle, number: str) -> Any:
    """Render ``N° <number>`` centred in ``box``.

    libvips builds without text support get a translucent badge instead.
    """
    vips = _get_pyvips_module()
    text = f"N° {number}"
    bw = max(1, int(box.width))
    bh = max(1, int(box.height))
    try:
        mask = vips.Image.text(text, width=bw, height=bh, align="centre")
    except vips.Error as e:
        _logger.warning("text rendering unavailable, drawing badge: %s", e)
        return _draw_badge(image, box)

    left = int(box.x) + max(0, (bw - mask.width) // 2)
    top = int(box.y) + max(0, (bh - mask.height) // 2)
    width = min(mask.width, image.width - left)
    height = min(mask.height, image.height - top)
    if left < 0 or top < 0 or width <= 0 or height <= 0:
        return image

    area = image.crop(left, top, width, height)
    mask = mask.crop(0, 0, width, height)
    labelled = mask.ifthenelse([0, 0, 0], area, blend=True)
    return image.insert(labelled, left, top)


def _draw_badge(image: Any, box: Rectangle) -> Any:
    left = max(0, int(box.x))
    top = max(0, int(box.y))
    width = min(int(box.width), image.width - left)
    height = min(int(box.height), image.height - top)
    if width <= 0 or height <= 0:
        return image
    area = image.crop(left, top, width, height)
    shaded = (area * (1 - _LABEL_ALPHA / 255)).cast("uchar")
    return image.insert(shaded, left, top)


def create_archive(images: list[Path], output_dir: Path) -> Path:
    archive_path = output_dir / ARCHIVE_NAME
    try:
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for image_path in images:
                zf.write(image_path, arcname=image_path.name)
    except OSError as e:
        raise EngineError(f"Error creating archive file: {e}") from e
    _logger.info("archive created: %s (%d images)", archive_path, len(images))
    return archive_path


def generate_images(
    *,
    template_img: str,
    crop_photo: str,
    crop_number: str,
    source_folder: str | Path,
    output_dir: str | Path,
    quality: int = 90,
    on_progress: ProgressFn | None = None,
    is_canceled: CancelFn | None = None,
) -> Path:
    """Composite every image in ``source_folder`` and zip the results.

    Returns:
        Path to the archive.

    Raises:
        EngineError: on missing inputs, unreadable images or write failures.
        InterruptedError: when ``is_canceled`` reports true between images.
    """
    vips = _get_pyvips_module()

    # Keep memory flat over long batches
    with contextlib.suppress(Exception):
        vips.cache_set_max(0)
        vips.cache_set_max_mem(0)
        vips.cache_set_max_files(0)

    photo_box, number_box = parse_regions(crop_photo, crop_number)
    template = load_template(template_img)

    images = find_image_files(source_folder)
    if not images:
        raise EngineError("No image files found in the selected folder")

    out_dir = Path(output_dir)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise EngineError(f"Error creating output directory: {e}") from e

    total = len(images)
    processed: list[Path] = []
    for index, image_path in enumerate(images):
        if is_canceled is not None and is_canceled():
            raise InterruptedError("Generation canceled")

        try:
            source = fit_source(image_path, photo_box)
            result = composite(template, source, photo_box)
            if number_box is not None and number_box.defined:
                result = draw_number_label(result, number_box, extract_number(image_path.stem, index + 1))
            output_path = out_dir / f"{image_path.stem}_processed.jpg"
            result.write_to_file(str(output_path), Q=int(quality))
        except vips.Error as e:
            _logger.error("processing failed for %s: %s", image_path, e)
            raise EngineError(f"Error processing {image_path.name}: {e}") from e

        processed.append(output_path)
        _logger.debug("processed %d/%d: %s", index + 1, total, output_path.name)
        if on_progress is not None:
            on_progress(index + 1, total)

    return create_archive(processed, out_dir)
