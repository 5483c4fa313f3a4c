"""Turn generated data URLs into optimized PNG files.

Each image is decoded, optionally matted, and encoded fully in memory; bytes
only reach disk once every stage has succeeded, and then through a temporary
sibling file that is renamed into place.
"""

import logging
import os
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from sprite_matte.chromakey import apply_chromakey_transparency
from sprite_matte.config import GridLike
from sprite_matte.data_url import decode_data_url
from sprite_matte.errors import SpriteMatteError
from sprite_matte.png import decode_rgba, encode_png_optimized

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def process_image_bytes(
    data: bytes,
    apply_chromakey: bool = False,
    sprite_grid: Optional[GridLike] = None,
) -> bytes:
    """Decode raster bytes, optionally remove the green backdrop, re-encode as PNG."""
    image = decode_rgba(data)
    if apply_chromakey:
        apply_chromakey_transparency(image, sprite_grid)
    return encode_png_optimized(image)


def process_data_url(
    data_url: str,
    apply_chromakey: bool = False,
    sprite_grid: Optional[GridLike] = None,
) -> bytes:
    return process_image_bytes(decode_data_url(data_url), apply_chromakey, sprite_grid)


def atomic_write_bytes(destination: PathLike, data: bytes) -> Path:
    """Write ``data`` so that ``destination`` is either absent or complete."""
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
    )
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, destination)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return destination


def write_output_image(
    data_url: str,
    destination: PathLike,
    apply_chromakey: bool = False,
    sprite_grid: Optional[GridLike] = None,
) -> Path:
    png_bytes = process_data_url(data_url, apply_chromakey, sprite_grid)
    path = atomic_write_bytes(destination, png_bytes)
    logger.debug("Wrote %s (%d bytes)", path, len(png_bytes))
    return path


@dataclass
class BatchResult:
    """Outcome of a multi-image run."""
    paths: List[Path] = field(default_factory=list)
    failures: List[Tuple[int, SpriteMatteError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _process_one(data_url: str, apply_chromakey: bool, sprite_grid: Optional[GridLike]):
    try:
        return process_data_url(data_url, apply_chromakey, sprite_grid), None
    except SpriteMatteError as exc:
        return None, exc


def process_batch(
    data_urls: Sequence[str],
    output_dir: PathLike,
    stem: str,
    apply_chromakey: bool = False,
    sprite_grid: Optional[GridLike] = None,
    allow_partial: bool = False,
    max_workers: int = 1,
) -> BatchResult:
    """Process several images and write them as ``{stem}_{index}.png``.

    By default the first failure (in input order) is raised and nothing is
    written.  With ``allow_partial`` the images that succeeded are written
    and the failures are returned alongside their input index.

    Every image owns its buffer, so ``max_workers > 1`` runs them on a
    thread pool without any shared state.
    """
    output_dir = Path(output_dir)
    args = [(url, apply_chromakey, sprite_grid) for url in data_urls]

    if max_workers > 1 and len(args) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(lambda a: _process_one(*a), args))
    else:
        outcomes = [_process_one(*a) for a in args]

    result = BatchResult()
    for index, (_, error) in enumerate(outcomes):
        if error is None:
            continue
        if not allow_partial:
            logger.error("Image %d of %d failed, aborting batch: %s", index, len(outcomes), error)
            raise error
        logger.warning("Image %d of %d failed: %s", index, len(outcomes), error)
        result.failures.append((index, error))

    for index, (png_bytes, _) in enumerate(outcomes):
        if png_bytes is None:
            continue
        path = atomic_write_bytes(output_dir / f"{stem}_{index}.png", png_bytes)
        result.paths.append(path)

    logger.info(
        "Batch %s: wrote %d image(s), %d failed", stem, len(result.paths), len(result.failures)
    )
    return result


def export_image_to_path(source: PathLike, destination: PathLike) -> Path:
    """Copy a processed image, giving the destination a ``.png`` suffix if it has none."""
    source = Path(source)
    if not source.exists():
        raise FileNotFoundError(f"source image path not found: {source}")

    destination = Path(destination)
    if not destination.suffix:
        destination = destination.with_suffix(".png")
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, destination)
    return destination
