"""Command line interface for sprite matting.

Usage:
    python -m sprite_matte.cli matte       <input>... -o <dir>  [--grid 2x4] [--resolution 1K] [--no-chromakey]
    python -m sprite_matte.cli select      <image>... --resolution 1K|2K|4K
    python -m sprite_matte.cli encode      <image>
    python -m sprite_matte.cli decode      <datafile> -o <image>
    python -m sprite_matte.cli grid-guide  --rows 2 --cols 4 --resolution 1K -o guide.png

Subcommands:
  matte      : Remove the chromakey-green backdrop and write optimized PNGs.
               Inputs are image files, or .txt files holding one data URL per
               line (a provider response); several URLs in one file are
               reduced to the best match when --resolution is given.
  select     : Print the image that best matches a target resolution
  encode     : Print an image file as a data URL
  decode     : Write the payload of a data URL file to disk
  grid-guide : Render the reference grid image sent with sprite requests
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sprite_matte.config import Resolution, SpriteGrid
from sprite_matte.data_url import decode_data_url, read_image_path_as_data_url
from sprite_matte.errors import SpriteMatteError

logger = logging.getLogger("sprite_matte")

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}
DATA_URL_EXTENSIONS = {".txt"}


def _setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _gather_inputs(inputs: List[str], extensions: set, recursive: bool = False) -> List[Path]:
    """Collect input paths from file/directory arguments."""
    paths = []
    for inp in inputs:
        p = Path(inp)
        if p.is_file() and p.suffix.lower() in extensions:
            paths.append(p)
        elif p.is_dir():
            iterator = p.rglob("*") if recursive else p.iterdir()
            paths.extend(sorted(c for c in iterator if c.is_file() and c.suffix.lower() in extensions))
        else:
            logger.warning("Skipping unsupported input: %s", p)
    return paths


def _read_data_urls(path: Path) -> List[str]:
    if path.suffix.lower() in DATA_URL_EXTENSIONS:
        return [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]
    return [read_image_path_as_data_url(path)]


# ---- Subcommand: matte ----

def cmd_matte(args):
    from sprite_matte.output import process_batch
    from sprite_matte.selection import choose_best_data_urls

    paths = _gather_inputs(args.inputs, IMAGE_EXTENSIONS | DATA_URL_EXTENSIONS, args.recursive)
    if not paths:
        logger.error("No inputs found in %s", args.inputs)
        return 1

    grid = args.grid
    output_dir = Path(args.output)
    failed = 0
    written = 0

    for path in paths:
        try:
            data_urls = _read_data_urls(path)
            if args.resolution and len(data_urls) > 1:
                data_urls = choose_best_data_urls(data_urls, args.resolution)
            result = process_batch(
                data_urls,
                output_dir,
                stem=path.stem,
                apply_chromakey=not args.no_chromakey,
                sprite_grid=grid,
                allow_partial=args.allow_partial,
                max_workers=args.workers,
            )
        except (SpriteMatteError, OSError, UnicodeDecodeError) as exc:
            logger.error("Failed to process %s: %s", path.name, exc)
            failed += 1
            continue
        written += len(result.paths)
        failed += len(result.failures)

    logger.info("Wrote %d image(s) → %s (%d failed)", written, output_dir, failed)
    return 1 if failed else 0


# ---- Subcommand: select ----

def cmd_select(args):
    from sprite_matte.selection import choose_best_image

    paths = _gather_inputs(args.inputs, IMAGE_EXTENSIONS, args.recursive)
    if not paths:
        logger.error("No images found in %s", args.inputs)
        return 1

    payloads = [p.read_bytes() for p in paths]
    chosen = choose_best_image(payloads, args.resolution)[0]
    print(paths[payloads.index(chosen)])
    return 0


# ---- Subcommand: encode / decode ----

def cmd_encode(args):
    try:
        print(read_image_path_as_data_url(Path(args.input)))
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 1
    return 0


def cmd_decode(args):
    text = Path(args.input).read_text(encoding="utf-8").strip()
    try:
        data = decode_data_url(text)
    except SpriteMatteError as exc:
        logger.error("Invalid data URL in %s: %s", args.input, exc)
        return 1
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    logger.info("Decoded %d bytes → %s", len(data), output)
    return 0


# ---- Subcommand: grid-guide ----

def cmd_grid_guide(args):
    from sprite_matte.grid import choose_aspect_ratio, render_grid_guide
    from sprite_matte.output import atomic_write_bytes
    from sprite_matte.png import encode_png_optimized

    guide = render_grid_guide(args.rows, args.cols, args.resolution)
    try:
        path = atomic_write_bytes(args.output, encode_png_optimized(guide))
    except SpriteMatteError as exc:
        logger.error("Failed to write grid guide: %s", exc)
        return 1
    logger.info(
        "Grid guide %dx%d (%s, aspect %s) → %s",
        args.rows, args.cols, args.resolution, choose_aspect_ratio(args.cols, args.rows), path,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sprite-matte",
        description="Chromakey background removal and candidate selection for generated sprites.",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)
    resolutions = [r.value for r in Resolution]

    # -- matte --
    p_matte = sub.add_parser("matte", help="Remove green backdrop and write PNGs")
    p_matte.add_argument("inputs", nargs="+", help="Image files, data URL .txt files, or directories")
    p_matte.add_argument("-o", "--output", required=True, help="Output directory")
    p_matte.add_argument("--grid", default=None, type=SpriteGrid.parse,
                         help="Sprite grid as ROWSxCOLS; each cell is seeded separately")
    p_matte.add_argument("--resolution", default=None, choices=resolutions,
                         help="Keep only the best candidate per input for this resolution")
    p_matte.add_argument("--no-chromakey", action="store_true",
                         help="Only re-encode, keep the background")
    p_matte.add_argument("--allow-partial", action="store_true",
                         help="Write the images that succeeded when others in a batch fail")
    p_matte.add_argument("--workers", type=int, default=1,
                         help="Images processed concurrently per batch")
    p_matte.add_argument("--recursive", "-r", action="store_true")
    p_matte.set_defaults(func=cmd_matte)

    # -- select --
    p_select = sub.add_parser("select", help="Print the best candidate for a resolution")
    p_select.add_argument("inputs", nargs="+", help="Candidate image files or directories")
    p_select.add_argument("--resolution", required=True, choices=resolutions)
    p_select.add_argument("--recursive", "-r", action="store_true")
    p_select.set_defaults(func=cmd_select)

    # -- encode --
    p_encode = sub.add_parser("encode", help="Print an image as a data URL")
    p_encode.add_argument("input", help="Image file")
    p_encode.set_defaults(func=cmd_encode)

    # -- decode --
    p_decode = sub.add_parser("decode", help="Write a data URL payload to a file")
    p_decode.add_argument("input", help="Text file holding a data URL")
    p_decode.add_argument("-o", "--output", required=True, help="Output image path")
    p_decode.set_defaults(func=cmd_decode)

    # -- grid-guide --
    p_guide = sub.add_parser("grid-guide", help="Render a reference sprite grid")
    p_guide.add_argument("--rows", type=int, required=True)
    p_guide.add_argument("--cols", type=int, required=True)
    p_guide.add_argument("--resolution", default=Resolution.ONE_K.value, choices=resolutions)
    p_guide.add_argument("-o", "--output", required=True, help="Output PNG path")
    p_guide.set_defaults(func=cmd_grid_guide)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.debug)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
