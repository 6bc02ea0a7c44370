#!/usr/bin/env python3
"""
Mask Editor - paint selections into native-resolution masks and apply them
Command line entry point
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Tuple

from tqdm import tqdm

from mask_editor.core.config import EditorConfig
from mask_editor.core.errors import DecodeFailure
from mask_editor.core.service import MaskEditorService
from mask_editor.core.session import DrawingSession
from mask_editor.utils.codec import to_data_url
from mask_editor.utils.io import ImageLoader
from mask_editor.utils.logging import setup_logging


logger = logging.getLogger(__name__)


def parse_viewport(value: str) -> Tuple[int, int]:
    try:
        w, h = value.lower().split('x')
        return int(w), int(h)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Viewport must look like 800x600, got {value!r}")


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Mask Editor - paint selections and apply masks as alpha"
    )

    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("./output"),
        help="Directory for saved masks and composites"
    )

    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=Path("./cache"),
        help="Directory for remembering the last loaded image"
    )

    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Do not remember the last loaded image"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    apply_parser = subparsers.add_parser(
        "apply",
        help="Use a mask as the alpha channel of one or more images"
    )
    apply_parser.add_argument("images", type=Path, nargs="+", help="Source images")
    apply_parser.add_argument("--mask", type=Path, required=True, help="Mask image (white = keep)")

    paint_parser = subparsers.add_parser(
        "paint",
        help="Replay recorded strokes over an image and save the native mask"
    )
    paint_parser.add_argument("--image", type=Path, required=True, help="Source image")
    paint_parser.add_argument(
        "--strokes",
        type=Path,
        required=True,
        help="JSON file: {\"strokes\": [{\"brush_size\": 30, \"points\": [[x, y], ...]}]}"
    )
    paint_parser.add_argument(
        "--viewport",
        type=parse_viewport,
        default=(800, 600),
        help="Display viewport the strokes were recorded in (default: 800x600)"
    )
    paint_parser.add_argument(
        "--brush-size",
        type=int,
        default=None,
        help="Default brush diameter for strokes that do not set one"
    )

    return parser.parse_args(argv)


def run_apply(args, config: EditorConfig) -> int:
    service = MaskEditorService(config.output_dir)
    loader = ImageLoader()

    mask_bytes = args.mask.read_bytes()
    config.output_dir.mkdir(parents=True, exist_ok=True)

    failures = 0
    for path in tqdm(args.images, desc="Applying mask"):
        try:
            asset = loader.load_asset(path)
            result = service.compositor.composite(asset, mask_bytes)
        except (FileNotFoundError, DecodeFailure) as e:
            logger.error(f"Skipping {path.name}: {e}")
            failures += 1
            continue

        output_path = config.output_dir / f"{path.stem}_masked.png"
        output_path.write_bytes(result.to_png())
        logger.info(f"Composite written: {output_path}")

    return 1 if failures else 0


def load_strokes(path: Path) -> List[dict]:
    with open(path) as f:
        data = json.load(f)
    strokes = data.get('strokes', []) if isinstance(data, dict) else data
    if not isinstance(strokes, list):
        raise ValueError(f"No stroke list in {path}")
    return strokes


def run_paint(args, config: EditorConfig) -> int:
    service = MaskEditorService(config.output_dir)
    session = DrawingSession(args.viewport, config=config)

    suffix = args.image.suffix.lower().lstrip('.') or 'png'
    if not session.load_image(to_data_url(args.image.read_bytes(), suffix), args.image.name):
        logger.error(session.status.text)
        return 1

    for stroke in load_strokes(args.strokes):
        points = stroke.get('points') or []
        if not points:
            continue
        session.set_brush_size(stroke.get('brush_size') or config.brush_size)
        session.pointer_down(*points[0])
        for point in points[1:]:
            session.pointer_move(*point)
        session.pointer_up()

    result = session.confirm(service.save_mask)
    if result is None or result.is_error:
        logger.error(session.status.text)
        return 1

    logger.info(session.status.text)
    return 0


def main(argv=None):
    args = parse_arguments(argv)
    config = EditorConfig.from_args(args)

    config.output_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(config.log_level, config.output_dir / "mask_editor.log")

    logger.info(f"Mask Editor - {args.command}")
    logger.info(f"Output directory: {config.output_dir}")

    if args.command == "apply":
        return run_apply(args, config)
    return run_paint(args, config)


if __name__ == "__main__":
    sys.exit(main())
