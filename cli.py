"""Command line mosaic tool.

Usage:
    python cli.py <input> [-o <output>] [--preset small|medium|large|xlarge | --block-size N]
                          [--rect X0 Y0 X1 Y1] [--average-alpha] [--debug]

Without --rect the whole image is pixelated. --rect corners may be given in
any order; a zero-area rectangle also falls back to the whole image.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from core.errors import MosaicError
from core.geometry import Point
from core.io import load_image_rgba, save_image
from core.session import EditSession
from core.state import BLOCK_SIZE_PRESETS, DEFAULT_PRESET, MosaicSettings

logger = logging.getLogger("openmosaic")


def _setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _settings_from_args(args) -> MosaicSettings:
    settings = MosaicSettings(average_alpha=args.average_alpha)
    if args.block_size is not None:
        settings.set_custom_block_size(args.block_size)
    else:
        settings.set_preset(args.preset)
    return settings


def run(args) -> int:
    input_path = Path(args.input)
    if not input_path.is_file():
        logger.error("Input image not found: %s", input_path)
        return 1

    session = EditSession(settings=_settings_from_args(args))
    try:
        session.load_pil(load_image_rgba(str(input_path)), source_name=input_path.name)
    except (OSError, ValueError) as e:
        logger.error("Could not load %s: %s", input_path, e)
        return 1

    if args.rect is not None:
        x0, y0, x1, y1 = args.rect
        session.begin_select(Point(x0, y0))
        session.drag_select(Point(x1, y1))
        session.end_select()

    try:
        rect = session.apply_mosaic()
    except MosaicError as e:
        logger.error("%s", e)
        return 1

    output = Path(args.output) if args.output else input_path.with_name(session.suggested_filename())
    try:
        save_image(str(output), session.export())
    except (OSError, ValueError) as e:
        logger.error("Could not save %s: %s", output, e)
        return 1

    logger.info(
        "Pixelated %dx%d region at (%d, %d) with %dpx blocks → %s",
        rect.width, rect.height, rect.x0, rect.y0, session.settings.block_size, output,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Apply a block mosaic to an image or a rectangle of it",
    )
    parser.add_argument("input", help="Image file to pixelate")
    parser.add_argument("-o", "--output", default=None,
                        help="Output file (default: <name>_mosaicked<ext> next to the input)")
    size = parser.add_mutually_exclusive_group()
    size.add_argument("--preset", default=DEFAULT_PRESET, choices=list(BLOCK_SIZE_PRESETS),
                      help="Block size preset")
    size.add_argument("--block-size", type=int, default=None,
                      help="Custom block size in pixels (clamped to 5-50)")
    parser.add_argument("--rect", type=float, nargs=4, default=None,
                        metavar=("X0", "Y0", "X1", "Y1"),
                        help="Region corners in image pixels")
    parser.add_argument("--average-alpha", action="store_true",
                        help="Average the alpha channel as well as the colors")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.debug)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
