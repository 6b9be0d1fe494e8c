"""Headless export CLI entry point.

Loads a PNG background, restores the text layers autosaved for it and writes
the composited result as a PNG (no window).

Usage:
    python -m headless IMAGE [--autosave FILE] [-o OUTPUT] [--pixel-ratio N]
                             [--font NAME=PATH ...] [-v]

Examples:
    python -m headless photo.png --autosave ~/.image-text-composer/autosave.json
    python -m headless photo.png --autosave autosave.json -o out.png --pixel-ratio 1
    python -m headless photo.png --autosave autosave.json --font "Brand=fonts/brand.ttf"
"""

import sys
import os
import argparse
import logging

# Add editor/src to path so imports work
_src_dir = os.path.dirname(os.path.abspath(__file__))
if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)


def _parse_font_arg(value: str):
    """'Name=path/to/font.ttf' -> (name, path)"""
    name, sep, path = value.partition('=')
    if not sep or not name.strip() or not path.strip():
        raise argparse.ArgumentTypeError(f"Expected NAME=PATH, got {value!r}")
    return name.strip(), path.strip()


def build_parser() -> argparse.ArgumentParser:
    from version import get_version

    parser = argparse.ArgumentParser(
        description='Composite autosaved text layers over an image (headless).',
    )
    parser.add_argument(
        'image',
        help='Path to the PNG background image.',
    )
    parser.add_argument(
        '--autosave',
        default=None,
        help='JSON autosave file to restore layers from.',
    )
    parser.add_argument(
        '-o', '--output',
        default=None,
        help='Output PNG path (default: ./image-with-text.png).',
    )
    parser.add_argument(
        '--pixel-ratio',
        type=float,
        default=None,
        help='Output scale relative to the image size (default: 2).',
    )
    parser.add_argument(
        '--font',
        action='append',
        type=_parse_font_arg,
        default=[],
        metavar='NAME=PATH',
        help='Register a custom font file for a family name (repeatable).',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging.',
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {get_version()}',
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    from utils.logger import report_error, set_error_reporter, setup_logging
    setup_logging(args.verbose)
    set_error_reporter(lambda title, message: print(f"{title}: {message}"))
    logger = logging.getLogger('Headless')

    from PyQt5.QtCore import QCoreApplication
    from constants import EXPORT_FILENAME, EXPORT_PIXEL_RATIO
    from editor_session import EditorSession
    from services.font_loader import FontRegistry, FontSource, FontValidationError
    from services.image_loader import ImageValidationError, load_image
    from services.persistence import ImageIdentity, JsonFileStorage, PersistenceAdapter

    # Timers and worker signals need an application object
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    image_path = os.path.abspath(args.image)
    output_path = os.path.abspath(args.output or EXPORT_FILENAME)
    pixel_ratio = args.pixel_ratio if args.pixel_ratio is not None else EXPORT_PIXEL_RATIO

    try:
        image = load_image(image_path)
    except ImageValidationError as e:
        report_error(str(e), "Invalid image")
        return 1

    persistence = None
    if args.autosave:
        identity = ImageIdentity(image_path, image.width, image.height)
        persistence = PersistenceAdapter(JsonFileStorage(os.path.abspath(args.autosave)), identity)

    fonts = FontRegistry()
    for name, path in args.font:
        try:
            fonts.request(FontSource(name, path))
        except FontValidationError as e:
            report_error(f"font '{name}' skipped: {e}", "Invalid font")
    fonts.wait()
    app.processEvents()
    for name in fonts.failed_fonts:
        report_error(f"font '{name}' could not be loaded", "Font error")

    session = EditorSession(persistence=persistence, fonts=fonts)
    if persistence is not None and not session.restore():
        print("No matching autosave found; exporting the image without text.")

    print(f"Rendering {len(session.layers)} layer(s) over {image.width}x{image.height} image ...")
    try:
        data = session.export_png(image_path, pixel_ratio)
    except (OSError, ValueError) as e:
        logger.exception("Export failed")
        print(f"Error: export failed: {e}")
        return 1

    os.makedirs(os.path.dirname(output_path), exist_ok=True)
    with open(output_path, 'wb') as f:
        f.write(data)
    print(f"Saved {output_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
