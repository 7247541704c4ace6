#!/usr/bin/env python3
"""
Page overlay editor — CLI entry point.

Loads the first page of a PDF as an editable scene, applies text and
position edits, and writes the flattened result as a one-page PDF.
Can also serve the HTTP parse endpoint.

Usage::

    python editpage.py input.pdf
    python editpage.py input.pdf out.pdf --set-text text-0003="Total: 42"
    python editpage.py input.pdf --move text-0001=120,48.5 --scale 2
    python editpage.py input.pdf --list-elements
    python editpage.py page.json out.pdf   # payload from /api/parse-pdf
    python editpage.py --serve --port 5000

Verbosity levels::

    -v 0   Quiet — warnings and errors only.
    -v 1   Normal — phase summaries (default).
    -v 2   Debug — per-run and per-element detail.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Tuple

from core.exceptions import DecodeError, OverlayError
from overlay.pipeline import OverlayConfig
from overlay.session import EditingSession

logger = logging.getLogger("overlay")

# Mapping from --verbose integer to logging level
_VERBOSITY_MAP = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


# ------------------------------------------------------------------
# Argument parsing
# ------------------------------------------------------------------


def _parse_text_edit(value: str) -> Tuple[str, str]:
    """
    Parse ``ID=TEXT``.

    Raises:
        argparse.ArgumentTypeError: On malformed input.
    """
    element_id, sep, text = value.partition("=")
    if not sep or not element_id:
        raise argparse.ArgumentTypeError(
            f"Invalid text edit '{value}'. Use ID=TEXT (e.g. text-0003=Hello)."
        )
    return element_id.strip(), text


def _parse_move(value: str) -> Tuple[str, float, float]:
    """
    Parse ``ID=X,Y`` with pixel coordinates.

    Raises:
        argparse.ArgumentTypeError: On malformed input.
    """
    element_id, sep, coords = value.partition("=")
    parts = coords.split(",")
    try:
        if not sep or not element_id or len(parts) != 2:
            raise ValueError
        x, y = float(parts[0]), float(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid move '{value}'. Use ID=X,Y (e.g. text-0001=120,48.5)."
        )
    return element_id.strip(), x, y


def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser with all editor options."""
    p = argparse.ArgumentParser(
        description="Edit the text of a PDF page and export it flattened.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python editpage.py invoice.pdf --list-elements\n"
            '  python editpage.py invoice.pdf out.pdf --set-text text-0003="Total: 42"\n'
            "  python editpage.py invoice.pdf --move text-0001=120,48.5 -v 2\n"
            "  python editpage.py --serve --port 5000\n"
        ),
    )

    # -- Positional --------------------------------------------------------
    p.add_argument(
        "input",
        nargs="?",
        default=None,
        help="Input PDF, or a JSON payload from the parse endpoint",
    )
    p.add_argument(
        "output",
        nargs="?",
        default=None,
        help="Output PDF (default: <input>-edited.pdf)",
    )

    # -- Rendering ---------------------------------------------------------
    render = p.add_argument_group("rendering")
    render.add_argument(
        "--scale",
        type=float,
        default=1.5,
        metavar="FLOAT",
        help="Pixels per PDF point (default: 1.5)",
    )
    render.add_argument(
        "--patch-fill",
        default="white",
        metavar="COLOR",
        help="Colour of the patches hiding original text (default: white)",
    )
    render.add_argument(
        "--sample-fill",
        action="store_true",
        help="Sample each patch colour from the page background",
    )
    render.add_argument(
        "--font-family",
        default="Helvetica",
        metavar="NAME",
        help="Typeface for editable text (default: Helvetica)",
    )
    render.add_argument(
        "--keep-color",
        action="store_true",
        help="Keep each run's original text colour instead of black",
    )

    # -- Edits -------------------------------------------------------------
    edits = p.add_argument_group("edits")
    edits.add_argument(
        "--set-text",
        type=_parse_text_edit,
        action="append",
        default=[],
        metavar="ID=TEXT",
        help="Replace the text of an element (repeatable)",
    )
    edits.add_argument(
        "--move",
        type=_parse_move,
        action="append",
        default=[],
        metavar="ID=X,Y",
        help="Move an element to pixel position X,Y (repeatable)",
    )
    edits.add_argument(
        "--list-elements",
        action="store_true",
        help="List the scene's elements, then exit",
    )

    # -- Server ------------------------------------------------------------
    server = p.add_argument_group("server")
    server.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP parse endpoint instead of editing a file",
    )
    server.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    server.add_argument("--port", type=int, default=5000, help="Port (default: 5000)")

    # -- Output control ----------------------------------------------------
    out = p.add_argument_group("output control")
    out.add_argument(
        "-v",
        "--verbose",
        type=int,
        choices=[0, 1, 2],
        default=1,
        help="Verbosity: 0=quiet, 1=normal (default), 2=debug",
    )
    out.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable tqdm progress bars",
    )

    return p


# ------------------------------------------------------------------
# Logging setup
# ------------------------------------------------------------------


def _configure_logging(verbosity: int) -> None:
    """
    Set up the ``overlay`` and ``core`` loggers.

    At verbosity 0 (WARNING), uses a minimal format. At DEBUG, includes
    the module name and time for traceability.
    """
    level = _VERBOSITY_MAP.get(verbosity, logging.INFO)

    if level <= logging.DEBUG:
        fmt = "%(asctime)s %(name)s %(levelname)s: %(message)s"
        datefmt = "%H:%M:%S"
    elif level <= logging.INFO:
        fmt = "%(message)s"
        datefmt = None
    else:
        fmt = "%(levelname)s: %(message)s"
        datefmt = None

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    for name in ("overlay", "core"):
        root = logging.getLogger(name)
        root.setLevel(level)
        root.handlers.clear()
        root.addHandler(handler)

    # Suppress noisy third-party loggers regardless of verbosity
    for name in ("PIL", "werkzeug"):
        logging.getLogger(name).setLevel(logging.WARNING)


# ------------------------------------------------------------------
# Sub-commands
# ------------------------------------------------------------------


def _cmd_serve(config: OverlayConfig, host: str, port: int) -> None:
    """Run the Flask parse endpoint."""
    from overlay.api import create_app

    app = create_app(config)
    logger.info("Serving parse endpoint on http://%s:%d", host, port)
    app.run(host=host, port=port)


def _list_elements(session: EditingSession) -> None:
    """Print the scene's elements in paint order."""
    print(f"  {'ID':<12} {'KIND':<15} {'X':>9} {'Y':>9} {'SIZE':>8}  TEXT")
    for element in session.scene.elements:
        text = getattr(element, "text", "")
        size = getattr(element, "font_size", None)
        size_col = f"{size:.1f}" if size is not None else "-"
        print(
            f"  {element.element_id:<12} {element.kind:<15} "
            f"{element.x:9.1f} {element.y:9.1f} {size_col:>8}  {text[:50]}"
        )


async def _run_edit(
    session: EditingSession,
    input_path: Path,
    output_path: Path,
    text_edits: List[Tuple[str, str]],
    moves: List[Tuple[str, float, float]],
    list_only: bool,
) -> int:
    if input_path.suffix.lower() == ".json":
        try:
            payload = json.loads(input_path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise DecodeError(f"Invalid payload JSON in {input_path}: {e}") from e
        await session.upload_payload(payload)
    else:
        await session.upload(input_path.read_bytes())
    if session.last_stats is not None:
        logger.info("\n%s", session.last_stats.summary())

    if list_only:
        _list_elements(session)
        return 0

    for element_id, text in text_edits:
        session.mutate(element_id, {"text": text})
        logger.info("  Text %s → %r", element_id, text)
    for element_id, x, y in moves:
        session.mutate(element_id, {"x": x, "y": y})
        logger.info("  Moved %s → (%.1f, %.1f)", element_id, x, y)

    data = await session.export()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    logger.info("Wrote %s (%.1f KB)", output_path, len(data) / 1024)
    return 0


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------


def main():
    """Parse arguments, configure logging, and run the editor."""
    parser = _build_parser()
    args = parser.parse_args()

    # Logging must be configured before any logger calls
    _configure_logging(args.verbose)

    if args.scale <= 0:
        parser.error(f"--scale must be positive, got {args.scale}")

    config = OverlayConfig(
        render_scale=args.scale,
        patch_fill=args.patch_fill,
        sample_patch_fill=args.sample_fill,
        font_family=args.font_family,
        preserve_text_color=args.keep_color,
        disable_tqdm=args.no_progress or args.verbose == 0,
    )

    # --serve exits when the server stops
    if args.serve:
        _cmd_serve(config, args.host, args.port)
        return

    # Validate input file
    if args.input is None:
        parser.error("Input PDF is required unless using --serve.")
    input_path = Path(args.input)
    if not input_path.exists():
        parser.error(f"Input file not found: {input_path}")
    if input_path.suffix.lower() not in (".pdf", ".json"):
        parser.error(f"Input must be a PDF file or a parse payload (.json): {input_path}")

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = input_path.with_name(f"{input_path.stem}-edited.pdf")

    # Log run header
    logger.info("Page Overlay Editor")
    logger.info("  Input:  %s", input_path)
    if not args.list_elements:
        logger.info("  Output: %s", output_path)
    logger.info("  Scale:  %.2fx", config.render_scale)
    if args.set_text or args.move:
        logger.info("  Edits:  %d text, %d moves", len(args.set_text), len(args.move))

    session = EditingSession(config)
    try:
        code = asyncio.run(
            _run_edit(
                session,
                input_path,
                output_path,
                args.set_text,
                args.move,
                args.list_elements,
            )
        )
    except OverlayError as e:
        logger.error("%s", e)
        sys.exit(1)
    finally:
        session.close()

    sys.exit(code)


if __name__ == "__main__":
    main()
