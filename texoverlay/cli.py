"""Command-line entry point: open the editor, or render headlessly."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from texoverlay.config import load_config
from texoverlay.errors import TexOverlayError
from texoverlay.host import MemoryHost
from texoverlay.pipeline import RenderPipeline
from texoverlay.session import DocumentSession
from texoverlay.toolchain import DEFAULT_PROCESS, LatexToolchain, ProcessDescriptor


def render_file(
    path: Path, font_px: float, output: Path | None = None, toolchain=None, base_process: ProcessDescriptor = DEFAULT_PROCESS
) -> list[tuple[int, int, Path]]:
    """Render every fragment in `path`; return (start, end, image) triples."""
    config = load_config()
    if output is not None:
        config = replace(config, scratch_parent=str(output))
    host = MemoryHost(path.read_text(encoding="utf-8", errors="replace"), font_px=font_px)
    pipeline = RenderPipeline(toolchain or LatexToolchain(config), config, base_process)
    session = DocumentSession(host, pipeline)
    session.preview()
    return [(a.start, a.end, a.image_path) for a in host.annotations]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="texoverlay",
        description="Show inline $...$ math as rendered images over the source text.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Text file to open.")
    parser.add_argument(
        "--render",
        action="store_true",
        help="Render all fragments without opening the editor and print one 'start end image' line each.",
    )
    parser.add_argument("--font-px", type=float, default=16.0, help="Font height in pixels for --render (default: 16).")
    parser.add_argument("--output", default=None, help="Parent directory for rendered images with --render.")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    path = Path(args.path).expanduser() if args.path is not None else None
    if path is not None:
        if not path.exists():
            print(f"Path does not exist: {path}", file=sys.stderr)
            return 2
        if path.is_dir():
            print(f"Path is a directory: {path}", file=sys.stderr)
            return 2

    if args.render:
        if path is None:
            print("--render needs a file to render", file=sys.stderr)
            return 2
        try:
            rendered = render_file(path, args.font_px, Path(args.output).expanduser() if args.output else None)
        except TexOverlayError as exc:
            print(f"Render failed: {exc}", file=sys.stderr)
            return 1
        for start, end, image in rendered:
            print(f"{start} {end} {image}")
        return 0

    # Qt is only needed for the interactive editor.
    from texoverlay.app import run_editor

    return run_editor(path, load_config())


if __name__ == "__main__":
    raise SystemExit(main())
