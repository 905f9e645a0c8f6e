"""Command template for the rasterize + trim stage."""

from __future__ import annotations

from texoverlay.config import RESOLUTION_PLACEHOLDER

# Rasterize the PostScript page at %D, crop to the ink, then drop the
# intermediate page. %b and %O are expanded later by the toolchain.
CONVERTER_TEMPLATE = "convert -density %D -trim -antialias %b.ps -quality 100 %O && rm %b.ps"


def build_converter_command(resolution: int, template: str = CONVERTER_TEMPLATE) -> str:
    return template.replace(RESOLUTION_PLACEHOLDER, str(int(resolution)), 1)
