"""Pick a raster resolution so rendered glyphs match the host's text size."""

from __future__ import annotations

import logging
import math

from texoverlay.config import BASE_DPI, GLYPH_PT_REF
from texoverlay.errors import HostMetricsError
from texoverlay.host import Host

LOGGER = logging.getLogger(__name__)


def estimate_resolution(host: Host) -> int:
    """Return the density at which a 10pt snippet comes out `fontPx` tall.

    The snippet is typeset at GLYPH_PT_REF points, i.e. GLYPH_PT_REF/BASE_DPI
    inches, which is BASE_DPI * (GLYPH_PT_REF / BASE_DPI) pixels at BASE_DPI.
    Scaling BASE_DPI by how much taller the host font is than that gives the
    target density. Keep the two-stage ratio: it rounds differently in the
    last bit than the simplified form, and the result is ceil'd.
    """
    font_px = host.font_pixel_height()
    if isinstance(font_px, bool) or not isinstance(font_px, (int, float)):
        raise HostMetricsError(f"Host font height is not a number: {font_px!r}")
    if not math.isfinite(font_px) or font_px <= 0:
        raise HostMetricsError(f"Host font height must be positive, got {font_px!r}")

    reference_px = BASE_DPI * (GLYPH_PT_REF / BASE_DPI)
    resolution = math.ceil(BASE_DPI * (font_px / reference_px))
    LOGGER.debug("font height %spx -> resolution %d", font_px, resolution)
    return resolution
