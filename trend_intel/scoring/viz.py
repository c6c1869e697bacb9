"""
Rendering hints derived from scores and category.

Viz hints are purely cosmetic: nothing in scoring, validation or ranking
reads them.  Colors must be stable across runs and processes, so the
category hash is a fixed 32-bit rolling hash (never Python's ``hash()``,
which is salted per process).
"""

import colorsys
import math
import re

from trend_intel.models import VizHints
from trend_intel.utils import rolling_hash32

MIN_SIZE = 2
SIZE_RANGE = 10
MIN_INTENSITY = 0.1
BASE_INTENSITY = 0.3
INTENSITY_RANGE = 1.7

HSL_PATTERN = re.compile(r"^hsl\((\d+),\s*(\d+)%,\s*(\d+)%\)$")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def category_color(category: str) -> str:
    """
    Deterministic ``hsl(h, s%, l%)`` color for a category.

    Hue spans the full wheel; saturation stays in [60, 89] and lightness in
    [45, 64] so every category renders as a readable mid-tone.
    """
    h = rolling_hash32(category)
    hue = abs(h) % 360
    saturation = 60 + abs(h >> 8) % 30
    lightness = 45 + abs(h >> 16) % 20
    return f"hsl({hue}, {saturation}%, {lightness}%)"


def derive_viz(total: float, velocity: float, category: str) -> VizHints:
    """
    Compute bubble size, glow intensity and color.

    Size grows super-linearly with the total score (exponent 1.5) so that
    high scorers stand out; intensity tracks velocity linearly.

    >>> derive_viz(100, 100, "AI/ML").size
    12
    >>> derive_viz(0, 0, "AI/ML").intensity
    0.3
    """
    normalized = max(0.0, min(100.0, float(total))) / 100.0
    size = max(MIN_SIZE, _round_half_up(MIN_SIZE + normalized ** 1.5 * SIZE_RANGE))
    intensity = max(MIN_INTENSITY, BASE_INTENSITY + float(velocity) / 100.0 * INTENSITY_RANGE)
    return VizHints(
        size=size,
        intensity=round(intensity, 2),
        color_hint=category_color(category),
    )


def hsl_to_hex(color_hint: str) -> str:
    """
    Convert an ``hsl(h, s%, l%)`` hint to ``#rrggbb`` for consumers that
    only understand hex colors.

    Raises:
        ValueError: If *color_hint* is not in the canonical hsl form.
    """
    match = HSL_PATTERN.match(color_hint.strip())
    if not match:
        raise ValueError(f"Not an hsl color hint: {color_hint!r}")
    hue, sat, light = (int(g) for g in match.groups())
    # colorsys takes h, l, s in [0, 1]
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360.0, light / 100.0, sat / 100.0)
    return "#{:02x}{:02x}{:02x}".format(
        _round_half_up(r * 255), _round_half_up(g * 255), _round_half_up(b * 255)
    )
