"""ZX Spectrum palette and nearest color lookup."""

from __future__ import annotations

import math
from typing import Sequence, Tuple

Color = Tuple[int, int, int]

# Indices 0-7 are the normal intensity colors, 8-15 the same hues with BRIGHT set.
# Black has no bright variant, so index 8 repeats (0, 0, 0).
ZX_COLORS: Tuple[Color, ...] = (
    (0x00, 0x00, 0x00),
    (0x00, 0x00, 0xD7),
    (0xD7, 0x00, 0x00),
    (0xD7, 0x00, 0xD7),
    (0x00, 0xD7, 0x00),
    (0x00, 0xD7, 0xD7),
    (0xD7, 0xD7, 0x00),
    (0xD7, 0xD7, 0xD7),
    (0x00, 0x00, 0x00),
    (0x00, 0x00, 0xFF),
    (0xFF, 0x00, 0x00),
    (0xFF, 0x00, 0xFF),
    (0x00, 0xFF, 0x00),
    (0x00, 0xFF, 0xFF),
    (0xFF, 0xFF, 0x00),
    (0xFF, 0xFF, 0xFF),
)

# Palette index reference:
#  0: Black     8: Black (bright)
#  1: Blue      9: Bright Blue
#  2: Red      10: Bright Red
#  3: Magenta  11: Bright Magenta
#  4: Green    12: Bright Green
#  5: Cyan     13: Bright Cyan
#  6: Yellow   14: Bright Yellow
#  7: White    15: Bright White

BRIGHT_OFFSET = 8

BLACK = 0
BLUE = 1
RED = 2
MAGENTA = 3
GREEN = 4
CYAN = 5
YELLOW = 6
WHITE = 7


def color_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Euclidean distance between two RGB triples."""
    dr = a[0] - b[0]
    dg = a[1] - b[1]
    db = a[2] - b[2]
    return math.sqrt(dr * dr + dg * dg + db * db)


def nearest_palette_index(rgb: Sequence[float], palette: Sequence[Color] = ZX_COLORS) -> int:
    """
    Return the palette entry closest to ``rgb``.
    Entries are scanned in index order and only a strictly smaller distance
    replaces the current best, so ties resolve to the lowest index.
    """
    r, g, b = rgb[0], rgb[1], rgb[2]
    best_idx = 0
    best_dist = math.inf
    # Squared distance picks the same entry as color_distance.
    for i, color in enumerate(palette):
        dr = r - color[0]
        dg = g - color[1]
        db = b - color[2]
        dist = dr * dr + dg * dg + db * db
        if dist < best_dist:
            best_idx = i
            best_dist = dist
    return best_idx


def is_bright(index: int) -> bool:
    return index >= BRIGHT_OFFSET


def base_color(index: int) -> int:
    """Strip the BRIGHT bank from a palette index (0-15 -> 0-7)."""
    return index % BRIGHT_OFFSET


def format_palette_text(palette: Sequence[Color] = ZX_COLORS) -> str:
    entries = [f"{idx}: ({r},{g},{b})" for idx, (r, g, b) in enumerate(palette)]
    return ", ".join(entries)
