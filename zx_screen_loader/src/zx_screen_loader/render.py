"""Per-frame snapshot handed to the renderer, plus a Pillow reference renderer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from PIL import Image, ImageDraw

from .loader import BorderMode, LoadSession, border_mode
from .palette import CYAN, RED, ZX_COLORS, Color
from .screen import SCREEN_HEIGHT, SCREEN_WIDTH, decode_pixel_indices
from .settings import Effects

ASPECT_RATIO = 4.0 / 3.0
SCREEN_FRACTION = 0.82
PREVIEW_SCREEN_FRACTION = 0.78

PILOT_COLORS: Tuple[Color, Color] = (ZX_COLORS[RED], ZX_COLORS[CYAN])
LOADING_COLORS: Tuple[Color, Color] = ((255, 255, 0), (0, 0, 255))


@dataclass(frozen=True)
class FrameSnapshot:
    """Everything a renderer needs for one frame. Never read back by the core."""

    memory: bytes
    pixels: List[int]
    frame_count: int
    stage: int
    border_color: int
    border_mode: BorderMode
    stripe_width: float
    pilot_offset: float
    preview: bool = False
    effects: Effects = field(default_factory=Effects)


def prepare_frame(session: LoadSession, effects: Effects | None = None) -> FrameSnapshot:
    """Freeze ``session`` into a snapshot with FLASH already resolved."""
    return FrameSnapshot(
        memory=session.memory,
        pixels=decode_pixel_indices(session.memory, session.frame_count),
        frame_count=session.frame_count,
        stage=session.stage,
        border_color=session.border_color,
        border_mode=border_mode(session.stage),
        stripe_width=session.stripe_width,
        pilot_offset=session.pilot_offset,
        preview=session.preview,
        effects=effects or Effects(),
    )


def screen_rect(size: Tuple[int, int], preview: bool = False) -> Tuple[int, int, int, int]:
    """Return ``(left, top, width, height)`` of the 4:3 paper area inside ``size``."""
    width, height = size
    fraction = PREVIEW_SCREEN_FRACTION if preview else SCREEN_FRACTION
    if width / height > ASPECT_RATIO:
        screen_height = height * fraction
        screen_width = screen_height * ASPECT_RATIO
    else:
        screen_width = width * fraction
        screen_height = screen_width / ASPECT_RATIO
    left = int(round((width - screen_width) / 2))
    top = int(round((height - screen_height) / 2))
    return left, top, max(1, int(round(screen_width))), max(1, int(round(screen_height)))


def _stripe_color(v: float, snapshot: FrameSnapshot) -> Color | None:
    stripe = snapshot.stripe_width
    if stripe <= 0.0:
        return None
    if snapshot.border_mode is BorderMode.PILOT_TONE:
        position = (v - snapshot.pilot_offset) % (stripe * 2.0)
        return PILOT_COLORS[0] if position < stripe else PILOT_COLORS[1]
    if snapshot.border_mode is BorderMode.STRIPES:
        position = (v + snapshot.pilot_offset) % (stripe * 2.0)
        return LOADING_COLORS[0] if position < stripe else LOADING_COLORS[1]
    return None


def render_frame(snapshot: FrameSnapshot, size: Tuple[int, int] = (320, 240)) -> Image.Image:
    """Draw border and paper area as a flat RGB image.

    Stripe positions are measured bottom-up in units of the frame height.
    """
    width, height = size
    frame = Image.new("RGB", size, ZX_COLORS[snapshot.border_color])
    draw = ImageDraw.Draw(frame)
    for row in range(height):
        v = (height - row - 0.5) / height
        color = _stripe_color(v, snapshot)
        if color is not None:
            draw.line([(0, row), (width - 1, row)], fill=color)

    screen = Image.new("RGB", (SCREEN_WIDTH, SCREEN_HEIGHT))
    screen.putdata([ZX_COLORS[idx] for idx in snapshot.pixels])
    left, top, screen_width, screen_height = screen_rect(size, snapshot.preview)
    frame.paste(screen.resize((screen_width, screen_height), Image.NEAREST), (left, top))
    return frame
