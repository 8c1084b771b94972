"""Tape loading sequence state machine.

Every rendered frame runs the current stage's drawing step against the device
memory and border state, then advances the per-stage progress counter. The
stage table replays a ``LOAD "" SCREEN$`` session: power on, typing the
command, leader tones, the header block and finally the picture streaming in
byte by byte. After the last stage the border keeps flickering until a new
session is started.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Callable, Dict, Tuple

from .acquisition import DEFAULT_FILE_NAME, AcquisitionResult
from .font import COPYRIGHT, print_text
from .palette import BLACK, CYAN, RED, WHITE
from .screen import SCREEN_SIZE, clear_screen

logger = logging.getLogger(__name__)


class Stage(IntEnum):
    POWER_ON = 0
    LOAD_COMMAND = 1
    BORDER_FLASH = 2
    PILOT_TONE = 3
    RANDOM_BORDER = 4
    BYTES_HEADER = 5
    DATA_PILOT_TONE = 6
    IMAGE_LOADING = 7
    END_BORDER_FLASH = 8
    END_PILOT_TONE = 9
    IDLE = 10


STAGE_LENGTHS: Dict[int, int] = {
    Stage.POWER_ON: 100,
    Stage.LOAD_COMMAND: 200,
    Stage.BORDER_FLASH: 50,
    Stage.PILOT_TONE: 120,
    Stage.RANDOM_BORDER: 10,
    Stage.BYTES_HEADER: 100,
    Stage.DATA_PILOT_TONE: 120,
    Stage.IMAGE_LOADING: 700,
    Stage.END_BORDER_FLASH: 50,
    Stage.END_PILOT_TONE: 120,
}

PILOT_STAGES = frozenset({Stage.PILOT_TONE, Stage.DATA_PILOT_TONE, Stage.END_PILOT_TONE})

CAPTION_ROW = 23
COPYRIGHT_CAPTION = f"{COPYRIGHT} 1982 Sinclair Research Ltd"
TAPE_ERROR_CAPTION = "R Tape loading error, 0:1"
BYTES_CAPTION = "Bytes:"

POWER_ON_GARBAGE_FRAMES = 10
POWER_ON_CLEAR_FRAMES = 20
POWER_ON_GARBAGE_BYTE = 0x02
POWER_ON_CLEAR_CHUNK = 700

# (progress threshold, ((column, text, flashing), ...)) typed on the bottom row.
# A flashing "L" is the cursor in L mode, the flashing "C"/"E" are the
# caps lock and extended mode cursors.
LOAD_COMMAND_STEPS: Tuple[Tuple[int, Tuple[Tuple[int, str, bool], ...]], ...] = (
    (0, ((0, "C", True),)),
    (50, ((0, "LOAD ", False), (5, "L", True))),
    (75, ((5, '"', False), (6, "L", True))),
    (100, ((6, '"', False), (7, "L", True))),
    (110, ((7, " ", False), (8, "L", True))),
    (120, ((8, "E", True),)),
    (150, ((8, "SCREEN$", False), (16, "L", True))),
)
LOAD_COMMAND_CLEAR_AFTER = 190

FLASH_PERIOD = 40
BORDER_FLASH_SPLIT = 20
HEADER_FLASH_SPLIT = 15

DEFAULT_STRIPE_WIDTH = 0.05
PILOT_OFFSET_STEP = 0.005
LOADING_OFFSET_STEP = 0.001
BYTES_PER_FRAME = 10


class BorderMode(Enum):
    SOLID = "solid"
    PILOT_TONE = "pilot_tone"
    STRIPES = "stripes"


def stage_length(stage: int) -> int | None:
    """Frame budget of ``stage``; ``None`` for the open-ended idle stage."""
    return STAGE_LENGTHS.get(stage)


def border_mode(stage: int) -> BorderMode:
    if stage in PILOT_STAGES:
        return BorderMode.PILOT_TONE
    if stage in (Stage.RANDOM_BORDER, Stage.IMAGE_LOADING) or stage >= Stage.IDLE:
        return BorderMode.STRIPES
    return BorderMode.SOLID


@dataclass(frozen=True)
class LoadSession:
    stage: int = Stage.POWER_ON
    progress: int = 0
    frame_count: int = 0
    border_color: int = WHITE
    stripe_width: float = DEFAULT_STRIPE_WIDTH
    pilot_offset: float = 0.0
    preview: bool = False
    acquisition: AcquisitionResult = field(default_factory=AcquisitionResult.pending)
    memory: bytes = bytes(SCREEN_SIZE)

    def with_acquisition(self, result: AcquisitionResult) -> "LoadSession":
        return replace(self, acquisition=result)


@dataclass
class _Draft:
    """Mutable working copy of the per-frame state."""

    progress: int
    border_color: int
    stripe_width: float
    pilot_offset: float
    memory: bytearray


def _power_on(draft: _Draft, session: LoadSession, rng: random.Random) -> None:
    if draft.progress < POWER_ON_GARBAGE_FRAMES:
        if not session.preview:
            draft.memory[:] = bytes([POWER_ON_GARBAGE_BYTE]) * SCREEN_SIZE
    elif draft.progress < POWER_ON_CLEAR_FRAMES:
        end = min((draft.progress - POWER_ON_GARBAGE_FRAMES) * POWER_ON_CLEAR_CHUNK, SCREEN_SIZE)
        draft.memory[:end] = bytes(end)
    else:
        clear_screen(draft.memory)
        print_text(draft.memory, COPYRIGHT_CAPTION, 0, CAPTION_ROW, BLACK, WHITE)
    draft.border_color = WHITE


def _load_command(draft: _Draft, session: LoadSession, rng: random.Random) -> None:
    clear_screen(draft.memory)
    for threshold, parts in LOAD_COMMAND_STEPS:
        if draft.progress > threshold:
            for column, text, flash in parts:
                print_text(draft.memory, text, column, CAPTION_ROW, BLACK, WHITE, flash=flash)
    if draft.progress > LOAD_COMMAND_CLEAR_AFTER:
        clear_screen(draft.memory)
    draft.border_color = WHITE


def _border_flash(draft: _Draft, session: LoadSession, rng: random.Random) -> None:
    draft.border_color = RED if draft.progress % FLASH_PERIOD < BORDER_FLASH_SPLIT else CYAN
    draft.stripe_width = 0.0


def _pilot_tone(draft: _Draft, session: LoadSession, rng: random.Random) -> None:
    draft.pilot_offset += PILOT_OFFSET_STEP
    if draft.pilot_offset > 1.0:
        draft.pilot_offset -= 1.0
    draft.stripe_width = DEFAULT_STRIPE_WIDTH


def _random_border(draft: _Draft, session: LoadSession, rng: random.Random) -> None:
    draft.border_color = rng.randrange(8)
    draft.stripe_width = rng.randrange(100) / 1000.0 + 0.01


def _bytes_header(draft: _Draft, session: LoadSession, rng: random.Random) -> None:
    clear_screen(draft.memory)
    if session.acquisition.is_failed:
        print_text(draft.memory, TAPE_ERROR_CAPTION, 0, CAPTION_ROW, BLACK, WHITE)
        # Stay on this stage: the counter is bumped back to 1 by the advance step.
        draft.progress = 0
        draft.stripe_width = 0.0
        draft.border_color = WHITE
        return
    name = session.acquisition.name or DEFAULT_FILE_NAME
    print_text(draft.memory, BYTES_CAPTION, 0, 1, BLACK, WHITE)
    print_text(draft.memory, name, 7, 1, BLACK, WHITE)
    draft.border_color = RED if draft.progress % FLASH_PERIOD < HEADER_FLASH_SPLIT else CYAN


def _image_loading(draft: _Draft, session: LoadSession, rng: random.Random) -> None:
    screen = session.acquisition.screen
    if session.acquisition.is_ready and screen is not None:
        draft.pilot_offset += LOADING_OFFSET_STEP
        end = min(draft.progress * BYTES_PER_FRAME, SCREEN_SIZE)
        draft.memory[:end] = screen[:end]
        if end < SCREEN_SIZE:
            draft.stripe_width = screen[end] / 255.0 * 0.1 + 0.01
        else:
            draft.stripe_width = DEFAULT_STRIPE_WIDTH
    else:
        draft.stripe_width = DEFAULT_STRIPE_WIDTH
    draft.border_color = CYAN


StageHandler = Callable[[_Draft, LoadSession, random.Random], None]

STAGE_HANDLERS: Dict[int, StageHandler] = {
    Stage.POWER_ON: _power_on,
    Stage.LOAD_COMMAND: _load_command,
    Stage.BORDER_FLASH: _border_flash,
    Stage.PILOT_TONE: _pilot_tone,
    Stage.RANDOM_BORDER: _random_border,
    Stage.BYTES_HEADER: _bytes_header,
    Stage.DATA_PILOT_TONE: _pilot_tone,
    Stage.IMAGE_LOADING: _image_loading,
    Stage.END_BORDER_FLASH: _border_flash,
    Stage.END_PILOT_TONE: _pilot_tone,
}


def draw(session: LoadSession, rng: random.Random) -> LoadSession:
    """Apply the current stage's effect on memory and border for this frame."""
    draft = _Draft(
        progress=session.progress,
        border_color=session.border_color,
        stripe_width=session.stripe_width,
        pilot_offset=session.pilot_offset,
        memory=bytearray(session.memory),
    )
    handler = STAGE_HANDLERS.get(session.stage, _random_border)
    handler(draft, session, rng)
    return replace(
        session,
        progress=draft.progress,
        border_color=draft.border_color,
        stripe_width=draft.stripe_width,
        pilot_offset=draft.pilot_offset,
        memory=bytes(draft.memory),
    )


def advance(session: LoadSession) -> LoadSession:
    """Count one frame and move to the next stage once its budget is used up."""
    stage = session.stage
    progress = session.progress + 1
    pilot_offset = session.pilot_offset
    length = stage_length(stage)
    if length is not None and progress >= length:
        logger.debug("stage %d -> %d at frame %d", stage, stage + 1, session.frame_count)
        stage += 1
        progress = 0
        if stage in PILOT_STAGES:
            pilot_offset = 0.0
    return replace(
        session,
        stage=stage,
        progress=progress,
        pilot_offset=pilot_offset,
        frame_count=session.frame_count + 1,
    )


def tick(session: LoadSession, rng: random.Random) -> LoadSession:
    """One full frame: draw, then advance."""
    return advance(draw(session, rng))
