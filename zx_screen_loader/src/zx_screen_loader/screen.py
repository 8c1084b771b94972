"""SCREEN$ memory layout helpers."""

# Reference: ZX Spectrum display file (SCREEN$)
# Usage                 | Offset         | Notes
# ----------------------|----------------|-------------------------------------------------------
# Bitmap                | 0000h–17FFh    | 256×192 dots, 1 bit per dot, 3 thirds × 8 char rows × 8 lines
# Attributes            | 1800h–1AFFh    | 32×24 = 768 bytes; one FBPPPIII byte per 8×8 cell
#
# Bitmap address bits (y = Y7..Y0, x = X7..X0):
#   0 1 0 Y7 Y6 Y2 Y1 Y0 | Y5 Y4 Y3 X7 X6 X5 X4 X3
# i.e. the third of the screen, then the pixel line inside the character
# row, then the character row inside the third, then the column.
#
# Attribute byte:
#   bit 7 FLASH | bit 6 BRIGHT | bits 5-3 PAPER | bits 2-0 INK

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from PIL import Image

from .palette import BRIGHT_OFFSET, ZX_COLORS

SCREEN_WIDTH = 256
SCREEN_HEIGHT = 192
CELL_SIZE = 8
COLUMNS = SCREEN_WIDTH // CELL_SIZE
ROWS = SCREEN_HEIGHT // CELL_SIZE
BITMAP_SIZE = SCREEN_WIDTH * SCREEN_HEIGHT // 8
ATTRIBUTE_SIZE = COLUMNS * ROWS
SCREEN_SIZE = BITMAP_SIZE + ATTRIBUTE_SIZE

FLASH_BIT = 0x80
BRIGHT_BIT = 0x40
# PAPER 7 (white), INK 0 (black): the attribute left behind by CLS.
DEFAULT_ATTRIBUTE = 0x38
FLASH_PERIOD = 32


class MalformedScreenError(ValueError):
    """Raised when a buffer cannot be used as SCREEN$ data."""


@dataclass(frozen=True)
class Attribute:
    ink: int
    paper: int
    bright: bool = False
    flash: bool = False


def bitmap_address(x: int, y: int) -> Tuple[int, int]:
    """Return ``(byte_offset, bit_index)`` of pixel ``(x, y)`` in the bitmap.

    ``bit_index`` 7 is the leftmost pixel of the 8-pixel group.
    """
    if not (0 <= x < SCREEN_WIDTH and 0 <= y < SCREEN_HEIGHT):
        raise ValueError(f"Pixel out of range: ({x}, {y})")
    offset = ((y & 0xC0) << 5) | ((y & 0x07) << 8) | ((y & 0x38) << 2) | (x >> 3)
    return offset, 7 - (x & 0x07)


def attribute_address(x: int, y: int) -> int:
    """Return the absolute offset of the attribute byte covering pixel ``(x, y)``."""
    if not (0 <= x < SCREEN_WIDTH and 0 <= y < SCREEN_HEIGHT):
        raise ValueError(f"Pixel out of range: ({x}, {y})")
    return BITMAP_SIZE + (y >> 3) * COLUMNS + (x >> 3)


def cell_attribute_address(column: int, row: int) -> int:
    return BITMAP_SIZE + row * COLUMNS + column


def pack_attribute(ink: int, paper: int, bright: bool = False, flash: bool = False) -> int:
    if not (0 <= ink <= 7 and 0 <= paper <= 7):
        raise ValueError(f"INK/PAPER must be 0-7, got ink={ink} paper={paper}")
    return (FLASH_BIT if flash else 0) | (BRIGHT_BIT if bright else 0) | (paper << 3) | ink


def unpack_attribute(value: int) -> Attribute:
    return Attribute(
        ink=value & 0x07,
        paper=(value >> 3) & 0x07,
        bright=bool(value & BRIGHT_BIT),
        flash=bool(value & FLASH_BIT),
    )


def clear_screen(memory: bytearray) -> None:
    """Emulate CLS: blank bitmap, black ink on white paper everywhere."""
    memory[:BITMAP_SIZE] = bytes(BITMAP_SIZE)
    memory[BITMAP_SIZE:SCREEN_SIZE] = bytes([DEFAULT_ATTRIBUTE]) * ATTRIBUTE_SIZE


def blank_screen() -> bytearray:
    memory = bytearray(SCREEN_SIZE)
    clear_screen(memory)
    return memory


def validate_screen(data: bytes) -> bytes:
    """Return exactly one SCREEN$ worth of bytes from ``data``.

    Anything after the first 6912 bytes is ignored; shorter data is rejected.
    """
    if len(data) < SCREEN_SIZE:
        raise MalformedScreenError(
            f"SCREEN$ data must be at least {SCREEN_SIZE} bytes, got {len(data)}"
        )
    return bytes(data[:SCREEN_SIZE])


def flash_swapped(frame_count: int) -> bool:
    """True during the half of the flash period where INK and PAPER trade places."""
    return frame_count % FLASH_PERIOD < FLASH_PERIOD // 2


def decode_pixel_indices(data: bytes, frame_count: int | None = None) -> List[int]:
    """Decode SCREEN$ bytes to one palette index (0-15) per pixel, row-major.

    With ``frame_count`` given, cells carrying the FLASH bit have INK and PAPER
    swapped for the first 16 of every 32 frames. Without it the static colors
    are returned.
    """
    screen = validate_screen(data)
    swap = frame_count is not None and flash_swapped(frame_count)
    result: List[int] = [0] * (SCREEN_WIDTH * SCREEN_HEIGHT)

    for y in range(SCREEN_HEIGHT):
        row_base = ((y & 0xC0) << 5) | ((y & 0x07) << 8) | ((y & 0x38) << 2)
        attr_base = BITMAP_SIZE + (y >> 3) * COLUMNS
        out_base = y * SCREEN_WIDTH
        for col in range(COLUMNS):
            byte = screen[row_base | col]
            attr = screen[attr_base + col]
            ink = attr & 0x07
            paper = (attr >> 3) & 0x07
            if swap and attr & FLASH_BIT:
                ink, paper = paper, ink
            if attr & BRIGHT_BIT:
                ink += BRIGHT_OFFSET
                paper += BRIGHT_OFFSET
            x0 = out_base + (col << 3)
            for bit in range(8):
                result[x0 + bit] = ink if (byte >> (7 - bit)) & 1 else paper

    return result


def screen_to_image(data: bytes, frame_count: int | None = None) -> Image.Image:
    """Render SCREEN$ bytes as a 256x192 RGB image."""
    indices = decode_pixel_indices(data, frame_count)
    image = Image.new("RGB", (SCREEN_WIDTH, SCREEN_HEIGHT))
    image.putdata([ZX_COLORS[idx] for idx in indices])
    return image
