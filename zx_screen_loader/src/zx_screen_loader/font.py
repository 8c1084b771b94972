"""ZX Spectrum ROM character set and text output into SCREEN$ memory."""

from __future__ import annotations

from typing import MutableSequence

from .screen import COLUMNS, ROWS, bitmap_address, cell_attribute_address, pack_attribute

FIRST_CHAR = 0x20
COPYRIGHT = "\x7f"

# 8 bytes per glyph for codes 20h-7Fh, as stored in ROM from 3D00h.
# 60h is the pound sign and 7Fh the copyright sign.
ZX_FONT = (
    (0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00),  # ' '
    (0x00, 0x10, 0x10, 0x10, 0x10, 0x00, 0x10, 0x00),  # !
    (0x00, 0x24, 0x24, 0x00, 0x00, 0x00, 0x00, 0x00),  # "
    (0x00, 0x24, 0x7E, 0x24, 0x24, 0x7E, 0x24, 0x00),  # #
    (0x00, 0x08, 0x3E, 0x28, 0x3E, 0x0A, 0x3E, 0x08),  # $
    (0x00, 0x62, 0x64, 0x08, 0x10, 0x26, 0x46, 0x00),  # %
    (0x00, 0x10, 0x28, 0x10, 0x2A, 0x44, 0x3A, 0x00),  # &
    (0x00, 0x08, 0x10, 0x00, 0x00, 0x00, 0x00, 0x00),  # '
    (0x00, 0x04, 0x08, 0x08, 0x08, 0x08, 0x04, 0x00),  # (
    (0x00, 0x20, 0x10, 0x10, 0x10, 0x10, 0x20, 0x00),  # )
    (0x00, 0x00, 0x14, 0x08, 0x3E, 0x08, 0x14, 0x00),  # *
    (0x00, 0x00, 0x08, 0x08, 0x3E, 0x08, 0x08, 0x00),  # +
    (0x00, 0x00, 0x00, 0x00, 0x00, 0x08, 0x08, 0x10),  # ,
    (0x00, 0x00, 0x00, 0x00, 0x3E, 0x00, 0x00, 0x00),  # -
    (0x00, 0x00, 0x00, 0x00, 0x00, 0x18, 0x18, 0x00),  # .
    (0x00, 0x00, 0x02, 0x04, 0x08, 0x10, 0x20, 0x00),  # /
    (0x00, 0x3C, 0x46, 0x4A, 0x52, 0x62, 0x3C, 0x00),  # 0
    (0x00, 0x18, 0x28, 0x08, 0x08, 0x08, 0x3E, 0x00),  # 1
    (0x00, 0x3C, 0x42, 0x02, 0x3C, 0x40, 0x7E, 0x00),  # 2
    (0x00, 0x3C, 0x42, 0x0C, 0x02, 0x42, 0x3C, 0x00),  # 3
    (0x00, 0x08, 0x18, 0x28, 0x48, 0x7E, 0x08, 0x00),  # 4
    (0x00, 0x7E, 0x40, 0x7C, 0x02, 0x42, 0x3C, 0x00),  # 5
    (0x00, 0x3C, 0x40, 0x7C, 0x42, 0x42, 0x3C, 0x00),  # 6
    (0x00, 0x7E, 0x02, 0x04, 0x08, 0x10, 0x10, 0x00),  # 7
    (0x00, 0x3C, 0x42, 0x3C, 0x42, 0x42, 0x3C, 0x00),  # 8
    (0x00, 0x3C, 0x42, 0x42, 0x3E, 0x02, 0x3C, 0x00),  # 9
    (0x00, 0x00, 0x00, 0x10, 0x00, 0x00, 0x10, 0x00),  # :
    (0x00, 0x00, 0x10, 0x00, 0x00, 0x10, 0x10, 0x20),  # ;
    (0x00, 0x00, 0x04, 0x08, 0x10, 0x08, 0x04, 0x00),  # <
    (0x00, 0x00, 0x00, 0x3E, 0x00, 0x3E, 0x00, 0x00),  # =
    (0x00, 0x00, 0x10, 0x08, 0x04, 0x08, 0x10, 0x00),  # >
    (0x00, 0x3C, 0x42, 0x04, 0x08, 0x00, 0x08, 0x00),  # ?
    (0x00, 0x3C, 0x4A, 0x56, 0x5E, 0x40, 0x3C, 0x00),  # @
    (0x00, 0x3C, 0x42, 0x42, 0x7E, 0x42, 0x42, 0x00),  # A
    (0x00, 0x7C, 0x42, 0x7C, 0x42, 0x42, 0x7C, 0x00),  # B
    (0x00, 0x3C, 0x42, 0x40, 0x40, 0x42, 0x3C, 0x00),  # C
    (0x00, 0x78, 0x44, 0x42, 0x42, 0x44, 0x78, 0x00),  # D
    (0x00, 0x7E, 0x40, 0x7C, 0x40, 0x40, 0x7E, 0x00),  # E
    (0x00, 0x7E, 0x40, 0x7C, 0x40, 0x40, 0x40, 0x00),  # F
    (0x00, 0x3C, 0x42, 0x40, 0x4E, 0x42, 0x3C, 0x00),  # G
    (0x00, 0x42, 0x42, 0x7E, 0x42, 0x42, 0x42, 0x00),  # H
    (0x00, 0x3E, 0x08, 0x08, 0x08, 0x08, 0x3E, 0x00),  # I
    (0x00, 0x02, 0x02, 0x02, 0x42, 0x42, 0x3C, 0x00),  # J
    (0x00, 0x44, 0x48, 0x70, 0x48, 0x44, 0x42, 0x00),  # K
    (0x00, 0x40, 0x40, 0x40, 0x40, 0x40, 0x7E, 0x00),  # L
    (0x00, 0x42, 0x66, 0x5A, 0x42, 0x42, 0x42, 0x00),  # M
    (0x00, 0x42, 0x62, 0x52, 0x4A, 0x46, 0x42, 0x00),  # N
    (0x00, 0x3C, 0x42, 0x42, 0x42, 0x42, 0x3C, 0x00),  # O
    (0x00, 0x7C, 0x42, 0x42, 0x7C, 0x40, 0x40, 0x00),  # P
    (0x00, 0x3C, 0x42, 0x42, 0x52, 0x4A, 0x3C, 0x00),  # Q
    (0x00, 0x7C, 0x42, 0x42, 0x7C, 0x44, 0x42, 0x00),  # R
    (0x00, 0x3C, 0x40, 0x3C, 0x02, 0x42, 0x3C, 0x00),  # S
    (0x00, 0xFE, 0x10, 0x10, 0x10, 0x10, 0x10, 0x00),  # T
    (0x00, 0x42, 0x42, 0x42, 0x42, 0x42, 0x3C, 0x00),  # U
    (0x00, 0x42, 0x42, 0x42, 0x42, 0x24, 0x18, 0x00),  # V
    (0x00, 0x42, 0x42, 0x42, 0x42, 0x5A, 0x24, 0x00),  # W
    (0x00, 0x42, 0x24, 0x18, 0x18, 0x24, 0x42, 0x00),  # X
    (0x00, 0x82, 0x44, 0x28, 0x10, 0x10, 0x10, 0x00),  # Y
    (0x00, 0x7E, 0x04, 0x08, 0x10, 0x20, 0x7E, 0x00),  # Z
    (0x00, 0x0E, 0x08, 0x08, 0x08, 0x08, 0x0E, 0x00),  # [
    (0x00, 0x00, 0x40, 0x20, 0x10, 0x08, 0x04, 0x00),  # backslash
    (0x00, 0x70, 0x10, 0x10, 0x10, 0x10, 0x70, 0x00),  # ]
    (0x00, 0x10, 0x38, 0x54, 0x10, 0x10, 0x10, 0x00),  # ^ (up arrow)
    (0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0xFF),  # _
    (0x00, 0x1C, 0x22, 0x78, 0x20, 0x20, 0x7E, 0x00),  # pound
    (0x00, 0x00, 0x38, 0x04, 0x3C, 0x44, 0x3C, 0x00),  # a
    (0x00, 0x20, 0x20, 0x3C, 0x22, 0x22, 0x3C, 0x00),  # b
    (0x00, 0x00, 0x1C, 0x20, 0x20, 0x20, 0x1C, 0x00),  # c
    (0x00, 0x04, 0x04, 0x3C, 0x44, 0x44, 0x3C, 0x00),  # d
    (0x00, 0x00, 0x38, 0x44, 0x78, 0x40, 0x3C, 0x00),  # e
    (0x00, 0x0C, 0x10, 0x18, 0x10, 0x10, 0x10, 0x00),  # f
    (0x00, 0x00, 0x3C, 0x44, 0x44, 0x3C, 0x04, 0x38),  # g
    (0x00, 0x40, 0x40, 0x78, 0x44, 0x44, 0x44, 0x00),  # h
    (0x00, 0x10, 0x00, 0x30, 0x10, 0x10, 0x38, 0x00),  # i
    (0x00, 0x04, 0x00, 0x04, 0x04, 0x04, 0x24, 0x18),  # j
    (0x00, 0x20, 0x28, 0x30, 0x30, 0x28, 0x24, 0x00),  # k
    (0x00, 0x10, 0x10, 0x10, 0x10, 0x10, 0x0C, 0x00),  # l
    (0x00, 0x00, 0x68, 0x54, 0x54, 0x54, 0x54, 0x00),  # m
    (0x00, 0x00, 0x78, 0x44, 0x44, 0x44, 0x44, 0x00),  # n
    (0x00, 0x00, 0x38, 0x44, 0x44, 0x44, 0x38, 0x00),  # o
    (0x00, 0x00, 0x78, 0x44, 0x44, 0x78, 0x40, 0x40),  # p
    (0x00, 0x00, 0x3C, 0x44, 0x44, 0x3C, 0x04, 0x06),  # q
    (0x00, 0x00, 0x1C, 0x20, 0x20, 0x20, 0x20, 0x00),  # r
    (0x00, 0x00, 0x38, 0x40, 0x38, 0x04, 0x78, 0x00),  # s
    (0x00, 0x10, 0x38, 0x10, 0x10, 0x10, 0x0C, 0x00),  # t
    (0x00, 0x00, 0x44, 0x44, 0x44, 0x44, 0x38, 0x00),  # u
    (0x00, 0x00, 0x44, 0x44, 0x28, 0x28, 0x10, 0x00),  # v
    (0x00, 0x00, 0x44, 0x54, 0x54, 0x54, 0x28, 0x00),  # w
    (0x00, 0x00, 0x44, 0x28, 0x10, 0x28, 0x44, 0x00),  # x
    (0x00, 0x00, 0x44, 0x44, 0x44, 0x3C, 0x04, 0x38),  # y
    (0x00, 0x00, 0x7C, 0x08, 0x10, 0x20, 0x7C, 0x00),  # z
    (0x00, 0x0E, 0x08, 0x30, 0x08, 0x08, 0x0E, 0x00),  # {
    (0x00, 0x08, 0x08, 0x08, 0x08, 0x08, 0x08, 0x00),  # |
    (0x00, 0x70, 0x10, 0x0C, 0x10, 0x10, 0x70, 0x00),  # }
    (0x00, 0x14, 0x28, 0x00, 0x00, 0x00, 0x00, 0x00),  # ~
    (0x3C, 0x42, 0x99, 0xA1, 0xA1, 0x99, 0x42, 0x3C),  # copyright
)


def glyph(char: str) -> tuple[int, ...] | None:
    code = ord(char) - FIRST_CHAR
    if not (0 <= code < len(ZX_FONT)):
        return None
    return ZX_FONT[code]


def print_char(
    memory: MutableSequence[int],
    char: str,
    column: int,
    row: int,
    ink: int,
    paper: int,
    bright: bool = False,
    flash: bool = False,
) -> None:
    """Draw one character cell, replacing its 8x8 pixels and its attribute.

    Positions outside the 32x24 grid and characters without a glyph are ignored.
    """
    if not (0 <= column < COLUMNS and 0 <= row < ROWS):
        return
    rows = glyph(char)
    if rows is None:
        return

    x = column * 8
    for line, pattern in enumerate(rows):
        # A character cell is byte aligned, so the whole glyph row is one byte.
        offset, _bit = bitmap_address(x, row * 8 + line)
        memory[offset] = pattern

    memory[cell_attribute_address(column, row)] = pack_attribute(ink, paper, bright, flash)


def print_text(
    memory: MutableSequence[int],
    text: str,
    column: int,
    row: int,
    ink: int,
    paper: int,
    bright: bool = False,
    flash: bool = False,
) -> None:
    """Print ``text`` from ``(column, row)``, wrapping at the right edge."""
    current_x = column
    current_y = row
    for char in text:
        if current_x >= COLUMNS:
            current_x = 0
            current_y += 1
            if current_y >= ROWS:
                break
        print_char(memory, char, current_x, current_y, ink, paper, bright, flash)
        current_x += 1
