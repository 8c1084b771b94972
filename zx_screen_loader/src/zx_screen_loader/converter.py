"""Core conversion logic: arbitrary RGB image -> SCREEN$ bytes.

Pipeline: Gaussian blur -> Floyd-Steinberg dithering against the 16 color
palette -> per 8x8 cell INK/PAPER/BRIGHT selection -> bitmap and attribute
packing. The source is processed at its own resolution and sampled
nearest-neighbour onto the 256x192 grid while packing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from PIL import Image

from .palette import ZX_COLORS, Color, base_color, is_bright, nearest_palette_index
from .screen import (
    CELL_SIZE,
    COLUMNS,
    ROWS,
    SCREEN_HEIGHT,
    SCREEN_SIZE,
    SCREEN_WIDTH,
    bitmap_address,
    cell_attribute_address,
    pack_attribute,
    screen_to_image,
)

# One working pixel: [r, g, b] as floats in 0-255.
Pixel = List[float]

DEFAULT_SIGMA = 0.8
DEFAULT_ERROR_DAMPING = 0.8

# (dx, dy, weight) for the not-yet-visited neighbours of the current pixel.
FLOYD_STEINBERG_WEIGHTS = (
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
)


@dataclass
class ConvertOptions:
    """Options for the conversion pipeline."""

    sigma: float = DEFAULT_SIGMA
    enable_blur: bool = True
    error_damping: float = DEFAULT_ERROR_DAMPING


@dataclass(frozen=True)
class BlockAttributes:
    ink: int
    paper: int
    bright: bool

    def to_byte(self) -> int:
        # FLASH is a playback effect and never part of an encoded image.
        return pack_attribute(self.ink, self.paper, self.bright, flash=False)


class ConversionError(Exception):
    """Custom exception for conversion errors."""


def image_to_pixels(image: Image.Image) -> Tuple[List[Pixel], int, int]:
    """Copy ``image`` into a flat, row-major list of float RGB pixels."""
    rgb = image.convert("RGB")
    width, height = rgb.size
    if width < 1 or height < 1:
        raise ConversionError("Source image is empty")
    channels = iter(rgb.tobytes())
    pixels = [[float(r), float(g), float(b)] for r, g, b in zip(channels, channels, channels)]
    return pixels, width, height


def gaussian_kernel(sigma: float) -> List[float]:
    """Normalized 1-D Gaussian kernel of radius ``ceil(sigma * 3)``."""
    if sigma <= 0:
        raise ConversionError("Blur sigma must be greater than 0")
    radius = int(math.ceil(sigma * 3))
    kernel = [math.exp(-(i * i) / (2 * sigma * sigma)) for i in range(-radius, radius + 1)]
    total = sum(kernel)
    return [value / total for value in kernel]


def gaussian_blur(pixels: Sequence[Pixel], width: int, height: int, sigma: float) -> List[Pixel]:
    """Separable Gaussian blur, horizontal pass then vertical pass.

    Samples beyond the image edge are clamped to the nearest edge pixel.
    ``pixels`` is left untouched; a new buffer is returned. Each channel is
    blurred a whole row at a time.
    """
    kernel = gaussian_kernel(sigma)
    radius = len(kernel) // 2
    taps = list(enumerate(kernel))

    channels: List[List[List[float]]] = []
    for channel in range(3):
        horizontal: List[List[float]] = []
        for y in range(height):
            row = [pixel[channel] for pixel in pixels[y * width:(y + 1) * width]]
            # Edge padding gives the same values as clamping the sample index.
            padded = [row[0]] * radius + row + [row[-1]] * radius
            acc = [0.0] * width
            for i, weight in taps:
                acc = [a + v * weight for a, v in zip(acc, padded[i:i + width])]
            horizontal.append(acc)

        vertical: List[List[float]] = []
        for y in range(height):
            acc = [0.0] * width
            for i, weight in taps:
                source = horizontal[min(max(y + i - radius, 0), height - 1)]
                acc = [a + v * weight for a, v in zip(acc, source)]
            vertical.append(acc)
        channels.append(vertical)

    red, green, blue = channels
    result: List[Pixel] = []
    for y in range(height):
        result.extend([r, g, b] for r, g, b in zip(red[y], green[y], blue[y]))
    return result


def diffuse_error(
    pixels: List[Pixel],
    width: int,
    height: int,
    x: int,
    y: int,
    error: Tuple[float, float, float],
) -> None:
    """Spread an already damped ``error`` to the unvisited neighbours of ``(x, y)``.

    Every touched channel is clamped to 0-255.
    """
    err_r, err_g, err_b = error
    for dx, dy, weight in FLOYD_STEINBERG_WEIGHTS:
        nx = x + dx
        ny = y + dy
        if nx < 0 or nx >= width or ny >= height:
            continue
        neighbour = pixels[ny * width + nx]
        neighbour[0] = min(255.0, max(0.0, neighbour[0] + err_r * weight))
        neighbour[1] = min(255.0, max(0.0, neighbour[1] + err_g * weight))
        neighbour[2] = min(255.0, max(0.0, neighbour[2] + err_b * weight))


def floyd_steinberg_dither(
    pixels: List[Pixel],
    width: int,
    height: int,
    palette: Sequence[Color] = ZX_COLORS,
    damping: float = DEFAULT_ERROR_DAMPING,
) -> List[Pixel]:
    """Quantize ``pixels`` to ``palette`` in place with damped error diffusion.

    A single top-to-bottom, left-to-right pass. Each pixel is replaced by its
    nearest palette color (same choice as :func:`nearest_palette_index`) and
    ``damping`` times the quantization error is pushed to the unvisited
    neighbours. Returns ``pixels`` for convenience.
    """
    colors = [(float(r), float(g), float(b)) for r, g, b in palette]
    for y in range(height):
        row = y * width
        for x in range(width):
            r, g, b = pixels[row + x]
            chosen = colors[0]
            best = math.inf
            for color in colors:
                dr = r - color[0]
                dg = g - color[1]
                db = b - color[2]
                dist = dr * dr + dg * dg + db * db
                if dist < best:
                    best = dist
                    chosen = color

            pixels[row + x] = [chosen[0], chosen[1], chosen[2]]
            if best:
                error = ((r - chosen[0]) * damping, (g - chosen[1]) * damping, (b - chosen[2]) * damping)
                if error[0] or error[1] or error[2]:
                    diffuse_error(pixels, width, height, x, y, error)

    return pixels


def choose_block_attributes(indices: Sequence[int]) -> BlockAttributes:
    """Pick INK/PAPER/BRIGHT for one cell from its palette indices.

    The most frequent index becomes PAPER and the runner-up INK. The histogram
    is scanned from index 0 upwards and only strictly larger counts win, so
    ties go to the lower index. When a new leader appears the old leader is
    demoted to INK, which means a single-color cell gets INK 0 (or INK equal
    to PAPER when that color is black).
    """
    counts = [0] * len(ZX_COLORS)
    for idx in indices:
        counts[idx] += 1

    max_count = second_count = 0
    paper_index = ink_index = 0
    for i, count in enumerate(counts):
        if count > max_count:
            second_count = max_count
            ink_index = paper_index
            max_count = count
            paper_index = i
        elif count > second_count:
            second_count = count
            ink_index = i

    return BlockAttributes(
        ink=base_color(ink_index),
        paper=base_color(paper_index),
        bright=is_bright(paper_index) or is_bright(ink_index),
    )


def encode_screen(pixels: Sequence[Pixel], width: int, height: int) -> bytes:
    """Pack dithered pixels into SCREEN$ bytes.

    Each of the 256x192 target dots samples source pixel
    ``(int(x * width / 256), int(y * height / 192))``. A dot becomes an INK
    bit when its palette index, with BRIGHT stripped, equals the cell's INK.
    """
    scale_x = width / SCREEN_WIDTH
    scale_y = height / SCREEN_HEIGHT
    source_x = [int(x * scale_x) for x in range(SCREEN_WIDTH)]
    source_y = [int(y * scale_y) for y in range(SCREEN_HEIGHT)]

    index_cache: Dict[Tuple[float, float, float], int] = {}

    def palette_index(pixel: Pixel) -> int:
        key = (pixel[0], pixel[1], pixel[2])
        idx = index_cache.get(key)
        if idx is None:
            idx = nearest_palette_index(key)
            index_cache[key] = idx
        return idx

    screen = bytearray(SCREEN_SIZE)
    for row in range(ROWS):
        for column in range(COLUMNS):
            block: List[int] = []
            for dy in range(CELL_SIZE):
                sy = source_y[row * CELL_SIZE + dy]
                for dx in range(CELL_SIZE):
                    sx = source_x[column * CELL_SIZE + dx]
                    block.append(palette_index(pixels[sy * width + sx]))

            attrs = choose_block_attributes(block)
            screen[cell_attribute_address(column, row)] = attrs.to_byte()

            for dy in range(CELL_SIZE):
                offset, _bit = bitmap_address(column * CELL_SIZE, row * CELL_SIZE + dy)
                byte = 0
                for dx in range(CELL_SIZE):
                    if base_color(block[dy * CELL_SIZE + dx]) == attrs.ink:
                        byte |= 1 << (7 - dx)
                screen[offset] = byte

    return bytes(screen)


def convert_image_to_scr(image: Image.Image, options: ConvertOptions | None = None) -> bytes:
    options = options or ConvertOptions()
    if not (0.0 <= options.error_damping <= 1.0):
        raise ConversionError("Error damping must be between 0 and 1")

    pixels, width, height = image_to_pixels(image)
    if options.enable_blur:
        pixels = gaussian_blur(pixels, width, height, options.sigma)
    floyd_steinberg_dither(pixels, width, height, damping=options.error_damping)
    return encode_screen(pixels, width, height)


def convert_image_to_preview(
    image: Image.Image, options: ConvertOptions | None = None
) -> Image.Image:
    """Convert an in-memory image into a SCREEN$-constrained RGB preview."""
    return screen_to_image(convert_image_to_scr(image, options))


def convert_file_to_scr(path: str | Path, options: ConvertOptions | None = None) -> bytes:
    path = Path(path)
    try:
        with Image.open(path) as img:
            return convert_image_to_scr(img, options)
    except FileNotFoundError as exc:
        raise ConversionError(f"Input file not found: {path}") from exc
    except OSError as exc:
        raise ConversionError(f"Failed to read image: {path}") from exc
