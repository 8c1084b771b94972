import itertools
import math
import random
import warnings

import pytest
from PIL import Image

from zx_screen_loader.converter import (
    BlockAttributes,
    ConversionError,
    ConvertOptions,
    choose_block_attributes,
    convert_file_to_scr,
    convert_image_to_preview,
    convert_image_to_scr,
    diffuse_error,
    encode_screen,
    floyd_steinberg_dither,
    gaussian_blur,
    gaussian_kernel,
    image_to_pixels,
)
from zx_screen_loader.palette import ZX_COLORS, base_color, nearest_palette_index
from zx_screen_loader.screen import BITMAP_SIZE, SCREEN_SIZE, decode_pixel_indices


def test_gaussian_kernel_shape():
    kernel = gaussian_kernel(0.8)
    assert len(kernel) == 2 * math.ceil(0.8 * 3) + 1 == 7
    assert sum(kernel) == pytest.approx(1.0)
    assert kernel == pytest.approx(kernel[::-1])
    assert max(kernel) == kernel[3]


@pytest.mark.parametrize("sigma", [0, -1.5])
def test_gaussian_kernel_rejects_non_positive_sigma(sigma):
    with pytest.raises(ConversionError):
        gaussian_kernel(sigma)


def test_blur_keeps_constant_image_and_source_buffer():
    pixels = [[10.0, 120.0, 250.0] for _ in range(5 * 4)]
    original = [list(p) for p in pixels]
    blurred = gaussian_blur(pixels, 5, 4, 0.8)
    assert pixels == original
    for pixel in blurred:
        assert pixel == pytest.approx([10.0, 120.0, 250.0])


def test_blur_clamps_samples_at_the_edges():
    pixels = [[0.0, 0.0, 0.0], [0.0, 0.0, 0.0], [255.0, 255.0, 255.0]]
    kernel = gaussian_kernel(0.8)
    blurred = gaussian_blur(pixels, 3, 1, 0.8)
    # Only taps +2 and +3 of the first pixel land on (or clamp to) the bright one.
    assert blurred[0][0] == pytest.approx(255.0 * (kernel[5] + kernel[6]))
    # For the last pixel every tap from 0 to +3 clamps onto itself.
    assert blurred[2][0] == pytest.approx(255.0 * sum(kernel[3:]))


def test_dither_leaves_palette_images_unchanged():
    rng = random.Random(7)
    width, height = 16, 12
    pixels = [[float(c) for c in ZX_COLORS[rng.randrange(16)]] for _ in range(width * height)]
    expected = [list(p) for p in pixels]
    assert floyd_steinberg_dither(pixels, width, height) == expected


def test_dither_outputs_only_palette_colors():
    width, height = 12, 10
    pixels = [[128.0, 128.0, 128.0] for _ in range(width * height)]
    floyd_steinberg_dither(pixels, width, height)
    colors = {tuple(int(c) for c in p) for p in pixels}
    assert colors <= set(ZX_COLORS)
    # The error spreads, so mid grey turns into a mix of colors.
    assert len(colors) >= 2


def test_dither_without_damping_is_plain_quantization():
    width, height = 6, 5
    pixels = [[128.0, 128.0, 128.0] for _ in range(width * height)]
    floyd_steinberg_dither(pixels, width, height, damping=0.0)
    assert all(p == [215.0, 215.0, 215.0] for p in pixels)


def test_dither_picks_the_nearest_palette_entry():
    for rgb in itertools.product((0.0, 107.5, 128.0, 235.0, 255.0), repeat=3):
        pixels = [list(rgb)]
        floyd_steinberg_dither(pixels, 1, 1)
        assert tuple(pixels[0]) == ZX_COLORS[nearest_palette_index(rgb)]


def test_diffuse_error_weights_and_clamp():
    pixels = [[100.0, 10.0, 250.0] for _ in range(3 * 2)]
    diffuse_error(pixels, 3, 2, 0, 0, (80.0, -40.0, 96.0))
    assert pixels[0] == [100.0, 10.0, 250.0]
    # 7/16 to the right.
    assert pixels[1] == [135.0, 0.0, 255.0]
    assert pixels[2] == [100.0, 10.0, 250.0]
    # Nothing below-left of column 0; 5/16 below, 1/16 below-right.
    assert pixels[3] == [125.0, 0.0, 255.0]
    assert pixels[4] == [105.0, 7.5, 255.0]
    assert pixels[5] == [100.0, 10.0, 250.0]


def test_diffuse_error_reaches_below_left():
    pixels = [[0.0, 0.0, 0.0] for _ in range(3 * 2)]
    diffuse_error(pixels, 3, 2, 1, 0, (16.0, 0.0, 0.0))
    assert [p[0] for p in pixels] == [0.0, 0.0, 7.0, 3.0, 5.0, 1.0]


def test_diffuse_error_skips_last_row_and_column():
    pixels = [[0.0, 0.0, 0.0] for _ in range(2 * 2)]
    diffuse_error(pixels, 2, 2, 1, 1, (16.0, 16.0, 16.0))
    assert all(p == [0.0, 0.0, 0.0] for p in pixels)


BLACK_WHITE = [(0, 0, 0), (255, 255, 255)]


def test_dither_pushes_damped_seven_sixteenths_right():
    # (0, 0) quantizes to black leaving 100 * 0.8 = 80, so its right
    # neighbour gains exactly 35 and crosses the 127.5 midpoint only from 93.
    pixels = [[100.0] * 3, [93.0] * 3]
    floyd_steinberg_dither(pixels, 2, 1, BLACK_WHITE)
    assert pixels[1] == [255.0] * 3
    pixels = [[100.0] * 3, [91.0] * 3]
    floyd_steinberg_dither(pixels, 2, 1, BLACK_WHITE)
    assert pixels[1] == [0.0] * 3


def test_dither_pushes_damped_five_sixteenths_down():
    # Same error; the pixel below gains exactly 25.
    pixels = [[100.0] * 3, [103.0] * 3]
    floyd_steinberg_dither(pixels, 1, 2, BLACK_WHITE)
    assert pixels[1] == [255.0] * 3
    pixels = [[100.0] * 3, [101.0] * 3]
    floyd_steinberg_dither(pixels, 1, 2, BLACK_WHITE)
    assert pixels[1] == [0.0] * 3


def test_block_attributes_from_histogram():
    # 40 dots of red and 24 of bright blue.
    attrs = choose_block_attributes([2] * 40 + [9] * 24)
    assert attrs == BlockAttributes(ink=1, paper=2, bright=True)
    assert choose_block_attributes([9] * 24 + [2] * 40) == attrs


def test_block_attributes_bright_from_paper():
    assert choose_block_attributes([10] * 40 + [1] * 24) == BlockAttributes(ink=1, paper=2, bright=True)


def test_block_attributes_single_color_demotes_black_to_ink():
    assert choose_block_attributes([4] * 64) == BlockAttributes(ink=0, paper=4, bright=False)
    assert choose_block_attributes([0] * 64) == BlockAttributes(ink=0, paper=0, bright=False)


def test_block_attributes_ties_go_to_lower_index():
    assert choose_block_attributes([5] * 32 + [3] * 32) == BlockAttributes(ink=5, paper=3, bright=False)


def test_block_attributes_byte_never_flashes():
    assert BlockAttributes(ink=1, paper=2, bright=True).to_byte() == 0x51
    assert BlockAttributes(ink=7, paper=7, bright=False).to_byte() == 0x3F


def _cell_pattern_pixels():
    width, height = 256, 192
    pixels = []
    for y in range(height):
        for x in range(width):
            column, row = x // 8, y // 8
            first = (column + row) % 16
            second = (column * 3 + row * 5 + 1) % 16
            third = (column + 11) % 16
            pick = (x * 7 + y * 3) % 5
            idx = first if pick < 2 else second if pick < 4 else third
            pixels.append([float(c) for c in ZX_COLORS[idx]])
    return pixels, width, height


def test_encoded_screen_reproduces_cell_choices():
    pixels, width, height = _cell_pattern_pixels()
    data = encode_screen(pixels, width, height)
    assert len(data) == SCREEN_SIZE
    decoded = decode_pixel_indices(data)

    def source_index(x, y):
        return ZX_COLORS.index(tuple(int(c) for c in pixels[y * width + x]))

    for row in range(24):
        for column in range(32):
            block = [
                source_index(column * 8 + dx, row * 8 + dy) for dy in range(8) for dx in range(8)
            ]
            attrs = choose_block_attributes(block)
            bank = 8 if attrs.bright else 0
            assert bool(data[BITMAP_SIZE + row * 32 + column] & 0x40) == attrs.bright
            assert not data[BITMAP_SIZE + row * 32 + column] & 0x80
            for i, idx in enumerate(block):
                x = column * 8 + i % 8
                y = row * 8 + i // 8
                expected = attrs.ink if base_color(idx) == attrs.ink else attrs.paper
                assert decoded[y * 256 + x] == expected + bank


def test_convert_solid_blue_image():
    image = Image.new("RGB", (32, 24), (0, 0, 0xD7))
    data = convert_image_to_scr(image)
    assert len(data) == SCREEN_SIZE
    assert not any(data[:BITMAP_SIZE])
    # PAPER blue, INK black, no BRIGHT.
    assert set(data[BITMAP_SIZE:]) == {0x08}


def test_convert_solid_bright_white_image():
    image = Image.new("RGB", (64, 48), (255, 255, 255))
    data = convert_image_to_scr(image, ConvertOptions(enable_blur=False))
    assert set(data[BITMAP_SIZE:]) == {0x40 | 0x38}


def test_convert_accepts_non_rgb_modes():
    image = Image.new("L", (16, 12), 0)
    data = convert_image_to_scr(image)
    assert set(data[BITMAP_SIZE:]) == {0x00}


def test_convert_preview_is_full_screen():
    preview = convert_image_to_preview(Image.new("RGB", (20, 10), (0xD7, 0, 0)))
    assert preview.size == (256, 192)
    assert preview.getpixel((100, 100)) == (0xD7, 0, 0)


def test_convert_rejects_bad_damping():
    with pytest.raises(ConversionError):
        convert_image_to_scr(Image.new("RGB", (8, 8)), ConvertOptions(error_damping=1.5))


def test_image_to_pixels_is_row_major():
    image = Image.new("RGB", (2, 2))
    image.putpixel((1, 0), (1, 2, 3))
    pixels, width, height = image_to_pixels(image)
    assert (width, height) == (2, 2)
    assert pixels[1] == [1.0, 2.0, 3.0]


def test_convert_file(tmp_path):
    path = tmp_path / "green.png"
    Image.new("RGB", (16, 16), (0, 0xD7, 0)).save(path)
    data = convert_file_to_scr(path)
    assert set(data[BITMAP_SIZE:]) == {0x20}


def test_convert_file_missing(tmp_path):
    with pytest.raises(ConversionError):
        convert_file_to_scr(tmp_path / "missing.png")


def test_convert_file_not_an_image(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image")
    with pytest.raises(ConversionError):
        convert_file_to_scr(path)


def test_image_to_pixels_avoids_deprecated_pillow_calls():
    image = Image.new("RGB", (4, 3), (1, 2, 3))
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        pixels, width, height = image_to_pixels(image)
    assert (width, height) == (4, 3)
    assert pixels == [[1.0, 2.0, 3.0]] * 12
