"""Screen capture adapters.

The desktop grab itself goes through ``PIL.ImageGrab``; hosts that already hold
a raw framebuffer can wrap it in :class:`RawCapture` instead.
"""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image, ImageGrab

# Raw layouts Pillow can unpack into RGB. "BGRX" is the little-endian 32-bit
# 0xAARRGGBB framebuffer most desktop APIs hand out.
SUPPORTED_RAW_MODES = {
    "RGB": 3,
    "BGR": 3,
    "RGBX": 4,
    "BGRX": 4,
}

# Alpha is ignored, so it unpacks like the padding byte.
RAW_MODE_ALIASES = {
    "RGBA": "RGBX",
    "BGRA": "BGRX",
}


@dataclass(frozen=True)
class RawCapture:
    width: int
    height: int
    stride: int
    data: bytes
    raw_mode: str = "BGRX"


def raw_capture_to_image(capture: RawCapture) -> Image.Image:
    """Unpack a strided framebuffer into an RGB image, dropping alpha."""
    raw_mode = RAW_MODE_ALIASES.get(capture.raw_mode, capture.raw_mode)
    if raw_mode not in SUPPORTED_RAW_MODES:
        raise ValueError(f"Unsupported raw pixel format: {capture.raw_mode}")
    if capture.width < 1 or capture.height < 1:
        raise ValueError("Capture has no pixels")
    bytes_per_pixel = SUPPORTED_RAW_MODES[raw_mode]
    if capture.stride < capture.width * bytes_per_pixel:
        raise ValueError("Row stride is shorter than one row of pixels")
    if len(capture.data) < capture.stride * capture.height:
        raise ValueError("Capture buffer is shorter than stride x height")

    return Image.frombuffer(
        "RGB",
        (capture.width, capture.height),
        capture.data,
        "raw",
        raw_mode,
        capture.stride,
        1,
    ).copy()


def grab_screen() -> Image.Image:
    """Capture the whole desktop as an RGB image."""
    return ImageGrab.grab().convert("RGB")
