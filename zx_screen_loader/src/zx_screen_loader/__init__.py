"""ZX Spectrum SCREEN$ converter and tape loading simulator.

Converts arbitrary images into 6912-byte SCREEN$ data and replays the
``LOAD "" SCREEN$`` sequence frame by frame. It can be invoked through the CLI
(``python -m zx_screen_loader``) or imported.
"""

from .acquisition import (
    AcquisitionCoordinator,
    AcquisitionResult,
    AcquisitionStatus,
    FileSource,
    ScreenshotSource,
    ZXArtSource,
)
from .converter import (
    ConversionError,
    ConvertOptions,
    choose_block_attributes,
    convert_file_to_scr,
    convert_image_to_scr,
)
from .loader import LoadSession, Stage, tick
from .palette import ZX_COLORS, nearest_palette_index
from .render import FrameSnapshot, prepare_frame, render_frame
from .saver import ScreenSaver
from .screen import SCREEN_SIZE, bitmap_address, screen_to_image
from .settings import ImageSource, SaverSettings

__all__ = [
    "AcquisitionCoordinator",
    "AcquisitionResult",
    "AcquisitionStatus",
    "ConversionError",
    "ConvertOptions",
    "FileSource",
    "FrameSnapshot",
    "ImageSource",
    "LoadSession",
    "SCREEN_SIZE",
    "SaverSettings",
    "ScreenSaver",
    "ScreenshotSource",
    "Stage",
    "ZXArtSource",
    "ZX_COLORS",
    "bitmap_address",
    "choose_block_attributes",
    "convert_file_to_scr",
    "convert_image_to_scr",
    "nearest_palette_index",
    "prepare_frame",
    "render_frame",
    "screen_to_image",
    "tick",
]
