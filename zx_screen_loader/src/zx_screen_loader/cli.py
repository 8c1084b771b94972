"""Command line interface for the ZX Spectrum SCREEN$ loader."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import Iterable, List

from PIL import Image

from .acquisition import DEFAULT_FILE_NAME, ScreenshotSource
from .converter import ConversionError, ConvertOptions, convert_file_to_scr
from .loader import STAGE_LENGTHS
from .palette import format_palette_text
from .render import render_frame
from .saver import TICK_INTERVAL, ScreenSaver
from .screen import MalformedScreenError, screen_to_image
from .settings import ImageSource, SaverSettings, load_settings, save_settings

IMAGE_EXTENSIONS = {".png", ".gif", ".bmp", ".jpg", ".jpeg", ".tif", ".tiff", ".webp"}
FULL_SEQUENCE_FRAMES = sum(STAGE_LENGTHS.values())


def iter_images(paths: Iterable[str]) -> List[Path]:
    results: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            if path.suffix.lower() not in IMAGE_EXTENSIONS:
                raise ConversionError(f"Unsupported file type: {path}")
            results.append(path)
        elif path.is_dir():
            for entry in sorted(path.iterdir()):
                if entry.is_file() and entry.suffix.lower() in IMAGE_EXTENSIONS:
                    results.append(entry)
        else:
            raise ConversionError(f"Input path does not exist: {path}")
    if not results:
        raise ConversionError("No images were found in the provided inputs.")
    return results


def ensure_unique_names(paths: List[Path], prefix: str, suffix: str) -> List[str]:
    names: List[str] = []
    seen = set()
    for path in paths:
        name = f"{prefix}{path.stem}{suffix}.scr"
        if name in seen:
            raise ConversionError(f"Duplicate output name would occur: {name}")
        seen.add(name)
        names.append(name)
    return names


def write_outputs(
    inputs: List[Path],
    names: List[str],
    options: ConvertOptions,
    output_dir: Path,
    force: bool,
) -> None:
    conflicts = []
    for name in names:
        target = output_dir / name
        if target.exists() and not force:
            conflicts.append(str(target))
    if conflicts:
        raise ConversionError(
            "Output files already exist (use --force to overwrite):\n" + "\n".join(conflicts)
        )

    output_dir.mkdir(parents=True, exist_ok=True)

    for src, name in zip(inputs, names):
        data = convert_file_to_scr(src, options)
        target = output_dir / name
        target.write_bytes(data)
        print(f"wrote {target}")


def run_convert(args: argparse.Namespace) -> int:
    options = ConvertOptions()
    options.sigma = args.sigma
    options.enable_blur = not args.no_blur
    options.error_damping = args.damping

    inputs = iter_images(args.inputs)
    names = ensure_unique_names(inputs, args.prefix, args.suffix)
    write_outputs(inputs, names, options, Path(args.output_dir), args.force)
    return 0


def run_preview(args: argparse.Namespace) -> int:
    source = Path(args.input)
    try:
        data = source.read_bytes()
    except OSError as exc:
        raise ConversionError(f"Failed to read SCREEN$ file: {source}") from exc
    try:
        image = screen_to_image(data, args.frame)
    except MalformedScreenError as exc:
        raise ConversionError(str(exc)) from exc
    if args.scale > 1:
        image = image.resize((image.width * args.scale, image.height * args.scale), Image.NEAREST)
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    image.save(output)
    print(f"wrote {output}")
    return 0


def settings_from_args(args: argparse.Namespace) -> SaverSettings:
    settings = load_settings(args.config) if args.config else SaverSettings()
    if args.source is not None:
        settings.image_source = ImageSource[args.source.upper()]
    if args.input is not None:
        settings.input_path = args.input
    if settings.image_source is ImageSource.FILE and not settings.input_path:
        raise ConversionError("--source file needs --input")
    return settings


def run_animate(args: argparse.Namespace) -> int:
    if args.every < 1:
        raise ConversionError("--every must be at least 1")
    if args.frames < 1:
        raise ConversionError("--frames must be at least 1")

    settings = settings_from_args(args)
    if args.save_config:
        save_settings(settings, args.save_config)
        print(f"wrote {args.save_config}")

    source = None
    if settings.image_source is ImageSource.SCREENSHOT:
        source = ScreenshotSource(name=args.name or DEFAULT_FILE_NAME)

    options = ConvertOptions(sigma=args.sigma)
    saver = ScreenSaver(settings, source=source, options=options, preview=args.preview, rng=random.Random(args.seed))
    saver.start()
    if args.wait:
        saver.coordinator.join()

    size = (args.width, args.height)
    frames: List[Image.Image] = []
    for index, snapshot in enumerate(saver.frames(args.frames)):
        if index % args.every == 0:
            frames.append(render_frame(snapshot, size))
    saver.stop()

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    frames[0].save(
        output,
        save_all=True,
        append_images=frames[1:],
        duration=int(TICK_INTERVAL * 1000 * args.every),
        loop=0,
    )
    print(f"wrote {output} ({len(frames)} frames)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Convert images into ZX Spectrum SCREEN$ (.scr) files and replay the tape loading sequence.\n"
            f"Palette: {format_palette_text()}"
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Convert images to .scr files")
    convert.add_argument("inputs", nargs="+", help="Image files or folders containing images (non-recursive)")
    convert.add_argument("-o", "--output-dir", required=True, help="Destination directory for .scr files")
    convert.add_argument("--prefix", default="", help="Optional prefix for output filenames")
    convert.add_argument("--suffix", default="", help="Optional suffix for output filenames")
    convert.add_argument("--sigma", type=float, default=ConvertOptions.sigma, help="Gaussian blur sigma before dithering")
    convert.add_argument("--no-blur", action="store_true", help="Skip the blur pass")
    convert.add_argument(
        "--damping",
        type=float,
        default=ConvertOptions.error_damping,
        help="Fraction of the quantization error diffused to neighbours (0-1)",
    )
    convert.add_argument("-f", "--force", action="store_true", help="Overwrite existing files without prompting")
    convert.set_defaults(handler=run_convert)

    preview = subparsers.add_parser("preview", help="Render a .scr file to an image")
    preview.add_argument("input", help="SCREEN$ file (6912 bytes)")
    preview.add_argument("-o", "--output", required=True, help="Output image path (e.g. out.png)")
    preview.add_argument(
        "--frame",
        type=int,
        default=None,
        help="Frame counter used for FLASH cells (INK/PAPER swap for frames 0-15 of every 32)",
    )
    preview.add_argument("--scale", type=int, default=1, help="Integer upscale factor")
    preview.set_defaults(handler=run_preview)

    animate = subparsers.add_parser("animate", help="Record the loading sequence as an animated GIF")
    animate.add_argument("-o", "--output", required=True, help="Output GIF path")
    animate.add_argument(
        "--source",
        choices=[source.name.lower() for source in ImageSource],
        default=None,
        help="Where the picture comes from (default: screenshot, or the --config value)",
    )
    animate.add_argument("--input", default=None, help="Image or .scr file for --source file")
    animate.add_argument("--name", default=None, help="Name shown in the Bytes: header for screenshots")
    animate.add_argument("--config", default=None, help="JSON settings file to start from")
    animate.add_argument("--save-config", default=None, help="Write the effective settings to this JSON file")
    animate.add_argument(
        "--frames",
        type=int,
        default=FULL_SEQUENCE_FRAMES + 80,
        help="Number of frames to simulate",
    )
    animate.add_argument("--every", type=int, default=4, help="Keep every Nth frame in the GIF")
    animate.add_argument("--width", type=int, default=320, help="Frame width in pixels")
    animate.add_argument("--height", type=int, default=240, help="Frame height in pixels")
    animate.add_argument("--sigma", type=float, default=ConvertOptions.sigma, help="Gaussian blur sigma before dithering")
    animate.add_argument("--seed", type=int, default=None, help="Seed for the border noise")
    animate.add_argument("--preview", action="store_true", help="Miniature mode: skip the power-on garbage fill")
    animate.add_argument(
        "--wait",
        action="store_true",
        help="Wait for the picture before simulating, so it is always ready when loading starts",
    )
    animate.set_defaults(handler=run_animate)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.handler(args)
    except (ConversionError, ValueError) as exc:
        print(exc, file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
