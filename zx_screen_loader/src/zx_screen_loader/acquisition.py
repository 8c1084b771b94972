"""Background image acquisition.

An acquisition produces one SCREEN$ buffer, either by converting a captured
or decoded image or by taking a ready-made SCREEN$ file as is. The work runs
on a single worker thread; the frame loop only ever polls for the outcome.
"""

from __future__ import annotations

import logging
import queue
import random
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Union

from PIL import Image

from .capture import RawCapture, grab_screen, raw_capture_to_image
from .converter import ConvertOptions, convert_image_to_scr
from .screen import validate_screen
from .settings import ImageSource, SaverSettings
from .zxart import SortDirection, SortType, ZXArtCollection

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME = "Desktop.scr"
ZXART_MAX_START = 500

Payload = Union[Image.Image, RawCapture, bytes]


class AcquisitionError(Exception):
    """Raised when a source has nothing usable to offer."""


class AcquisitionStatus(Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class AcquiredImage:
    """What a source hands back: a display name and something to encode."""

    name: str
    payload: Payload


@dataclass(frozen=True)
class AcquisitionResult:
    status: AcquisitionStatus
    screen: bytes | None = None
    name: str | None = None
    error: str | None = None

    @classmethod
    def pending(cls) -> "AcquisitionResult":
        return cls(AcquisitionStatus.PENDING)

    @classmethod
    def ready(cls, screen: bytes, name: str) -> "AcquisitionResult":
        return cls(AcquisitionStatus.READY, screen=screen, name=name)

    @classmethod
    def failed(cls, error: str) -> "AcquisitionResult":
        return cls(AcquisitionStatus.FAILED, error=error)

    @property
    def is_ready(self) -> bool:
        return self.status is AcquisitionStatus.READY

    @property
    def is_failed(self) -> bool:
        return self.status is AcquisitionStatus.FAILED


Source = Callable[[], AcquiredImage]


class ScreenshotSource:
    def __init__(self, grab: Callable[[], Union[Image.Image, RawCapture]] = grab_screen, name: str = DEFAULT_FILE_NAME) -> None:
        self.grab = grab
        self.name = name

    def __call__(self) -> AcquiredImage:
        return AcquiredImage(self.name, self.grab())


class ZXArtSource:
    """Picks one picture from the top rated part of the zxart.ee catalogue."""

    def __init__(
        self,
        collection: ZXArtCollection | None = None,
        rng: random.Random | None = None,
        max_start: int = ZXART_MAX_START,
    ) -> None:
        self.collection = collection or ZXArtCollection()
        self.rng = rng or random.Random()
        self.max_start = max_start

    def __call__(self) -> AcquiredImage:
        start = self.rng.randrange(self.max_start)
        files = self.collection.get_files(start, 1, SortType.VOTES, SortDirection.DESCENDING)
        if not files:
            raise AcquisitionError(f"zxart.ee returned no pictures at offset {start}")
        picture = files[0]
        data = picture.download(self.collection.session, self.collection.timeout)
        return AcquiredImage(picture.display_name, data)


class FileSource:
    """Reads a local ``.scr`` file verbatim or any image Pillow can open."""

    def __init__(self, path: str | Path | None) -> None:
        self.path = Path(path) if path else None

    def __call__(self) -> AcquiredImage:
        if self.path is None:
            raise AcquisitionError("File image source has no input path")
        if not self.path.is_file():
            raise AcquisitionError(f"Input file not found: {self.path}")
        if self.path.suffix.lower() == ".scr":
            return AcquiredImage(self.path.name, self.path.read_bytes())
        with Image.open(self.path) as img:
            img.load()
            return AcquiredImage(self.path.name, img.copy())


def build_source(settings: SaverSettings) -> Source:
    if settings.image_source is ImageSource.ZXART:
        return ZXArtSource()
    if settings.image_source is ImageSource.FILE:
        return FileSource(settings.input_path)
    return ScreenshotSource()


def encode_payload(payload: Payload, options: ConvertOptions | None = None) -> bytes:
    """Turn a source payload into SCREEN$ bytes.

    Byte payloads are taken as ready-made SCREEN$ data and bypass conversion.
    """
    if isinstance(payload, (bytes, bytearray)):
        if not payload:
            raise AcquisitionError("Source returned no data")
        return validate_screen(payload)
    if isinstance(payload, RawCapture):
        payload = raw_capture_to_image(payload)
    return convert_image_to_scr(payload, options)


class AcquisitionCoordinator:
    """Runs at most one acquisition at a time and publishes its outcome."""

    def __init__(self, source: Source, options: ConvertOptions | None = None) -> None:
        self.source = source
        self.options = options
        self._thread: threading.Thread | None = None
        self._channel: "queue.Queue[AcquisitionResult] | None" = None
        self._result = AcquisitionResult.pending()

    def start(self) -> None:
        """Begin a fresh acquisition, waiting for any previous one to finish."""
        if self._thread is not None and self._thread.is_alive():
            logger.debug("waiting for previous acquisition to finish")
        self.join()
        channel: "queue.Queue[AcquisitionResult]" = queue.Queue(maxsize=1)
        self._channel = channel
        self._result = AcquisitionResult.pending()
        self._thread = threading.Thread(
            target=self._run, args=(channel,), name="zx-acquisition", daemon=True
        )
        self._thread.start()

    def _run(self, channel: "queue.Queue[AcquisitionResult]") -> None:
        logger.info("acquisition started")
        try:
            acquired = self.source()
            screen = encode_payload(acquired.payload, self.options)
            result = AcquisitionResult.ready(screen, acquired.name)
            logger.info("acquired %r (%d bytes)", acquired.name, len(screen))
        except Exception as exc:
            logger.exception("acquisition failed")
            result = AcquisitionResult.failed(str(exc) or exc.__class__.__name__)
        channel.put(result)

    def poll(self) -> AcquisitionResult:
        """Return the latest outcome without blocking."""
        if self._result.status is AcquisitionStatus.PENDING and self._channel is not None:
            try:
                self._result = self._channel.get_nowait()
            except queue.Empty:
                pass
        return self._result

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the running acquisition; True when no worker is left running."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def busy(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
