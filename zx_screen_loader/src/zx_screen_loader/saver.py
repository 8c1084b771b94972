"""Frame driver tying the load sequence to the background acquisition."""

from __future__ import annotations

import logging
import random
import time
from typing import Iterator

from .acquisition import AcquisitionCoordinator, Source, build_source
from .converter import ConvertOptions
from .loader import LoadSession, advance, draw
from .render import FrameSnapshot, prepare_frame
from .settings import SaverSettings

logger = logging.getLogger(__name__)

# 25 ms per frame, 40 frames per second.
TICK_INTERVAL = 0.025


class ScreenSaver:
    """Owns one load session and the acquisition feeding it."""

    def __init__(
        self,
        settings: SaverSettings | None = None,
        source: Source | None = None,
        options: ConvertOptions | None = None,
        preview: bool = False,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings or SaverSettings()
        self.preview = preview
        self.rng = rng or random.Random()
        self.coordinator = AcquisitionCoordinator(source or build_source(self.settings), options)
        self.session = LoadSession(preview=preview)

    def start(self) -> None:
        self.restart()

    def restart(self) -> None:
        """Start a new acquisition and replay the sequence from power on."""
        self.coordinator.start()
        self.session = LoadSession(preview=self.preview)
        logger.info("load sequence restarted (source=%s)", self.settings.image_source.name)

    def step(self) -> FrameSnapshot:
        """Advance one frame and return what should be shown for it."""
        session = self.session.with_acquisition(self.coordinator.poll())
        drawn = draw(session, self.rng)
        snapshot = prepare_frame(drawn, self.settings.effects)
        self.session = advance(drawn)
        return snapshot

    def frames(self, count: int | None = None, realtime: bool = False) -> Iterator[FrameSnapshot]:
        """Yield ``count`` frames (forever when ``None``), optionally paced at 40 fps."""
        produced = 0
        deadline = time.monotonic()
        while count is None or produced < count:
            yield self.step()
            produced += 1
            if realtime:
                deadline += TICK_INTERVAL
                delay = deadline - time.monotonic()
                if delay > 0:
                    time.sleep(delay)

    def stop(self, timeout: float | None = None) -> bool:
        return self.coordinator.join(timeout)
