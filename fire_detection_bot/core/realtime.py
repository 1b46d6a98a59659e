"""Real-time detection: one detection cycle per captured frame, never two at once.

A cycle is detection followed by alert dispatch. Frames that arrive while a cycle is
still in flight are dropped, not queued.
"""

import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from fire_detection_bot.config import Settings
from fire_detection_bot.core.alerts import AlertDispatcher
from fire_detection_bot.core.orchestrator import DetectionOrchestrator
from fire_detection_bot.core.types import AlertConfig, AlertOutcome, DetectionReport

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {'.jpg', '.jpeg', '.png', '.bmp', '.gif', '.webp'}


@dataclass
class CycleOutcome:
    report: DetectionReport
    alert: AlertOutcome


class DetectionCycle:
    def __init__(
        self,
        orchestrator: DetectionOrchestrator,
        dispatcher: AlertDispatcher,
        contact_provider: Callable[[], AlertConfig],
    ) -> None:
        self._orchestrator = orchestrator
        self._dispatcher = dispatcher
        self._contact_provider = contact_provider

    async def run(self, frame: bytes | str, model_id: str) -> CycleOutcome:
        report = await self._orchestrator.run(frame, model_id)
        alert = await self._dispatcher.maybe_alert(report.results, self._contact_provider())
        return CycleOutcome(report=report, alert=alert)


class RealtimeSession:
    def __init__(self, cycle: DetectionCycle) -> None:
        self._cycle = cycle
        self._in_flight = False
        self.completed_count = 0
        self.skipped_count = 0

    @property
    def busy(self) -> bool:
        return self._in_flight

    async def submit(self, frame: bytes | str, model_id: str) -> CycleOutcome | None:
        # No await between the check and the flag update, so this is atomic on the event loop.
        if self._in_flight:
            self.skipped_count += 1
            logger.debug('Skipping frame; detection cycle in flight skipped=%s', self.skipped_count)
            return None
        self._in_flight = True
        try:
            outcome = await self._cycle.run(frame, model_id)
        finally:
            self._in_flight = False
        self.completed_count += 1
        return outcome


class FrameSource(ABC):
    def start(self) -> None:
        pass

    @abstractmethod
    def read(self) -> bytes | str | None:
        raise NotImplementedError

    def stop(self) -> None:
        pass


class DirectoryFrameSource(FrameSource):
    """Replays the images of a folder in name order, looping forever."""

    def __init__(self, directory: str) -> None:
        self._directory = Path(directory)
        self._frames: itertools.cycle | None = None

    def start(self) -> None:
        paths = sorted(
            path for path in self._directory.iterdir() if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES
        )
        if not paths:
            raise FileNotFoundError(f'no image frames in {self._directory.as_posix()}')
        self._frames = itertools.cycle(paths)
        logger.info('Frame source started directory=%s frames=%s', self._directory.as_posix(), len(paths))

    def read(self) -> bytes | None:
        if self._frames is None:
            return None
        return next(self._frames).read_bytes()

    def stop(self) -> None:
        self._frames = None


class CaptureLoop:
    def __init__(
        self,
        session: RealtimeSession,
        source: FrameSource,
        model_id: str,
        interval_ms: int = 1000,
        on_outcome: Callable[[CycleOutcome], None] | None = None,
    ) -> None:
        self._session = session
        self._source = source
        self._model_id = model_id
        self._interval_ms = max(int(interval_ms), 1)
        self._on_outcome = on_outcome
        self._ticker: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def running(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    def start(self) -> None:
        if self.running:
            return
        self._source.start()
        self._ticker = asyncio.create_task(self._tick_forever())

    async def stop(self) -> None:
        try:
            if self._ticker is not None:
                self._ticker.cancel()
                try:
                    await self._ticker
                except asyncio.CancelledError:
                    pass
                self._ticker = None
            if self._pending:
                await asyncio.gather(*self._pending, return_exceptions=True)
        finally:
            self._source.stop()

    async def _tick_forever(self) -> None:
        while True:
            await self.tick()
            await asyncio.sleep(self._interval_ms / 1000.0)

    async def tick(self) -> None:
        try:
            # Sources may block on disk or device I/O.
            frame = await asyncio.to_thread(self._source.read)
        except Exception:
            logger.exception('Frame read failed model=%s', self._model_id)
            return
        if frame is None:
            return
        task = asyncio.create_task(self._run_cycle(frame))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_cycle(self, frame: bytes | str) -> None:
        try:
            outcome = await self._session.submit(frame, self._model_id)
        except Exception:
            logger.exception('Detection cycle failed model=%s', self._model_id)
            return
        if outcome is not None and self._on_outcome is not None:
            self._on_outcome(outcome)


def create_capture_loop(
    settings: Settings,
    session: RealtimeSession,
    source: FrameSource,
    on_outcome: Callable[[CycleOutcome], None] | None = None,
) -> CaptureLoop:
    return CaptureLoop(
        session,
        source,
        settings.realtime_model_id,
        interval_ms=settings.capture_interval_ms,
        on_outcome=on_outcome,
    )
