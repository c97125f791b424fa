"""Real-time frame loop driving a :class:`FrameScheduler`."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field

from .config import PlayerConfig
from .scheduler import FrameScheduler

log = logging.getLogger(__name__)


def _make_set_event() -> threading.Event:
    e = threading.Event()
    e.set()
    return e


@dataclass
class Runner:
    """Steps a scheduler at ``fps`` against the wall clock.

    ``play()`` runs the loop on a daemon thread; ``run_async()`` runs it in
    the caller's event loop.  Each frame steps the scheduler by the real
    time elapsed since the previous frame.  While playing, the runner's
    thread owns the scheduler, so host input from other threads is queued
    for the next frame.
    """

    scheduler: FrameScheduler
    fps: float = 60.0

    _thread: threading.Thread | None = field(default=None, init=False, repr=False)
    _stop_event: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False
    )
    _done_event: threading.Event = field(
        default_factory=_make_set_event, init=False, repr=False
    )
    _elapsed: float = field(default=0.0, init=False, repr=False)

    @classmethod
    def from_config(cls, scheduler: FrameScheduler, config: PlayerConfig) -> Runner:
        return cls(scheduler, fps=config.fps)

    @property
    def elapsed(self) -> float:
        """Seconds of wall-clock time played since the last ``play``."""
        return self._elapsed

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def state(self) -> str:
        """'playing' or 'stopped'."""
        return "playing" if self.is_running else "stopped"

    def play(self, duration: float | None = None) -> None:
        """Start stepping; stop by itself after *duration* seconds if given."""
        self.stop()
        self._elapsed = 0.0
        self._done_event.clear()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop,
            args=(duration,),
            daemon=True,
        )
        self.scheduler.owner = self._thread
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            if self._thread is not threading.current_thread():
                self._thread.join()
            self._thread = None

    def wait(self) -> None:
        self._done_event.wait()

    def play_sync(self, duration: float) -> None:
        self.play(duration)
        try:
            self.wait()
        except KeyboardInterrupt:
            self.stop()

    def _frame(self, dt: float) -> None:
        try:
            self.scheduler.step(dt)
        except Exception:
            log.exception("Error stepping frame at %.3fs", self.scheduler.now)

    def _loop(self, duration: float | None) -> None:
        frame_duration = 1.0 / self.fps
        start_time = time.monotonic()
        last = start_time
        frame_count = 0
        try:
            while not self._stop_event.is_set():
                now = time.monotonic()
                show_time = now - start_time
                if duration is not None and show_time > duration:
                    now = start_time + duration
                    show_time = duration
                self._frame(now - last)
                last = now
                self._elapsed = show_time

                if duration is not None and show_time >= duration:
                    break

                frame_count += 1
                next_target = start_time + (frame_count * frame_duration)
                delay = max(0.0, next_target - time.monotonic())

                if self._stop_event.wait(timeout=delay):
                    break
        finally:
            if self.scheduler.owner is threading.current_thread():
                self.scheduler.owner = None
            self._done_event.set()

    async def run_async(self, duration: float) -> None:
        """Async version of ``play_sync`` for callers already in an event loop."""
        frame_duration = 1.0 / self.fps
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        last = start_time
        self._elapsed = 0.0
        self.scheduler.owner = threading.current_thread()
        try:
            while True:
                now = min(loop.time(), start_time + duration)
                self._frame(now - last)
                last = now
                self._elapsed = now - start_time
                if self._elapsed >= duration:
                    break
                await asyncio.sleep(frame_duration)
        finally:
            self.scheduler.owner = None
