"""Single-threaded cooperative scheduler on a virtual frame clock.

Everything time-driven in scenecue (keyframe delays, debounce settles,
timeline runs, the interpolation loop, tweens) is scheduled here.  The
scheduler never looks at the wall clock: it moves only when ``step`` or
``advance`` is called, which the :class:`~scenecue.runner.Runner` does in
real time and tests do directly.
"""

from __future__ import annotations

import heapq
import inspect
import itertools
import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Generator

from .signal import Connection, Signal

log = logging.getLogger(__name__)

FrameCallback = Callable[[float, float], None]


@dataclass(order=True)
class TimerHandle:
    deadline: float
    seq: int
    callback: Callable[..., Any] = field(compare=False)
    args: tuple = field(compare=False, default=())
    cancelled: bool = field(compare=False, default=False)

    def cancel(self) -> None:
        self.cancelled = True


class Task:
    """A generator driven by the scheduler.

    Each ``yield seconds`` suspends the task for that long; ``yield`` or
    ``yield 0`` resumes it at the start of the next step.
    """

    def __init__(self, scheduler: FrameScheduler, gen: Generator[float | None, None, Any], name: str) -> None:
        self._scheduler = scheduler
        self._gen = gen
        self.name = name
        self.done = False
        self.failed = False
        self.result: Any = None

    def _resume(self) -> None:
        try:
            wait = self._gen.send(None)
        except StopIteration as stop:
            self.done = True
            self.result = stop.value
            return
        except Exception:
            self.done = True
            self.failed = True
            log.exception("Task %s failed", self.name)
            return
        if wait is None or wait <= 0:
            self._scheduler.defer(self._resume)
        else:
            self._scheduler.delay(wait, self._resume)


class FrameScheduler:
    """Timers, deferred calls, tasks and frame callbacks on one virtual clock.

    Only the thread that steps the scheduler may touch it, except through
    :meth:`call_soon_threadsafe`.  A driver stepping it from its own thread
    sets :attr:`owner` to that thread for as long as it runs.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.frame_count = 0
        self.frame = Signal("frame")
        self._timers: list[TimerHandle] = []
        self._deferred: list[tuple[Callable[..., Any], tuple]] = []
        self._seq = itertools.count()
        self._inbox: queue.SimpleQueue[tuple[Callable[..., Any], tuple]] = queue.SimpleQueue()
        self.owner: threading.Thread | None = None

    @property
    def pending(self) -> int:
        """Number of live timers, deferred calls and calls queued from other threads."""
        return sum(1 for t in self._timers if not t.cancelled) + len(self._deferred) + self._inbox.qsize()

    @property
    def driven_elsewhere(self) -> bool:
        """Whether another thread is currently stepping this scheduler."""
        owner = self.owner
        return owner is not None and owner is not threading.current_thread()

    def call_soon_threadsafe(self, callback: Callable[..., Any], *args: Any) -> None:
        """Queue ``callback(*args)`` from any thread for the start of the next step."""
        self._inbox.put((callback, args))

    def defer(self, callback: Callable[..., Any], *args: Any) -> None:
        """Run ``callback(*args)`` at the start of the next step."""
        self._deferred.append((callback, args))

    def delay(self, seconds: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        """Run ``callback(*args)`` once *seconds* of simulation time have passed."""
        handle = TimerHandle(self.now + max(0.0, seconds), next(self._seq), callback, args)
        heapq.heappush(self._timers, handle)
        return handle

    def spawn(self, fn: Callable[..., Any], *args: Any) -> Task | None:
        """Call ``fn(*args)`` now; drive it as a :class:`Task` if it is a generator."""
        try:
            result = fn(*args)
        except Exception:
            log.exception("Error spawning %s", getattr(fn, "__qualname__", fn))
            return None
        if not inspect.isgenerator(result):
            return None
        task = Task(self, result, getattr(fn, "__qualname__", repr(fn)))
        task._resume()
        return task

    def on_frame(self, callback: FrameCallback) -> Connection:
        """Register ``callback(now, dt)`` to run at the end of every step."""
        return self.frame.connect(callback)

    def step(self, dt: float) -> None:
        """Advance one frame of *dt* seconds.

        Calls queued from other threads run first, then calls deferred
        before this step, then due timers in deadline order, each with
        ``now`` set to its own deadline.  Then ``now`` moves to the end of
        the frame and the frame callbacks run.
        """
        target = self.now + max(0.0, dt)
        for _ in range(self._inbox.qsize()):
            try:
                callback, args = self._inbox.get_nowait()
            except queue.Empty:
                break
            self._run(callback, args)
        deferred, self._deferred = self._deferred, []
        for callback, args in deferred:
            self._run(callback, args)
        while self._timers and self._timers[0].deadline <= target:
            timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            self.now = max(self.now, timer.deadline)
            self._run(timer.callback, timer.args)
        self.now = target
        self.frame_count += 1
        self.frame.fire(self.now, dt)

    @staticmethod
    def _run(callback: Callable[..., Any], args: tuple) -> None:
        try:
            callback(*args)
        except Exception:
            log.exception("Error in scheduled callback %s", getattr(callback, "__qualname__", callback))

    def advance(self, seconds: float, frame: float = 1.0 / 60.0) -> None:
        """Step repeatedly until *seconds* have passed."""
        end = self.now + seconds
        while end - self.now > 1e-9:
            self.step(min(frame, end - self.now))
