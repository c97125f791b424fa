"""Frame-driven tween facility.

A :class:`Tween` animates named fields of a target (anything exposing
``get_property`` / ``set_property``) from their values at ``play()`` time
to goal values.  :class:`TweenService` creates tweens and advances all
playing ones once per scheduler frame.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from .easing import EasingDirection, EasingStyle, evaluate, resolve_direction, resolve_style
from .math3d import interpolate
from .scheduler import FrameScheduler
from .signal import Connection, Signal

log = logging.getLogger(__name__)


class TweenState(Enum):
    BEGIN = "Begin"
    DELAYED = "Delayed"
    PLAYING = "Playing"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


@dataclass(frozen=True)
class TweenInfo:

    duration: float = 1.0
    easing_style: EasingStyle = EasingStyle.QUAD
    easing_direction: EasingDirection = EasingDirection.OUT
    repeat_count: int = 0
    reverses: bool = False
    delay_time: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "easing_style", resolve_style(self.easing_style))
        object.__setattr__(self, "easing_direction", resolve_direction(self.easing_direction))

    @property
    def cycle_length(self) -> float:
        return self.duration * (2.0 if self.reverses else 1.0)

    @property
    def total_length(self) -> float:
        """Seconds from play to completion, excluding the delay; inf when repeating forever."""
        if self.repeat_count < 0:
            return float("inf")
        return self.cycle_length * (self.repeat_count + 1)


class Tween:

    def __init__(self, service: TweenService, target: Any, info: TweenInfo, goals: Mapping[str, Any]) -> None:
        self._service = service
        self.target = target
        self.info = info
        self.goals = dict(goals)
        self.state = TweenState.BEGIN
        self.completed = Signal("tween.completed")
        self._start_values: dict[str, Any] = {}
        self._started_at = 0.0

    def play(self) -> None:
        if self.state in (TweenState.PLAYING, TweenState.DELAYED):
            return
        self._started_at = self._service.scheduler.now
        self._start_values = {}
        for name in self.goals:
            self._start_values[name] = self.target.get_property(name)
        self.state = TweenState.DELAYED if self.info.delay_time > 0 else TweenState.PLAYING
        self._service._add(self)

    def cancel(self) -> None:
        if self.state in (TweenState.PLAYING, TweenState.DELAYED):
            self.state = TweenState.CANCELLED
            self._service._remove(self)
            self.completed.fire(self.state)

    def _alpha(self, elapsed: float) -> tuple[float, bool]:
        """Raw (un-eased) position in the current cycle, and whether we are done."""
        info = self.info
        if elapsed >= info.total_length:
            return (0.0 if info.reverses else 1.0), True
        if info.duration <= 0.0:
            return 1.0, False
        into_cycle = elapsed % info.cycle_length
        if info.reverses and into_cycle > info.duration:
            return 1.0 - (into_cycle - info.duration) / info.duration, False
        return into_cycle / info.duration, False

    def _update(self, now: float) -> bool:
        """Write the current values; returns True once the tween has finished."""
        elapsed = now - self._started_at - self.info.delay_time
        if elapsed < 0.0:
            return False
        self.state = TweenState.PLAYING
        raw, finished = self._alpha(elapsed)
        eased = evaluate(raw, self.info.easing_style, self.info.easing_direction)
        for name, goal in self.goals.items():
            value = interpolate(self._start_values[name], goal, eased)
            try:
                self.target.set_property(name, value)
            except Exception:
                log.exception("Tween failed to write %r", name)
        if finished:
            self.state = TweenState.COMPLETED
        return finished


class TweenService:
    """Creates tweens and steps the playing ones on every frame."""

    def __init__(self, scheduler: FrameScheduler) -> None:
        self.scheduler = scheduler
        self._playing: list[Tween] = []
        self._connection: Connection | None = None

    @property
    def playing(self) -> list[Tween]:
        return list(self._playing)

    def create(self, target: Any, info: TweenInfo, goals: Mapping[str, Any]) -> Tween:
        return Tween(self, target, info, goals)

    def start(self) -> None:
        if self._connection is None:
            self._connection = self.scheduler.on_frame(self._on_frame)

    def _add(self, tween: Tween) -> None:
        self.start()
        if tween not in self._playing:
            self._playing.append(tween)

    def _remove(self, tween: Tween) -> None:
        if tween in self._playing:
            self._playing.remove(tween)

    def _on_frame(self, now: float, dt: float) -> None:
        for tween in list(self._playing):
            if tween.state is TweenState.CANCELLED:
                continue
            if tween._update(now):
                self._remove(tween)
                tween.completed.fire(tween.state)
