"""Incremental translation engine.

Every move request becomes a :class:`TranslationSegment` in a per-object
ledger.  Once per frame the engine advances all segments and applies only
the part of each segment's delta that has not been applied yet (tracked in
its ``checkpoint``).  Because each segment only ever adds its own
increment, any number of overlapping moves on the same object sum instead
of overwriting one another.
"""

from __future__ import annotations

import logging
import math
import time
import weakref
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np

from .config import PlayerConfig
from .easing import EasingDirection, EasingStyle, evaluate, resolve_direction, resolve_style
from .errors import InvalidArgument
from .math3d import Pose, as_vector, is_number
from .scene import Model, Node, Part, Scene
from .scheduler import FrameScheduler
from .signal import Connection

log = logging.getLogger(__name__)


@dataclass
class TranslationSegment:

    start_time: float
    target: np.ndarray
    duration: float
    local: bool = False
    easing_style: EasingStyle = EasingStyle.SINE
    easing_direction: EasingDirection = EasingDirection.IN_OUT
    checkpoint: np.ndarray = field(default_factory=lambda: np.zeros(3))
    done: bool = False

    def progress(self, now: float) -> float:
        if self.duration <= 0.0:
            return 1.0
        return min(1.0, max(0.0, (now - self.start_time) / self.duration))

    def advance(self, now: float) -> np.ndarray:
        """Return the increment to apply at *now* and move the checkpoint."""
        progress = self.progress(now)
        if progress >= 1.0:
            applied = self.target.copy()
            self.done = True
        else:
            applied = self.target * evaluate(progress, self.easing_style, self.easing_direction)
        increment = applied - self.checkpoint
        self.checkpoint = applied
        return increment


def _coerce_style(style: Any, fallback: str) -> EasingStyle:
    try:
        return resolve_style(style)
    except ValueError:
        log.warning("Unknown easing style %r, using %s", style, fallback)
        return resolve_style(fallback)


def _coerce_direction(direction: Any, fallback: str) -> EasingDirection:
    try:
        return resolve_direction(direction)
    except ValueError:
        log.warning("Unknown easing direction %r, using %s", direction, fallback)
        return resolve_direction(fallback)


class InterpolationEngine:
    """Owns the translation ledgers and the standing per-frame loop.

    Parts and models are kept in separate ledgers.  Parts changed in one
    tick are written with a single ``scene.bulk_move_to`` once there are at
    least ``config.batch_threshold`` of them; models are pivoted one by one
    so each group moves atomically.
    """

    def __init__(
        self,
        scene: Scene,
        scheduler: FrameScheduler,
        config: PlayerConfig | None = None,
        perf_counter: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.scene = scene
        self.scheduler = scheduler
        self.config = config or PlayerConfig()
        self._perf_counter = perf_counter
        self._parts: weakref.WeakKeyDictionary[Part, list[TranslationSegment]] = weakref.WeakKeyDictionary()
        self._models: weakref.WeakKeyDictionary[Model, list[TranslationSegment]] = weakref.WeakKeyDictionary()
        self._connection: Connection | None = None
        self._last_tick: float | None = None
        self.throttled = False

    # -- requests ------------------------------------------------------------

    def request_move(
        self,
        obj: Any,
        translation: Any,
        duration: Any,
        local: bool = False,
        easing_style: EasingStyle | str | None = None,
        easing_direction: EasingDirection | str | None = None,
    ) -> TranslationSegment:
        """Queue a translation of *obj* by *translation* over *duration* seconds.

        Nothing moves until the next tick.
        """
        if not isinstance(obj, (Part, Model)):
            raise InvalidArgument("obj", "only a Part or a Model with a primary part can be moved")
        target = as_vector(translation, "translation")
        if not is_number(duration) or math.isnan(duration) or math.isinf(duration):
            raise InvalidArgument("duration", f"expected a finite number, got {duration!r}")
        if isinstance(obj, Model) and obj.primary_part is None:
            parts = obj.parts()
            if not parts:
                raise InvalidArgument("obj", f"model {obj.name!r} has no parts to use as primary part")
            obj.primary_part = parts[0]
            log.warning("Model %r has no primary part; using %r", obj.name, parts[0].name)

        segment = TranslationSegment(
            start_time=self.scheduler.now,
            target=target,
            duration=float(duration),
            local=bool(local),
            easing_style=_coerce_style(easing_style or self.config.default_easing_style,
                                       self.config.default_easing_style),
            easing_direction=_coerce_direction(easing_direction or self.config.default_easing_direction,
                                               self.config.default_easing_direction),
        )
        ledger = self._models if isinstance(obj, Model) else self._parts
        ledger.setdefault(obj, []).append(segment)
        return segment

    def move_water(self, obj: Any, translation: Any, duration: Any, local: bool = False) -> TranslationSegment:
        """Constant-speed move used for liquids."""
        return self.request_move(obj, translation, duration, local, EasingStyle.LINEAR, EasingDirection.OUT)

    def is_moving(self, obj: Node) -> bool:
        return obj in self._parts or obj in self._models

    def active_segments(self, obj: Node) -> list[TranslationSegment]:
        ledger = self._models if isinstance(obj, Model) else self._parts
        return list(ledger.get(obj, ()))

    def __len__(self) -> int:
        return len(self._parts) + len(self._models)

    # -- loop ----------------------------------------------------------------

    def start(self) -> None:
        if self._connection is None:
            self._connection = self.scheduler.on_frame(self._on_frame)

    def stop(self) -> None:
        if self._connection is not None:
            self._connection.disconnect()
            self._connection = None

    def _on_frame(self, now: float, dt: float) -> None:
        if self.throttled and self._last_tick is not None:
            if now - self._last_tick < self.config.throttle_interval:
                return
        self.tick(now)

    def tick(self, now: float) -> int:
        """Advance every ledger to *now* and write the new poses.

        Returns the number of objects whose pose was written.
        """
        started = self._perf_counter()
        self._last_tick = now

        parts, part_poses = self._collect(self._parts, now, lambda part: part.pose)
        if parts:
            if len(parts) >= self.config.batch_threshold:
                self._write(lambda: self.scene.bulk_move_to(parts, part_poses), "bulk move")
            else:
                for part, pose in zip(parts, part_poses):
                    self._write(lambda: setattr(part, "pose", pose), part.name)

        models, model_poses = self._collect(self._models, now, lambda model: model.get_pivot())
        for model, pose in zip(models, model_poses):
            self._write(lambda: model.pivot_to(pose), model.name)

        elapsed = self._perf_counter() - started
        over_budget = elapsed > self.config.frame_budget
        if over_budget != self.throttled:
            self.throttled = over_budget
            if over_budget:
                log.warning("Interpolation tick took %.1f ms; throttling", elapsed * 1000.0)
            else:
                log.info("Interpolation back under budget; resuming per-frame ticks")
        return len(parts) + len(models)

    def _collect(self, ledger, now: float, read_pose: Callable[[Any], Pose]) -> tuple[list, list[Pose]]:
        objects: list = []
        poses: list[Pose] = []
        for obj, segments in list(ledger.items()):
            if obj.destroyed:
                log.debug("Dropping moves for destroyed %r", obj)
                del ledger[obj]
                continue
            try:
                pose = self._compose(read_pose(obj), segments, now)
            except Exception:
                log.exception("Failed to interpolate %r; dropping its moves", obj)
                del ledger[obj]
                continue
            segments[:] = [s for s in segments if not s.done]
            if not segments:
                del ledger[obj]
            objects.append(obj)
            poses.append(pose)
        return objects, poses

    @staticmethod
    def _compose(pose: Pose, segments: list[TranslationSegment], now: float) -> Pose:
        local_sum = np.zeros(3)
        world_sum = np.zeros(3)
        for segment in segments:
            if segment.local:
                local_sum += segment.advance(now)
            else:
                world_sum += segment.advance(now)
        return pose.translated_local(local_sum).translated_world(world_sum)

    @staticmethod
    def _write(apply: Callable[[], None], label: str) -> None:
        try:
            apply()
        except Exception:
            log.exception("Failed to apply pose for %s", label)
