"""Timeline scheduling and triggering.

Each trigger of a timeline creates a :class:`TimelineRun` that moves
through ``IDLE -> SCHEDULED -> RUNNING -> COMPLETED``; a repeating run goes
from ``COMPLETED`` back to ``SCHEDULED``.  Runs are cooperative scheduler
tasks: keyframes are one timer each, and the run itself only waits for the
timeline's duration.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generator

from .config import PlayerConfig
from .dispatch import KeyframeDispatcher
from .errors import TimelineError
from .interpolation import InterpolationEngine
from .presentation import Presentation
from .scene import Part, Participant, Scene
from .scheduler import FrameScheduler
from .signal import Connection, Signal
from .timeline import Timeline, scan_timelines
from .tween import TweenService

log = logging.getLogger(__name__)


class RunState(Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(eq=False)
class TimelineRun:

    timeline: Timeline
    participant: Participant | None = None
    state: RunState = RunState.IDLE
    cycles: int = 0
    started_at: float | None = None


@dataclass(eq=False)
class TouchTrigger:
    """Contact listeners and debounce set for one touch-triggered timeline."""

    timeline: Timeline
    connections: list[Connection] = field(default_factory=list)
    debounce: set[int] = field(default_factory=set)


class TimelinePlayer:
    """Registers timelines from the scene and plays them when triggered.

    Button presses, touches and :meth:`trigger` calls made from a thread
    other than the one stepping the scheduler are queued for its next step.
    """

    def __init__(
        self,
        scene: Scene,
        scheduler: FrameScheduler,
        engine: InterpolationEngine | None = None,
        tweens: TweenService | None = None,
        presentation: Presentation | None = None,
        config: PlayerConfig | None = None,
    ) -> None:
        self.scene = scene
        self.scheduler = scheduler
        self.config = config or PlayerConfig()
        self.engine = engine or InterpolationEngine(scene, scheduler, self.config)
        self.tweens = tweens or TweenService(scheduler)
        self.dispatcher = KeyframeDispatcher(scene, scheduler, self.engine, self.tweens, presentation, self.config)
        self.state_changed = Signal("timeline.state_changed")
        self.timelines: list[Timeline] = []
        self.runs: list[TimelineRun] = []
        self.touch_triggers: list[TouchTrigger] = []
        self._buttons: dict[Any, list[Timeline]] = {}
        self._started = False

    @property
    def presentation(self) -> Presentation:
        return self.dispatcher.presentation

    def get_timeline(self, name: str) -> Timeline | None:
        for timeline in self.timelines:
            if timeline.name == name:
                return timeline
        return None

    # -- wiring --------------------------------------------------------------

    def start(self) -> None:
        """Scan the timelines folder and wire every trigger.

        Button and delay triggers are captured here once; timelines added to
        the scene later are not picked up.
        """
        if self._started:
            return
        folder = self.scene.root.find_first_child(self.config.timelines_folder)
        if folder is None:
            raise TimelineError(f"Scene requires a {self.config.timelines_folder!r} folder")
        self._started = True
        self.engine.start()
        self.tweens.start()
        self.timelines = scan_timelines(folder)
        log.info("Registered %d timelines", len(self.timelines))

        for timeline in self.timelines:
            if timeline.has_button_trigger:
                self._buttons.setdefault(timeline.button, []).append(timeline)
            if timeline.has_touch_trigger:
                if not timeline.has_button_trigger:
                    self._wire_touch(timeline)
                continue
            if timeline.has_delay_trigger:
                self.trigger(timeline)

    def _wire_touch(self, timeline: Timeline) -> None:
        trigger = TouchTrigger(timeline)
        self.touch_triggers.append(trigger)
        for node in self.scene.descendants():
            if len(trigger.connections) >= self.config.max_touch_listeners:
                break
            if node.name == timeline.touch and isinstance(node, Part):
                holder: list[Connection] = []
                conn = node.touched.connect(lambda hit, h=holder: self._on_touch(trigger, h[0], hit))
                holder.append(conn)
                trigger.connections.append(conn)
        log.debug("Timeline %r listens on %d parts named %r", timeline.name, len(trigger.connections), timeline.touch)

    def _on_touch(self, trigger: TouchTrigger, conn: Connection, hit: Any) -> None:
        if self.scheduler.driven_elsewhere:
            self.scheduler.call_soon_threadsafe(self._on_touch, trigger, conn, hit)
            return
        participant = self.scene.participant_from_hit(hit)
        if participant is None:
            return
        uid = participant.user_id
        if uid in trigger.debounce:
            log.debug("Touch on %r by %s suppressed by debounce", trigger.timeline.name, uid)
            return
        trigger.debounce.add(uid)
        allow_multiple = trigger.timeline.touch_allow_multiple
        self.trigger(trigger.timeline, participant if allow_multiple else None)
        if allow_multiple:
            self.scheduler.delay(self.config.touch_settle_delay, trigger.debounce.discard, uid)
            return
        conn.disconnect()

    def press_button(self, participant: Participant | None, button: Any) -> list[TimelineRun]:
        """Trigger every timeline bound to *button*."""
        return [self.trigger(timeline) for timeline in self._buttons.get(button, ())]

    # -- runs ----------------------------------------------------------------

    def trigger(self, timeline: Timeline, participant: Participant | None = None) -> TimelineRun:
        """Start a new run of *timeline*.

        From another thread the run is returned still ``IDLE`` and is
        scheduled on the next step.
        """
        run = TimelineRun(timeline, participant)
        if self.scheduler.driven_elsewhere:
            self.scheduler.call_soon_threadsafe(self._launch, run)
        else:
            self._launch(run)
        return run

    def _launch(self, run: TimelineRun) -> None:
        self.runs.append(run)
        self._set_state(run, RunState.SCHEDULED)
        self.scheduler.spawn(self._play, run)

    def _set_state(self, run: TimelineRun, state: RunState) -> None:
        run.state = state
        log.info("Timeline %r -> %s", run.timeline.name, state.value)
        self.state_changed.fire(run, state)

    def _play(self, run: TimelineRun) -> Generator[float, None, None]:
        timeline = run.timeline
        if timeline.delay is not None and timeline.delay > 0:
            yield timeline.delay
        duration = timeline.duration
        while True:
            run.cycles += 1
            run.started_at = self.scheduler.now
            self._set_state(run, RunState.RUNNING)
            for keyframe in timeline.keyframes:
                self.scheduler.delay(keyframe.timestamp, self.dispatcher.dispatch, timeline, keyframe, run.participant)
            if math.isinf(duration):
                self._complete(run)
                return
            yield duration
            self._complete(run)
            if not timeline.loops:
                return
            self._set_state(run, RunState.SCHEDULED)

    def _complete(self, run: TimelineRun) -> None:
        self._set_state(run, RunState.COMPLETED)
        for other in self.timelines:
            if other is not run.timeline and other.chain_source == run.timeline.name:
                # Next step, so zero-length chains cannot recurse within one frame.
                self.scheduler.defer(self.trigger, other)
