"""Keyframe dispatch: turn a decoded keyframe action into engine calls."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from .actions import (
    AlertAction,
    MovePartAction,
    SetCameraAction,
    SetPropertiesAction,
    SetWaterStateAction,
    ShakeCameraAction,
    SoundAction,
    TeleportAction,
)
from .config import PlayerConfig
from .easing import EasingDirection, EasingStyle
from .errors import InvalidArgument
from .interpolation import InterpolationEngine
from .math3d import Pose, as_vector
from .presentation import LoggingPresentation, Presentation
from .properties import PropertyAnimator
from .scene import Model, Node, Part, Participant, Scene, StringValue
from .scheduler import FrameScheduler
from .timeline import Keyframe, Timeline
from .tween import TweenInfo, TweenService

log = logging.getLogger(__name__)

WATER_COLORS = {
    "water": np.array([33, 85, 185]) / 255.0,
    "acid": np.array([0.0, 1.0, 0.0]),
    "lava": np.array([1.0, 0.0, 0.0]),
}


class KeyframeDispatcher:

    def __init__(
        self,
        scene: Scene,
        scheduler: FrameScheduler,
        engine: InterpolationEngine,
        tweens: TweenService,
        presentation: Presentation | None = None,
        config: PlayerConfig | None = None,
    ) -> None:
        self.scene = scene
        self.scheduler = scheduler
        self.engine = engine
        self.tweens = tweens
        self.config = config or PlayerConfig()
        self.presentation = presentation if presentation is not None else LoggingPresentation()
        self.animator = PropertyAnimator(tweens, self.config)

    def dispatch(self, timeline: Timeline, keyframe: Keyframe, participant: Participant | None = None) -> None:
        """Perform *keyframe*; failures are logged, never raised."""
        action = keyframe.action
        if action is None:
            return
        log.debug("Timeline %r: %s %r", timeline.name, keyframe.function, keyframe.name)
        try:
            self._perform(action, keyframe.target, keyframe.length, participant)
        except Exception:
            log.exception("Keyframe %r (%s) in timeline %r failed", keyframe.name, keyframe.function, timeline.name)

    def _perform(self, action: Any, target: Any, length: float, participant: Participant | None) -> None:
        if isinstance(action, SetPropertiesAction):
            if target is not None:
                self.animator.set_properties(
                    target,
                    action.properties,
                    action.attributes,
                    action.tween_info,
                    action.apply_to_descendants,
                    action.relative,
                )
        elif isinstance(action, MovePartAction):
            if target is not None:
                self.engine.request_move(
                    target,
                    action.translation,
                    length,
                    action.local,
                    action.easing_style,
                    action.easing_direction,
                )
        elif isinstance(action, SetWaterStateAction):
            if target is not None:
                self.set_water_state(target, action.state, action.dont_change_color, action.specified_color)
        elif isinstance(action, AlertAction):
            self.presentation.alert(action.message, action.color, length)
        elif isinstance(action, SoundAction):
            parent = target if isinstance(target, Node) else self.scene.root
            self.presentation.play_sound(parent, action.sound_id, action.volume, action.pitch)
        elif isinstance(action, ShakeCameraAction):
            self.presentation.shake_camera(action.intensity, length)
        elif isinstance(action, TeleportAction):
            if target is not None:
                self.teleport(target, participant)
        elif isinstance(action, SetCameraAction):
            self.presentation.set_camera(target, action.enabled, action.cam_info, action.relative_to_subject)

    # -- thin effects ------------------------------------------------------

    def teleport(self, destination: Any, participant: Participant | None) -> None:
        """Relocate *participant*, or every participant, to *destination*."""
        pose = destination
        if isinstance(destination, Part):
            pose = destination.pose
        elif isinstance(destination, Model):
            try:
                pose = destination.get_pivot()
            except InvalidArgument:
                pose = None
        if not isinstance(pose, Pose):
            log.warning("Teleport destination %r has no pose", destination)
            return
        for p in [participant] if participant is not None else list(self.scene.participants):
            self.presentation.relocate(p, pose)

    def set_water_state(self, water: Any, state: Any, dont_change_color: bool = False, specified_color: Any = None) -> None:
        """Tint *water* for its new state and tag it once the transition ends."""
        if not isinstance(water, Part):
            return
        state = state.lower() if isinstance(state, str) else "water"
        if not dont_change_color:
            color = None
            if specified_color is not None:
                try:
                    color = as_vector(specified_color, "specified_color")
                except ValueError:
                    log.warning("Ignoring malformed water color %r", specified_color)
            if color is None:
                color = WATER_COLORS.get(state)
            if color is not None:
                info = TweenInfo(self.config.water_transition, EasingStyle.LINEAR, EasingDirection.IN_OUT)
                self.tweens.create(water, info, {"Color": color}).play()
        self.scheduler.delay(self.config.water_transition, _tag_water_state, water, state)


def _tag_water_state(water: Part, state: str) -> None:
    if water.destroyed:
        return
    tag = water.find_first_child("State") or water.find_first_child("WaterState")
    if tag is None:
        tag = StringValue("WaterState", parent=water)
    tag.set_property("Value", state)
