"""Keyframe actions: the closed set of things a keyframe can do.

A keyframe's ``XFrame_Function`` name is decoded once, when the timeline
is read, into one of the payload dataclasses below.  Names outside
:class:`KeyframeKind` decode to ``None`` and the keyframe does nothing.

Keyframe attributes follow three namespaces:

* ``Property_<Name>``: direct property override
* ``Attribute_<Name>``: key-value attribute override
* ``Tween_<Param>``: tween configuration (``EasingStyle``,
  ``EasingDirection``, ``RepeatCount``, ``Reverses``, ``DelayTime``)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union

from .easing import EasingDirection, EasingStyle, resolve_direction, resolve_style
from .tween import TweenInfo

log = logging.getLogger(__name__)

PROPERTY_PREFIX = "Property_"
ATTRIBUTE_PREFIX = "Attribute_"
TWEEN_PREFIX = "Tween_"


class KeyframeKind(Enum):
    SET_PROPERTIES = "SetProperties"
    TWEEN = "Tween"
    MOVE_PART = "MovePart"
    SET_WATER_STATE = "SetWaterState"
    ALERT = "Alert"
    SOUND = "Sound"
    SHAKE_CAMERA = "ShakeCamera"
    TELEPORT = "Teleport"
    SET_CAMERA = "SetCamera"


@dataclass(frozen=True)
class SetPropertiesAction:
    properties: dict[str, Any] = field(default_factory=dict)
    attributes: dict[str, Any] = field(default_factory=dict)
    tween_info: TweenInfo | None = None
    apply_to_descendants: bool = False
    relative: bool = False


@dataclass(frozen=True)
class MovePartAction:
    translation: Any
    local: bool = False
    easing_style: Any = None
    easing_direction: Any = None


@dataclass(frozen=True)
class SetWaterStateAction:
    state: Any = None
    dont_change_color: bool = False
    specified_color: Any = None


@dataclass(frozen=True)
class AlertAction:
    message: Any = None
    color: Any = None


@dataclass(frozen=True)
class SoundAction:
    sound_id: Any = None
    volume: float = 1.0
    pitch: float = 1.0


@dataclass(frozen=True)
class ShakeCameraAction:
    intensity: Any = None


@dataclass(frozen=True)
class TeleportAction:
    pass


@dataclass(frozen=True)
class SetCameraAction:
    enabled: Any = None
    cam_info: Any = None
    relative_to_subject: Any = None


Action = Union[
    SetPropertiesAction,
    MovePartAction,
    SetWaterStateAction,
    AlertAction,
    SoundAction,
    ShakeCameraAction,
    TeleportAction,
    SetCameraAction,
]


def _easing(value: Any, default: str, resolve) -> Any:
    try:
        return resolve(value if value is not None else default)
    except ValueError:
        log.warning("Unknown easing %r in tween config, using %s", value, default)
        return resolve(default)


def tween_info_from_attributes(length: float, attributes: Mapping[str, Any]) -> TweenInfo:
    """Build a :class:`TweenInfo` from ``Tween_*`` keyframe attributes."""
    return TweenInfo(
        duration=length,
        easing_style=_easing(attributes.get("Tween_EasingStyle"), EasingStyle.SINE.value, resolve_style),
        easing_direction=_easing(attributes.get("Tween_EasingDirection"), EasingDirection.IN_OUT.value,
                                 resolve_direction),
        repeat_count=int(attributes.get("Tween_RepeatCount") or 0),
        reverses=bool(attributes.get("Tween_Reverses") or False),
        delay_time=float(attributes.get("Tween_DelayTime") or 0.0),
    )


def _set_properties(length: float, attributes: Mapping[str, Any]) -> SetPropertiesAction:
    properties: dict[str, Any] = {}
    overrides: dict[str, Any] = {}
    for name, value in attributes.items():
        if name.startswith(PROPERTY_PREFIX):
            properties[name[len(PROPERTY_PREFIX):]] = value
        elif name.startswith(ATTRIBUTE_PREFIX):
            overrides[name[len(ATTRIBUTE_PREFIX):]] = value
    return SetPropertiesAction(
        properties=properties,
        attributes=overrides,
        tween_info=tween_info_from_attributes(length, attributes) if length > 0 else None,
        apply_to_descendants=bool(attributes.get("XFrame_ApplyToDescendants") or attributes.get("ApplyToDescendants")),
        relative=bool(attributes.get("XFrame_ApplyRelative") or attributes.get("ApplyRelative")),
    )


def parse_action(function: str, length: float, attributes: Mapping[str, Any]) -> Action | None:
    """Decode a keyframe function name and its attributes into an action."""
    try:
        kind = KeyframeKind(function)
    except ValueError:
        log.debug("Keyframe function %r is not recognised; it will be ignored", function)
        return None

    if kind in (KeyframeKind.SET_PROPERTIES, KeyframeKind.TWEEN):
        return _set_properties(length, attributes)
    if kind is KeyframeKind.MOVE_PART:
        return MovePartAction(
            translation=attributes.get("Translation"),
            local=bool(attributes.get("UseLocalSpace") or False),
            easing_style=attributes.get("EasingStyle"),
            easing_direction=attributes.get("EasingDirection"),
        )
    if kind is KeyframeKind.SET_WATER_STATE:
        return SetWaterStateAction(
            state=attributes.get("State"),
            dont_change_color=bool(attributes.get("DontChangeColor") or False),
            specified_color=attributes.get("SpecifiedColor"),
        )
    if kind is KeyframeKind.ALERT:
        return AlertAction(message=attributes.get("Message"), color=attributes.get("Color"))
    if kind is KeyframeKind.SOUND:
        return SoundAction(
            sound_id=attributes.get("SoundId"),
            volume=attributes.get("Volume") or 1.0,
            pitch=attributes.get("Pitch") or 1.0,
        )
    if kind is KeyframeKind.SHAKE_CAMERA:
        return ShakeCameraAction(intensity=attributes.get("Intensity"))
    if kind is KeyframeKind.TELEPORT:
        return TeleportAction()
    return SetCameraAction(
        enabled=attributes.get("Enabled"),
        cam_info=attributes.get("CamInfo"),
        relative_to_subject=attributes.get("RelativeToSubject"),
    )
