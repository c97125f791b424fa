"""Setting and tweening node properties and attributes.

Attributes cannot be tweened directly, so each animated attribute goes
through a short-lived typed value holder: the holder is tweened and every
change of its ``Value`` is copied back into the attribute.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import numpy as np

from .config import PlayerConfig
from .errors import InvalidArgument, PropertyApplicationFailure
from .math3d import Pose, as_vector, compose_relative, is_number, is_vector
from .scene import Node
from .signal import Signal
from .tween import Tween, TweenInfo, TweenService

log = logging.getLogger(__name__)


class ValueHolder:
    """Typed single-value container that can be the target of a tween."""

    type_name = "Value"

    def __init__(self, value: Any) -> None:
        self._value = self.coerce(value)
        self.changed = Signal(f"{self.type_name}.changed")

    @staticmethod
    def coerce(value: Any) -> Any:
        return value

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new: Any) -> None:
        self._value = self.coerce(new)
        self.changed.fire(self._value)

    def get_property(self, name: str) -> Any:
        if name != "Value":
            raise PropertyApplicationFailure(self.type_name, name)
        return self._value

    def set_property(self, name: str, value: Any) -> None:
        if name != "Value":
            raise PropertyApplicationFailure(self.type_name, name)
        self.value = value

    def destroy(self) -> None:
        self.changed.disconnect_all()


class NumberValue(ValueHolder):
    type_name = "NumberValue"

    @staticmethod
    def coerce(value: Any) -> float:
        return float(value)


class VectorValue(ValueHolder):
    type_name = "VectorValue"

    @staticmethod
    def coerce(value: Any) -> np.ndarray:
        return as_vector(value, "value")


class PoseValue(ValueHolder):
    type_name = "PoseValue"

    @staticmethod
    def coerce(value: Any) -> Pose:
        if not isinstance(value, Pose):
            raise InvalidArgument("value", f"expected a Pose, got {type(value).__name__}")
        return value


def holder_for(value: Any) -> type[ValueHolder] | None:
    """Holder class able to tween *value*, or None."""
    if isinstance(value, Pose):
        return PoseValue
    if is_number(value):
        return NumberValue
    if is_vector(value) or (isinstance(value, (list, tuple)) and len(value) == 3
                            and all(is_number(v) for v in value)):
        return VectorValue
    return None


class PropertyAnimator:
    """Applies keyframe property and attribute overrides, instantly or tweened."""

    def __init__(self, tweens: TweenService, config: PlayerConfig | None = None) -> None:
        self.tweens = tweens
        self.config = config or PlayerConfig()

    def set_properties(
        self,
        obj: Node,
        properties: Mapping[str, Any],
        attributes: Mapping[str, Any],
        tween_info: TweenInfo | None = None,
        apply_to_descendants: bool = False,
        relative: bool = False,
    ) -> list[Tween]:
        """Apply *properties* and *attributes* to *obj*.

        With ``tween_info=None`` the change is immediate; otherwise it is
        animated.  With ``relative`` the given values are deltas composed onto
        the current ones, so repeating a relative call keeps accumulating.
        Returns the tweens that were started.
        """
        if not isinstance(obj, Node):
            raise InvalidArgument("obj", f"expected a scene node, got {type(obj).__name__}")
        if obj.name in self.config.protected_names:
            raise InvalidArgument("obj", f"{obj.name} can not be accessed by set_properties")

        started: list[Tween] = []
        for name, value in attributes.items():
            if tween_info is None:
                obj.set_attribute(name, value)
                continue
            tween = self._tween_attribute(obj, name, value, tween_info, relative)
            if tween is not None:
                started.append(tween)

        targets = [obj, *obj.get_descendants()] if apply_to_descendants else [obj]
        for target in targets:
            if tween_info is None:
                for name, value in properties.items():
                    try:
                        if relative:
                            value = compose_relative(target.get_property(name), value)
                        target.set_property(name, value)
                    except (PropertyApplicationFailure, TypeError, InvalidArgument) as exc:
                        log.debug("Skipping property %r on %r: %s", name, target, exc)
                continue
            goals = self._resolve_goals(target, properties, relative)
            if not goals:
                continue
            try:
                tween = self.tweens.create(target, tween_info, goals)
                tween.play()
            except (PropertyApplicationFailure, TypeError, InvalidArgument) as exc:
                log.debug("Skipping tween on %r: %s", target, exc)
                continue
            started.append(tween)
        return started

    @staticmethod
    def _resolve_goals(target: Node, properties: Mapping[str, Any], relative: bool) -> dict[str, Any]:
        goals: dict[str, Any] = {}
        for name, value in properties.items():
            try:
                current = target.get_property(name)
                goals[name] = compose_relative(current, value) if relative else value
            except (PropertyApplicationFailure, TypeError, InvalidArgument) as exc:
                log.debug("Skipping property %r on %r: %s", name, target, exc)
        return goals

    def _tween_attribute(
        self,
        obj: Node,
        name: str,
        value: Any,
        tween_info: TweenInfo,
        relative: bool,
    ) -> Tween | None:
        holder_cls = holder_for(value)
        if holder_cls is None:
            log.warning("Attribute %r: %s is not a tweenable value type", name, type(value).__name__)
            return None
        current = obj.get_attribute(name)
        if current is None:
            log.warning("Attribute %r is not set on %r; cannot tween it", name, obj)
            return None
        try:
            holder = holder_cls(current)
            goal = compose_relative(holder.value, holder_cls.coerce(value)) if relative else holder_cls.coerce(value)
        except (TypeError, ValueError) as exc:
            log.warning("Attribute %r on %r: %s", name, obj, exc)
            return None

        holder.changed.connect(lambda new: obj.set_attribute(name, new))
        tween = self.tweens.create(holder, tween_info, {"Value": goal})
        tween.completed.connect(lambda state: holder.destroy())
        tween.play()
        return tween
