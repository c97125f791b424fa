"""Timeline and keyframe data read from the scene tree.

A timeline is a ``Configuration`` node carrying at least one trigger
attribute.  Its keyframes are the ``ObjectValue`` nodes below it that name
a function and a timestamp.  Both are read once into immutable records;
the runtime never writes to the authored nodes.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from .actions import Action, parse_action
from .errors import MalformedKeyframe
from .math3d import is_number
from .scene import Node

log = logging.getLogger(__name__)

TIMELINE_CLASS = "Configuration"
KEYFRAME_CLASS = "ObjectValue"

TRIGGER_ATTRIBUTES = ("Trigger_Delay", "Trigger_Button", "Trigger_Timeline", "Trigger_Touch")


@dataclass(frozen=True)
class Keyframe:

    name: str
    function: str
    timestamp: float
    length: float = 0.0
    target: Any = None
    attributes: Mapping[str, Any] = field(default_factory=dict)
    action: Action | None = None

    @property
    def repeat_count(self) -> int:
        value = self.attributes.get("Tween_RepeatCount")
        return int(value) if is_number(value) else 0

    @property
    def reverses(self) -> bool:
        return bool(self.attributes.get("Tween_Reverses") or False)

    @property
    def effective_length(self) -> float:
        """Length including repeats and reversal; inf when repeating forever."""
        if self.repeat_count == -1:
            return math.inf
        return self.length * (self.repeat_count + 1) * (2 if self.reverses else 1)

    @property
    def end(self) -> float:
        return self.timestamp + self.effective_length


def get_duration(keyframes: list[Keyframe]) -> float:
    """Latest keyframe end; ``math.inf`` if any keyframe repeats forever.

    >>> get_duration([Keyframe("a", "Alert", 1.0, 2.0), Keyframe("b", "Alert", 4.0)])
    4.0
    """
    max_end = 0.0
    for keyframe in keyframes:
        end = keyframe.end
        if math.isinf(end):
            return math.inf
        if end > max_end:
            max_end = end
    return max_end


@dataclass(frozen=True)
class Timeline:

    name: str
    node: Node | None = None
    delay: float | None = None
    button: Any = None
    touch: str | None = None
    chain_source: str | None = None
    repeat_on_completion: bool = False
    touch_allow_multiple: bool = False
    keyframes: tuple[Keyframe, ...] = ()

    @property
    def duration(self) -> float:
        return get_duration(list(self.keyframes))

    @property
    def has_touch_trigger(self) -> bool:
        return isinstance(self.touch, str) and self.touch != ""

    @property
    def has_button_trigger(self) -> bool:
        return is_number(self.button) and self.button > 0

    @property
    def has_delay_trigger(self) -> bool:
        return is_number(self.delay)

    @property
    def loops(self) -> bool:
        """Whether a completed run schedules itself again."""
        if not self.repeat_on_completion:
            return False
        return not (self.has_touch_trigger and self.touch_allow_multiple)


def is_timeline(node: Node) -> bool:
    if node.class_name != TIMELINE_CLASS:
        return False
    # A zero delay or an empty tag still declares a trigger; 0 == False, so
    # compare by identity.
    for name in TRIGGER_ATTRIBUTES:
        value = node.get_attribute(name)
        if value is not None and value is not False:
            return True
    return False


def is_keyframe_node(node: Node) -> bool:
    return node.class_name == KEYFRAME_CLASS


def read_keyframe(node: Node) -> Keyframe:
    """Read one keyframe node; raises :class:`MalformedKeyframe`."""
    attributes = node.get_attributes()
    function = attributes.get("XFrame_Function")
    timestamp = attributes.get("XFrame_Timestamp")
    if not isinstance(function, str):
        raise MalformedKeyframe(node.name, "contains invalid function")
    if not is_number(timestamp):
        raise MalformedKeyframe(node.name, "contains invalid timestamp")
    length = attributes.get("XFrame_Length")
    if not is_number(length):
        length = 0.0
    try:
        action = parse_action(function, float(length), attributes)
    except (TypeError, ValueError) as exc:
        raise MalformedKeyframe(node.name, f"has unusable {function} parameters: {exc}") from exc
    return Keyframe(
        name=node.name,
        function=function,
        timestamp=float(timestamp),
        length=float(length),
        target=node.get_property("Value") if node.has_property("Value") else None,
        attributes=attributes,
        action=action,
    )


def read_timeline(node: Node) -> Timeline:
    """Read a timeline node and its valid keyframes, skipping malformed ones."""
    keyframes = []
    for descendant in node.get_descendants():
        if not is_keyframe_node(descendant):
            continue
        try:
            keyframes.append(read_keyframe(descendant))
        except MalformedKeyframe as exc:
            log.warning("Skipping keyframe in timeline %r: %s", node.name, exc)
    attrs = node.get_attributes()
    chain = attrs.get("Trigger_Timeline")
    return Timeline(
        name=node.name,
        node=node,
        delay=attrs.get("Trigger_Delay") if is_number(attrs.get("Trigger_Delay")) else None,
        button=attrs.get("Trigger_Button"),
        touch=attrs.get("Trigger_Touch") if isinstance(attrs.get("Trigger_Touch"), str) else None,
        chain_source=chain if isinstance(chain, str) and chain else None,
        repeat_on_completion=bool(attrs.get("RepeatOnCompletion") or False),
        touch_allow_multiple=bool(attrs.get("Touch_AllowMultiple") or False),
        keyframes=tuple(keyframes),
    )


def scan_timelines(folder: Node) -> list[Timeline]:
    """Every valid timeline below *folder*, in tree order."""
    timelines = []
    for node in folder.get_descendants():
        if is_timeline(node):
            timelines.append(read_timeline(node))
        elif node.class_name == TIMELINE_CLASS:
            log.debug("Configuration %r has no trigger; not a timeline", node.name)
    return timelines
