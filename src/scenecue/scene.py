"""In-memory scene node provider.

The timeline runtime only touches scene objects through the methods here:
pose read/write, property and attribute access, descendant scans, contact
signals and participant lookup.  A host application can substitute its own
objects as long as they expose the same surface.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

import numpy as np

from .errors import InvalidArgument, PropertyApplicationFailure
from .math3d import Pose, as_vector
from .signal import Signal

log = logging.getLogger(__name__)


class Node:
    """A named scene object with properties, attributes and children.

    Properties are the fixed, typed fields of a node class (``Pose``,
    ``Color``, ``Value`` ...); writing an unknown property fails.
    Attributes are free-form key-value pairs.
    """

    class_name = "Node"
    default_properties: dict[str, Any] = {}

    def __init__(
        self,
        name: str,
        properties: dict[str, Any] | None = None,
        attributes: dict[str, Any] | None = None,
        parent: Node | None = None,
    ) -> None:
        self.name = name
        self._properties: dict[str, Any] = {
            key: (value.copy() if isinstance(value, np.ndarray) else value)
            for key, value in self.default_properties.items()
        }
        self._attributes: dict[str, Any] = dict(attributes or {})
        self._children: list[Node] = []
        self.parent: Node | None = None
        self.destroyed = False
        self.property_changed = Signal(f"{name}.property_changed")
        self.attribute_changed = Signal(f"{name}.attribute_changed")
        for key, value in (properties or {}).items():
            self.set_property(key, value)
        if parent is not None:
            parent.add_child(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    # -- tree --------------------------------------------------------------

    @property
    def children(self) -> list[Node]:
        return list(self._children)

    def add_child(self, child: Node) -> Node:
        if child.parent is not None:
            child.parent._children.remove(child)
        child.parent = self
        self._children.append(child)
        return child

    def get_descendants(self) -> list[Node]:
        """All descendants in depth-first tree order."""
        return list(self._iter_descendants())

    def _iter_descendants(self) -> Iterator[Node]:
        for child in self._children:
            yield child
            yield from child._iter_descendants()

    def find_first_child(self, name: str) -> Node | None:
        for child in self._children:
            if child.name == name:
                return child
        return None

    def find_path(self, path: str) -> Node | None:
        """Resolve a ``/``-separated path of child names below this node."""
        node: Node | None = self
        for part in path.split("/"):
            if not part:
                continue
            node = node.find_first_child(part) if node is not None else None
        return node

    def path(self) -> str:
        parts = []
        node: Node | None = self
        while node is not None and node.parent is not None:
            parts.append(node.name)
            node = node.parent
        return "/".join(reversed(parts))

    def is_a(self, class_name: str) -> bool:
        for cls in type(self).__mro__:
            if getattr(cls, "class_name", None) == class_name:
                return True
        return False

    def destroy(self) -> None:
        for child in list(self._children):
            child.destroy()
        if self.parent is not None:
            self.parent._children.remove(self)
            self.parent = None
        self.destroyed = True

    # -- properties ----------------------------------------------------------

    @property
    def property_names(self) -> list[str]:
        return list(self._properties)

    def has_property(self, name: str) -> bool:
        return name in self._properties

    def get_property(self, name: str) -> Any:
        try:
            return self._properties[name]
        except KeyError:
            raise PropertyApplicationFailure(self.name, name) from None

    def set_property(self, name: str, value: Any) -> None:
        if name not in self._properties:
            raise PropertyApplicationFailure(self.name, name)
        self._properties[name] = value
        self.property_changed.fire(name, value)

    # -- attributes ----------------------------------------------------------

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def set_attribute(self, name: str, value: Any) -> None:
        if value is None:
            self._attributes.pop(name, None)
        else:
            self._attributes[name] = value
        self.attribute_changed.fire(name, value)

    def get_attributes(self) -> dict[str, Any]:
        return dict(self._attributes)


class Folder(Node):
    class_name = "Folder"


class Configuration(Node):
    """Container class used for timelines."""

    class_name = "Configuration"


class ObjectValue(Node):
    """Holds a reference (or plain value) in ``Value``; used for keyframes."""

    class_name = "ObjectValue"
    default_properties = {"Value": None}


class StringValue(Node):
    class_name = "StringValue"
    default_properties = {"Value": ""}


class BasePart(Node):
    class_name = "BasePart"


class Part(BasePart):
    """A single rigid body with a pose; emits ``touched(hit)`` on contact."""

    class_name = "Part"
    default_properties = {
        "Pose": Pose(),
        "Color": np.array([0.64, 0.64, 0.64]),
        "Transparency": 0.0,
        "Anchored": True,
        "CanCollide": True,
    }

    def __init__(self, name: str, properties: dict[str, Any] | None = None, **kwargs: Any) -> None:
        super().__init__(name, properties, **kwargs)
        self.touched = Signal(f"{name}.touched")

    @property
    def pose(self) -> Pose:
        return self.get_property("Pose")

    @pose.setter
    def pose(self, value: Pose) -> None:
        self.set_property("Pose", value)

    @property
    def position(self) -> np.ndarray:
        return self.pose.position

    def touch(self, hit: Part) -> None:
        """Report contact with *hit*."""
        self.touched.fire(hit)


class Model(Node):
    """A group of parts moved as one through its primary part."""

    class_name = "Model"

    def __init__(self, name: str, properties: dict[str, Any] | None = None, **kwargs: Any) -> None:
        super().__init__(name, properties, **kwargs)
        self.primary_part: Part | None = None

    def parts(self) -> list[Part]:
        return [node for node in self.get_descendants() if isinstance(node, Part)]

    def get_pivot(self) -> Pose:
        if self.primary_part is None:
            raise InvalidArgument("model", f"{self.name!r} has no primary part")
        return self.primary_part.pose

    def pivot_to(self, pose: Pose) -> None:
        """Move every descendant part rigidly so the primary part lands on *pose*."""
        transform = pose @ self.get_pivot().inverse()
        for part in self.parts():
            part.pose = transform @ part.pose


@dataclass(eq=False)
class Participant:
    """A player-like agent whose character can touch parts."""

    user_id: int
    name: str = ""
    character: Model | None = None


NODE_CLASSES: dict[str, type[Node]] = {
    cls.class_name: cls
    for cls in (Node, Folder, Configuration, ObjectValue, StringValue, Part, Model)
}


@dataclass
class Scene:
    """Root of the node tree plus the participants in it."""

    root: Node = field(default_factory=lambda: Folder("Map"))
    participants: list[Participant] = field(default_factory=list)
    bulk_moves: int = field(default=0, init=False)

    def add_participant(self, participant: Participant) -> Participant:
        self.participants.append(participant)
        return participant

    def participant_from_hit(self, hit: Node) -> Participant | None:
        """The participant whose character contains *hit*, if any."""
        node: Node | None = hit
        while node is not None:
            for participant in self.participants:
                if participant.character is node:
                    return participant
            node = node.parent
        return None

    def bulk_move_to(self, parts: Sequence[Part], poses: Sequence[Pose]) -> None:
        """Write many poses in one call."""
        if len(parts) != len(poses):
            raise InvalidArgument("poses", "length must match parts")
        self.bulk_moves += 1
        for part, pose in zip(parts, poses):
            part.pose = pose

    def descendants(self) -> list[Node]:
        return self.root.get_descendants()


def make_character(name: str, position: Any = (0.0, 0.0, 0.0)) -> Model:
    """A minimal character model whose primary part is ``RootPart``."""
    character = Model(name)
    root = Part("RootPart", {"Pose": Pose(as_vector(position, "position"))}, parent=character)
    character.primary_part = root
    return character
