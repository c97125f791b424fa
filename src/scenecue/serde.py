"""JSON-compatible (de)serialization of scene trees, including timelines."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from .math3d import Pose
from .scene import NODE_CLASSES, Model, Node, Participant, Scene

log = logging.getLogger(__name__)

SCHEMA = "scenecue-scene-v1"


def _decode_value(value: Any, refs: list[tuple[Node, str, str, str]], node: Node, slot: str, key: str) -> Any:
    """Decode one property/attribute value.

    ``{"$ref": path}`` values are recorded in *refs* and resolved after the
    whole tree exists; they decode to ``None`` for now.
    """
    if isinstance(value, dict):
        if "$ref" in value:
            refs.append((node, slot, key, value["$ref"]))
            return None
        if "$pose" in value:
            pose = value["$pose"]
            return Pose(pose.get("position", (0.0, 0.0, 0.0)), pose.get("rotation"))
        return value
    if isinstance(value, list) and len(value) == 3 and all(
        isinstance(v, (int, float)) and not isinstance(v, bool) for v in value
    ):
        return np.asarray(value, dtype=float)
    return value


def _encode_value(value: Any) -> Any:
    if isinstance(value, Pose):
        return {"$pose": {"position": value.position.tolist(), "rotation": value.rotation.tolist()}}
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, Node):
        return {"$ref": value.path()}
    return value


def _build_node(data: dict, refs: list, parent: Node | None) -> Node:
    class_name = data.get("class", "Folder")
    cls = NODE_CLASSES.get(class_name)
    name = data.get("name", class_name)
    if cls is None:
        log.warning("Unknown node class %r for %r; loading as a plain Node", class_name, name)
        cls = Node
    node = cls(name, parent=parent)
    for key, raw in data.get("properties", {}).items():
        value = _decode_value(raw, refs, node, "property", key)
        if value is None:
            continue
        try:
            node.set_property(key, value)
        except KeyError:
            log.warning("Node %r (%s) has no property %r; skipping", name, class_name, key)
    for key, raw in data.get("attributes", {}).items():
        value = _decode_value(raw, refs, node, "attribute", key)
        if value is not None:
            node.set_attribute(key, value)
    for child in data.get("children", []):
        _build_node(child, refs, node)
    primary = data.get("primary_part")
    if isinstance(node, Model) and primary:
        refs.append((node, "primary_part", "", primary))
    return node


def load_scene(data: dict) -> Scene:
    """Build a :class:`Scene` from a dict produced by :func:`dump_scene` or by hand.

    Reference paths are relative to the root node.  References that do not
    resolve are logged and left unset.
    """
    refs: list[tuple[Node, str, str, str]] = []
    root = _build_node(data.get("root", {"class": "Folder", "name": "Map"}), refs, None)
    scene = Scene(root=root)

    for node, slot, key, path in refs:
        target = root.find_path(path)
        if target is None:
            log.warning("Unresolved reference %r on %r", path, node.name)
            continue
        if slot == "property":
            node.set_property(key, target)
        elif slot == "attribute":
            node.set_attribute(key, target)
        else:
            node.primary_part = target  # type: ignore[attr-defined]

    for entry in data.get("participants", []):
        character = None
        path = entry.get("character")
        if path:
            character = root.find_path(path)
            if character is None:
                log.warning("Participant %r: character %r not found", entry.get("name"), path)
        scene.add_participant(Participant(entry["user_id"], entry.get("name", ""), character))
    return scene


def _dump_node(node: Node) -> dict[str, Any]:
    data: dict[str, Any] = {"class": node.class_name, "name": node.name}
    properties = {}
    for key in node.property_names:
        value = node.get_property(key)
        if value is not None:
            properties[key] = _encode_value(value)
    if properties:
        data["properties"] = properties
    attributes = {key: _encode_value(value) for key, value in node.get_attributes().items()}
    if attributes:
        data["attributes"] = attributes
    if isinstance(node, Model) and node.primary_part is not None:
        data["primary_part"] = node.primary_part.path()
    children = [_dump_node(child) for child in node.children]
    if children:
        data["children"] = children
    return data


def dump_scene(scene: Scene) -> dict[str, Any]:
    """Convert a scene to a JSON-compatible dict."""
    return {
        "$schema": SCHEMA,
        "root": _dump_node(scene.root),
        "participants": [
            {
                "user_id": p.user_id,
                "name": p.name,
                **({"character": p.character.path()} if p.character is not None else {}),
            }
            for p in scene.participants
        ],
    }
