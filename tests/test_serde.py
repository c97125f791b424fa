"""Tests for scene serialization."""

import json
import math

import numpy as np
import pytest

from scenecue import Model, ObjectValue, Part, Participant, Pose, dump_scene, load_scene
from scenecue.serde import SCHEMA
from scenecue.scene import Node, make_character

from conftest import add_keyframe, add_participant, add_timeline


SCENE = {
    "root": {
        "class": "Folder",
        "name": "Map",
        "children": [
            {
                "class": "Part",
                "name": "Door",
                "properties": {"Pose": {"$pose": {"position": [1, 2, 3]}}, "Transparency": 0.5},
                "attributes": {"Locked": True, "Offset": [0, 1, 0]},
            },
            {
                "class": "Folder",
                "name": "Timelines",
                "children": [
                    {
                        "class": "Configuration",
                        "name": "Open",
                        "attributes": {"Trigger_Delay": 0},
                        "children": [
                            {
                                "class": "ObjectValue",
                                "name": "slide",
                                "properties": {"Value": {"$ref": "Door"}},
                                "attributes": {"XFrame_Function": "MovePart", "XFrame_Timestamp": 0},
                            }
                        ],
                    }
                ],
            },
        ],
    },
}


# --- load ---


class TestLoad:
    def test_builds_tree(self) -> None:
        scene = load_scene(SCENE)
        door = scene.root.find_first_child("Door")
        assert isinstance(door, Part)
        assert door.position.tolist() == [1.0, 2.0, 3.0]
        assert door.get_property("Transparency") == 0.5
        assert door.get_attribute("Locked") is True
        assert isinstance(door.get_attribute("Offset"), np.ndarray)

    def test_resolves_references(self) -> None:
        scene = load_scene(SCENE)
        slide = scene.root.find_path("Timelines/Open/slide")
        assert isinstance(slide, ObjectValue)
        assert slide.get_property("Value") is scene.root.find_first_child("Door")

    def test_unresolved_reference_is_left_unset(self, caplog) -> None:
        data = {"root": {"class": "Folder", "name": "Map", "children": [
            {"class": "ObjectValue", "name": "dangling", "properties": {"Value": {"$ref": "Nowhere"}}},
        ]}}
        scene = load_scene(data)
        assert scene.root.find_first_child("dangling").get_property("Value") is None
        assert "Nowhere" in caplog.text

    def test_unknown_class_loads_as_node(self, caplog) -> None:
        data = {"root": {"class": "Folder", "name": "Map", "children": [{"class": "Sparkles", "name": "fx"}]}}
        node = load_scene(data).root.find_first_child("fx")
        assert type(node) is Node
        assert "Sparkles" in caplog.text

    def test_unknown_property_is_skipped(self) -> None:
        data = {"root": {"class": "Folder", "name": "Map", "children": [
            {"class": "Part", "name": "p", "properties": {"Wattage": 3}},
        ]}}
        assert not load_scene(data).root.find_first_child("p").has_property("Wattage")

    def test_participants_and_primary_part(self) -> None:
        data = {
            "root": {"class": "Folder", "name": "Map", "children": [
                {"class": "Model", "name": "hero", "primary_part": "hero/Root",
                 "children": [{"class": "Part", "name": "Root"}]},
            ]},
            "participants": [{"user_id": 7, "name": "hero", "character": "hero"}],
        }
        scene = load_scene(data)
        hero = scene.participants[0]
        assert hero.user_id == 7
        assert isinstance(hero.character, Model)
        assert hero.character.primary_part is hero.character.find_first_child("Root")

    def test_empty_document(self) -> None:
        scene = load_scene({})
        assert scene.root.name == "Map"
        assert scene.participants == []


# --- dump ---


class TestDump:
    def test_schema_and_json_compatible(self, scene, timelines) -> None:
        door = Part("Door", {"Pose": Pose.from_axis_angle((0, 1, 0), math.pi / 2, (4, 0, 0))}, parent=scene.root)
        tl = add_timeline(timelines, "Open", Trigger_Button=1)
        add_keyframe(tl, "slide", "MovePart", 0.5, target=door, Translation=np.array([0.0, 3.0, 0.0]))
        add_participant(scene, 1)
        data = dump_scene(scene)
        assert data["$schema"] == SCHEMA
        json.dumps(data)

    def test_round_trip_preserves_structure(self, scene, timelines) -> None:
        door = Part("Door", {"Pose": Pose((4, 0, 0))}, parent=scene.root)
        tl = add_timeline(timelines, "Open", Trigger_Button=1)
        add_keyframe(tl, "slide", "MovePart", 0.5, target=door, Translation=[0, 3, 0])
        add_participant(scene, 1)

        restored = load_scene(json.loads(json.dumps(dump_scene(scene))))
        slide = restored.root.find_path("Timelines/Open/slide")
        restored_door = restored.root.find_first_child("Door")
        assert slide.get_property("Value") is restored_door
        assert restored_door.pose == door.pose
        assert restored.participants[0].character is restored.root.find_first_child("player1")
        assert restored.participants[0].character.primary_part.name == "RootPart"

    def test_detached_character_is_omitted(self, scene) -> None:
        scene.add_participant(Participant(3, "ghost", None))
        assert dump_scene(scene)["participants"] == [{"user_id": 3, "name": "ghost"}]

    @pytest.mark.parametrize("position", [(0, 0, 0), (1.5, -2, 9)])
    def test_character_pose_survives(self, scene, position) -> None:
        scene.root.add_child(make_character("npc", position))
        restored = load_scene(dump_scene(scene))
        assert restored.root.find_path("npc/RootPart").position.tolist() == list(map(float, position))
