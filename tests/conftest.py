"""Shared test fixtures."""

from typing import Any

import pytest

from scenecue import (
    Configuration,
    Folder,
    FrameScheduler,
    InterpolationEngine,
    LoggingPresentation,
    ObjectValue,
    Part,
    Participant,
    Pose,
    Scene,
    TimelinePlayer,
    TweenService,
)
from scenecue.scene import make_character


def add_timeline(folder: Folder, name: str, **attributes: Any) -> Configuration:
    return Configuration(name, attributes=attributes, parent=folder)


def add_keyframe(
    timeline: Configuration,
    name: str,
    function: str,
    timestamp: float,
    target: Any = None,
    **attributes: Any,
) -> ObjectValue:
    attrs = {"XFrame_Function": function, "XFrame_Timestamp": timestamp, **attributes}
    node = ObjectValue(name, attributes=attrs, parent=timeline)
    if target is not None:
        node.set_property("Value", target)
    return node


def add_participant(scene: Scene, user_id: int) -> Participant:
    character = make_character(f"player{user_id}")
    scene.root.add_child(character)
    return scene.add_participant(Participant(user_id, f"player{user_id}", character))


class FakeClock:
    """Stand-in for ``time.perf_counter`` advancing by a fixed cost per call."""

    def __init__(self, cost: float = 0.0) -> None:
        self.now = 0.0
        self.cost = cost

    def __call__(self) -> float:
        self.now += self.cost
        return self.now


@pytest.fixture
def scheduler() -> FrameScheduler:
    return FrameScheduler()


@pytest.fixture
def scene() -> Scene:
    scene = Scene()
    Folder("Timelines", parent=scene.root)
    return scene


@pytest.fixture
def timelines(scene: Scene) -> Folder:
    return scene.root.find_first_child("Timelines")


@pytest.fixture
def part(scene: Scene) -> Part:
    return Part("Door", {"Pose": Pose()}, parent=scene.root)


@pytest.fixture
def engine(scene: Scene, scheduler: FrameScheduler) -> InterpolationEngine:
    engine = InterpolationEngine(scene, scheduler, perf_counter=FakeClock())
    engine.start()
    return engine


@pytest.fixture
def tweens(scheduler: FrameScheduler) -> TweenService:
    service = TweenService(scheduler)
    service.start()
    return service


@pytest.fixture
def presentation() -> LoggingPresentation:
    return LoggingPresentation()


@pytest.fixture
def player(scene, scheduler, engine, tweens, presentation) -> TimelinePlayer:
    return TimelinePlayer(scene, scheduler, engine, tweens, presentation)
