"""Scripted timelines for real-time scenes."""

from .actions import KeyframeKind
from .config import PlayerConfig
from .dispatch import KeyframeDispatcher
from .easing import EasingDirection, EasingStyle, evaluate
from .errors import InvalidArgument, MalformedKeyframe, PropertyApplicationFailure, TimelineError
from .interpolation import InterpolationEngine, TranslationSegment
from .math3d import Pose
from .player import RunState, TimelinePlayer, TimelineRun
from .presentation import LoggingPresentation, Presentation
from .properties import NumberValue, PoseValue, PropertyAnimator, VectorValue
from .runner import Runner
from .scene import Configuration, Folder, Model, Node, ObjectValue, Part, Participant, Scene, StringValue
from .scheduler import FrameScheduler
from .serde import dump_scene, load_scene
from .timeline import Keyframe, Timeline, get_duration, scan_timelines
from .tween import Tween, TweenInfo, TweenService

__all__ = [
    "Configuration",
    "dump_scene",
    "EasingDirection",
    "EasingStyle",
    "evaluate",
    "Folder",
    "FrameScheduler",
    "get_duration",
    "InterpolationEngine",
    "InvalidArgument",
    "Keyframe",
    "KeyframeDispatcher",
    "KeyframeKind",
    "load_scene",
    "LoggingPresentation",
    "MalformedKeyframe",
    "Model",
    "Node",
    "NumberValue",
    "ObjectValue",
    "Part",
    "Participant",
    "PlayerConfig",
    "Pose",
    "PoseValue",
    "Presentation",
    "PropertyAnimator",
    "PropertyApplicationFailure",
    "Runner",
    "RunState",
    "scan_timelines",
    "Scene",
    "StringValue",
    "Timeline",
    "TimelineError",
    "TimelinePlayer",
    "TimelineRun",
    "TranslationSegment",
    "Tween",
    "TweenInfo",
    "TweenService",
    "VectorValue",
]

__version__ = "0.1.0"
