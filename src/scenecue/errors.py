"""Exception types raised at scenecue call boundaries."""

from __future__ import annotations


class TimelineError(Exception):
    """Base class for scenecue errors."""


class InvalidArgument(TimelineError, ValueError):
    """A call received an unsupported object or a malformed value.

    ``argument`` names the offending parameter.
    """

    def __init__(self, argument: str, message: str) -> None:
        super().__init__(f"{argument}: {message}")
        self.argument = argument


class MalformedKeyframe(TimelineError):
    """A keyframe is missing its function name or timestamp."""

    def __init__(self, keyframe_name: str, message: str) -> None:
        super().__init__(f"Keyframe {keyframe_name!r} {message}")
        self.keyframe_name = keyframe_name


class PropertyApplicationFailure(TimelineError, KeyError):
    """A target lacks the named property or attribute."""

    def __init__(self, target_name: str, name: str) -> None:
        super().__init__(target_name, name)
        self.target_name = target_name
        self.name = name

    def __str__(self) -> str:
        return f"{self.target_name!r} has no property {self.name!r}"
