"""Presentation hooks: alerts, camera, sound and participant relocation.

The runtime only decides *when* and *with what* these are called.  Hosts
plug in their own :class:`Presentation`; the default just logs.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from .math3d import Pose
from .scene import Node, Participant

log = logging.getLogger(__name__)


@runtime_checkable
class Presentation(Protocol):

    def alert(self, message: Any, color: Any, duration: float) -> None: ...

    def shake_camera(self, intensity: Any, length: float) -> None: ...

    def play_sound(self, parent: Node, sound_id: Any, volume: float, pitch: float) -> None: ...

    def set_camera(self, subject: Any, enabled: Any, cam_info: Any, relative_to_subject: Any) -> None: ...

    def relocate(self, participant: Participant, destination: Pose) -> None: ...


class LoggingPresentation:
    """Logs every hook call and keeps a record of them in ``calls``."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []

    def _record(self, hook: str, *args: Any) -> None:
        self.calls.append((hook, args))
        log.info("%s%r needs to be hooked up to the client", hook, args)

    def alert(self, message, color, duration):
        self._record("alert", message, color, duration)

    def shake_camera(self, intensity, length):
        self._record("shake_camera", intensity, length)

    def play_sound(self, parent, sound_id, volume, pitch):
        self._record("play_sound", parent, sound_id, volume, pitch)

    def set_camera(self, subject, enabled, cam_info, relative_to_subject):
        self._record("set_camera", subject, enabled, cam_info, relative_to_subject)

    def relocate(self, participant, destination):
        character = participant.character
        if character is None or character.primary_part is None:
            log.debug("Participant %s has no character to relocate", participant.user_id)
            return
        self.calls.append(("relocate", (participant, destination)))
        character.pivot_to(destination)
