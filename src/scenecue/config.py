"""Tunables shared by the player, the interpolation engine and effects."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Mapping

from .errors import InvalidArgument

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerConfig:

    fps: float = 60.0
    # Changed parts per tick at which pose writes go through one bulk move.
    batch_threshold: int = 5
    # Wall-clock seconds an interpolation tick may take before throttling.
    frame_budget: float = 0.033
    # Simulation seconds between interpolation ticks while throttled.
    throttle_interval: float = 0.1
    max_touch_listeners: int = 10
    touch_settle_delay: float = 1.0
    water_transition: float = 1.0
    protected_names: tuple[str, ...] = ("Settings", "Rescue")
    timelines_folder: str = "Timelines"
    default_easing_style: str = "Sine"
    default_easing_direction: str = "InOut"

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> PlayerConfig:
        """Build a config from a plain dict, e.g. one loaded from JSON.

        Unknown keys are logged and ignored.  Values whose type does not
        match the field default raise :class:`InvalidArgument`.
        """
        defaults = cls()
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in mapping.items():
            if key not in known:
                log.warning("Ignoring unknown config key %r", key)
                continue
            default = getattr(defaults, key)
            if isinstance(default, tuple):
                if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                    raise InvalidArgument(key, "expected a list of strings")
                value = tuple(value)
            elif isinstance(default, float):
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise InvalidArgument(key, f"expected a number, got {type(value).__name__}")
                value = float(value)
            elif not isinstance(value, type(default)) or isinstance(value, bool):
                raise InvalidArgument(key, f"expected {type(default).__name__}, got {type(value).__name__}")
            kwargs[key] = value
        return cls(**kwargs)
