"""Easing curves mapping progress in [0, 1] to eased progress."""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable


class EasingStyle(Enum):
    LINEAR = "Linear"
    SINE = "Sine"
    QUAD = "Quad"
    CUBIC = "Cubic"
    QUART = "Quart"
    QUINT = "Quint"
    EXPONENTIAL = "Exponential"
    CIRCULAR = "Circular"
    BACK = "Back"
    BOUNCE = "Bounce"
    ELASTIC = "Elastic"


class EasingDirection(Enum):
    IN = "In"
    OUT = "Out"
    IN_OUT = "InOut"


_BACK = 1.70158


def _bounce_out(u: float) -> float:
    n1, d1 = 7.5625, 2.75
    if u < 1.0 / d1:
        return n1 * u * u
    if u < 2.0 / d1:
        u -= 1.5 / d1
        return n1 * u * u + 0.75
    if u < 2.5 / d1:
        u -= 2.25 / d1
        return n1 * u * u + 0.9375
    u -= 2.625 / d1
    return n1 * u * u + 0.984375


def _elastic_in(u: float) -> float:
    if u <= 0.0 or u >= 1.0:
        return u
    p = 0.3
    return -math.pow(2.0, 10.0 * (u - 1.0)) * math.sin((u - 1.0 - p / 4.0) * (2.0 * math.pi) / p)


def _exp_in(u: float) -> float:
    return 0.0 if u <= 0.0 else math.pow(2.0, 10.0 * (u - 1.0)) - 0.0009765625 * (1.0 - u)


# "In" form of each curve; Out and InOut are derived by reflection.
_IN: dict[EasingStyle, Callable[[float], float]] = {
    EasingStyle.LINEAR: lambda u: u,
    EasingStyle.SINE: lambda u: 1.0 - math.cos(u * math.pi / 2.0),
    EasingStyle.QUAD: lambda u: u * u,
    EasingStyle.CUBIC: lambda u: u * u * u,
    EasingStyle.QUART: lambda u: u ** 4,
    EasingStyle.QUINT: lambda u: u ** 5,
    EasingStyle.EXPONENTIAL: _exp_in,
    EasingStyle.CIRCULAR: lambda u: 1.0 - math.sqrt(max(0.0, 1.0 - u * u)),
    EasingStyle.BACK: lambda u: u * u * ((_BACK + 1.0) * u - _BACK),
    EasingStyle.BOUNCE: lambda u: 1.0 - _bounce_out(1.0 - u),
    EasingStyle.ELASTIC: _elastic_in,
}


def resolve_style(style: EasingStyle | str) -> EasingStyle:
    """Accept an enum member or its name (``"Sine"``, case-insensitive)."""
    if isinstance(style, EasingStyle):
        return style
    if isinstance(style, str):
        lowered = style.lower()
        for member in EasingStyle:
            if member.value.lower() == lowered:
                return member
    raise ValueError(f"Unknown easing style: {style!r}")


def resolve_direction(direction: EasingDirection | str) -> EasingDirection:
    if isinstance(direction, EasingDirection):
        return direction
    if isinstance(direction, str):
        lowered = direction.lower()
        for member in EasingDirection:
            if member.value.lower() == lowered:
                return member
    raise ValueError(f"Unknown easing direction: {direction!r}")


def evaluate(
    progress: float,
    style: EasingStyle | str = EasingStyle.LINEAR,
    direction: EasingDirection | str = EasingDirection.IN_OUT,
) -> float:
    """Eased progress for *progress* clamped to [0, 1].

    The end points are exact: ``evaluate(0) == 0.0`` and ``evaluate(1) == 1.0``
    for every curve.

    >>> evaluate(0.5, "Linear", "InOut")
    0.5
    >>> evaluate(1.0, "Sine", "Out")
    1.0
    """
    u = min(1.0, max(0.0, float(progress)))
    if u == 0.0:
        return 0.0
    if u == 1.0:
        return 1.0
    f = _IN[resolve_style(style)]
    direction = resolve_direction(direction)
    if direction is EasingDirection.IN:
        return f(u)
    if direction is EasingDirection.OUT:
        return 1.0 - f(1.0 - u)
    if u < 0.5:
        return 0.5 * f(2.0 * u)
    return 1.0 - 0.5 * f(2.0 - 2.0 * u)
