"""Pose and vector math for scene transforms.

A :class:`Pose` is a position plus a 3x3 rotation matrix, composed the way
rigid transforms are: ``a @ b`` applies ``b`` in ``a``'s local frame.
Vectors are plain ``numpy`` arrays of shape ``(3,)``.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any

import numpy as np

from .errors import InvalidArgument


def as_vector(value: Any, argument: str = "vector") -> np.ndarray:
    """Coerce a 3-component sequence to a float array.

    Raises :class:`InvalidArgument` for anything that is not exactly three
    finite numbers.
    """
    if isinstance(value, (str, bytes)) or isinstance(value, Pose):
        raise InvalidArgument(argument, f"expected a 3-component vector, got {type(value).__name__}")
    try:
        arr = np.asarray(value, dtype=float)
    except (TypeError, ValueError):
        raise InvalidArgument(argument, f"expected a 3-component vector, got {type(value).__name__}") from None
    if arr.shape != (3,):
        raise InvalidArgument(argument, f"expected a 3-component vector, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise InvalidArgument(argument, "vector components must be finite")
    return arr


def is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def is_vector(value: Any) -> bool:
    return isinstance(value, np.ndarray) and value.shape == (3,)


def _quat_from_matrix(m: np.ndarray) -> np.ndarray:
    """Rotation matrix to unit quaternion ``(w, x, y, z)``."""
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0.0:
        s = 2.0 * math.sqrt(trace + 1.0)
        q = [0.25 * s, (m[2, 1] - m[1, 2]) / s, (m[0, 2] - m[2, 0]) / s, (m[1, 0] - m[0, 1]) / s]
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = 2.0 * math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2])
        q = [(m[2, 1] - m[1, 2]) / s, 0.25 * s, (m[0, 1] + m[1, 0]) / s, (m[0, 2] + m[2, 0]) / s]
    elif m[1, 1] > m[2, 2]:
        s = 2.0 * math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2])
        q = [(m[0, 2] - m[2, 0]) / s, (m[0, 1] + m[1, 0]) / s, 0.25 * s, (m[1, 2] + m[2, 1]) / s]
    else:
        s = 2.0 * math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1])
        q = [(m[1, 0] - m[0, 1]) / s, (m[0, 2] + m[2, 0]) / s, (m[1, 2] + m[2, 1]) / s, 0.25 * s]
    q = np.asarray(q, dtype=float)
    return q / np.linalg.norm(q)


def _matrix_from_quat(q: np.ndarray) -> np.ndarray:
    w, x, y, z = q
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
        [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
    ])


def _slerp(q0: np.ndarray, q1: np.ndarray, alpha: float) -> np.ndarray:
    dot = float(np.dot(q0, q1))
    if dot < 0.0:
        q1 = -q1
        dot = -dot
    if dot > 0.9995:
        q = q0 + alpha * (q1 - q0)
        return q / np.linalg.norm(q)
    theta = math.acos(dot)
    sin_theta = math.sin(theta)
    return (math.sin((1.0 - alpha) * theta) * q0 + math.sin(alpha * theta) * q1) / sin_theta


class Pose:
    """Rigid transform: ``position`` (3,) and ``rotation`` (3, 3)."""

    __slots__ = ("position", "rotation")

    def __init__(self, position: Any = (0.0, 0.0, 0.0), rotation: Any = None) -> None:
        self.position = as_vector(position, "position")
        if rotation is None:
            self.rotation = np.identity(3)
        else:
            rot = np.asarray(rotation, dtype=float)
            if rot.shape != (3, 3):
                raise InvalidArgument("rotation", f"expected a 3x3 matrix, got shape {rot.shape}")
            self.rotation = rot

    @classmethod
    def identity(cls) -> Pose:
        return cls()

    @classmethod
    def from_axis_angle(cls, axis: Any, angle: float, position: Any = (0.0, 0.0, 0.0)) -> Pose:
        """Pose rotated by *angle* radians about *axis*."""
        axis = as_vector(axis, "axis")
        axis = axis / np.linalg.norm(axis)
        half = angle / 2.0
        q = np.concatenate([[math.cos(half)], axis * math.sin(half)])
        return cls(position, _matrix_from_quat(q))

    def __matmul__(self, other: Pose) -> Pose:
        if not isinstance(other, Pose):
            return NotImplemented
        return Pose(self.position + self.rotation @ other.position, self.rotation @ other.rotation)

    def __add__(self, offset: Any) -> Pose:
        if isinstance(offset, Pose):
            return NotImplemented
        return Pose(self.position + as_vector(offset, "offset"), self.rotation)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pose):
            return NotImplemented
        return np.array_equal(self.position, other.position) and np.array_equal(self.rotation, other.rotation)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Pose(position={self.position.tolist()!r})"

    def inverse(self) -> Pose:
        rot_t = self.rotation.T
        return Pose(-(rot_t @ self.position), rot_t)

    def translated_local(self, delta: np.ndarray) -> Pose:
        """Translate along this pose's own axes; orientation is unchanged."""
        return Pose(self.position + self.rotation @ delta, self.rotation)

    def translated_world(self, delta: np.ndarray) -> Pose:
        return Pose(self.position + delta, self.rotation)

    def isclose(self, other: Pose, atol: float = 1e-9) -> bool:
        return bool(
            np.allclose(self.position, other.position, atol=atol)
            and np.allclose(self.rotation, other.rotation, atol=atol)
        )

    def lerp(self, other: Pose, alpha: float) -> Pose:
        """Linear position, slerped rotation."""
        position = self.position + (other.position - self.position) * alpha
        q = _slerp(_quat_from_matrix(self.rotation), _quat_from_matrix(other.rotation), alpha)
        return Pose(position, _matrix_from_quat(q))


def compose_relative(current: Any, delta: Any) -> Any:
    """Combine *delta* onto *current*: poses compose, numbers and vectors add.

    Raises ``TypeError`` for value kinds that cannot be combined.
    """
    if isinstance(current, Pose):
        if not isinstance(delta, Pose):
            raise TypeError(f"cannot compose Pose with {type(delta).__name__}")
        return current @ delta
    if is_number(current) and is_number(delta):
        return current + delta
    if is_vector(current):
        return current + as_vector(delta, "delta")
    raise TypeError(f"cannot compose {type(current).__name__} with {type(delta).__name__}")


def interpolate(start: Any, goal: Any, alpha: float) -> Any:
    """Value between *start* and *goal* at *alpha* (may exceed [0, 1])."""
    if isinstance(start, Pose) and isinstance(goal, Pose):
        return start.lerp(goal, alpha)
    if is_number(start) and is_number(goal):
        return start + (goal - start) * alpha
    if is_vector(start) or is_vector(goal):
        a = as_vector(start, "start")
        b = as_vector(goal, "goal")
        return a + (b - a) * alpha
    # Non-interpolable values snap at the end.
    return goal if alpha >= 1.0 else start
