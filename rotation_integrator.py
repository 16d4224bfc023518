"""
neonspin - Rotation Integrator
Per-frame composition of the current spin onto the shape's transform.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Protocol

import numpy as np

from velocity_model import VelocityModel

ANGLE_SCALE = 0.0001  # radians per velocity unit per tick
IDLE_SPEED = math.hypot(30.0, 20.0)  # |base spin| with default RotationConfig

X_AXIS = (1.0, 0.0, 0.0)
Y_AXIS = (0.0, 1.0, 0.0)


def rotation_matrix(angle: float, axis) -> np.ndarray:
    """4x4 homogeneous rotation of ``angle`` radians about ``axis`` (Rodrigues)."""
    x, y, z = axis
    length = math.sqrt(x * x + y * y + z * z)
    if length <= 0.0:
        return np.eye(4)
    x, y, z = x / length, y / length, z / length
    c = math.cos(angle)
    s = math.sin(angle)
    t = 1.0 - c
    return np.array([
        [t * x * x + c,     t * x * y - s * z, t * x * z + s * y, 0.0],
        [t * x * y + s * z, t * y * y + c,     t * y * z - s * x, 0.0],
        [t * x * z - s * y, t * y * z + s * x, t * z * z + c,     0.0],
        [0.0,               0.0,               0.0,               1.0],
    ])


class TransformTarget(Protocol):
    transform: np.ndarray


@dataclass
class Orientation:
    """Accumulated shape transform (the renderer reads this each frame)"""
    transform: np.ndarray = field(default_factory=lambda: np.eye(4))

    def rotation(self) -> np.ndarray:
        return self.transform[:3, :3]

    def reset(self) -> None:
        self.transform = np.eye(4)


@dataclass(frozen=True)
class TickResult:
    speed: float          # |base + added| sampled before decay
    added_speed: float    # |added| sampled before decay
    angle_x: float
    angle_y: float


class RotationIntegrator:
    """
    Each tick: rotate by (total.dy * K) about X then (total.dx * K) about Y,
    post-multiplied onto the accumulated transform, then decay added spin.
    The X-then-Y order matters; rotations do not commute.
    """

    def __init__(self, model: VelocityModel,
                 target: Optional[TransformTarget] = None,
                 angle_scale: float = ANGLE_SCALE):
        self.model = model
        self.target = target
        self.angle_scale = angle_scale

    @property
    def idle_speed(self) -> float:
        return self.model.base.magnitude()

    def bind(self, target: Optional[TransformTarget]) -> None:
        self.target = target

    def tick(self) -> Optional[TickResult]:
        """Advance one frame. Returns None (and leaves the model untouched) when unbound."""
        if self.target is None:
            return None

        total = self.model.current_total()
        angle_x = total.dy * self.angle_scale
        angle_y = total.dx * self.angle_scale

        self.target.transform = (
            self.target.transform
            @ rotation_matrix(angle_x, X_AXIS)
            @ rotation_matrix(angle_y, Y_AXIS)
        )

        result = TickResult(
            speed=total.magnitude(),
            added_speed=self.model.current_added_speed(),
            angle_x=angle_x,
            angle_y=angle_y,
        )
        self.model.tick()
        return result
