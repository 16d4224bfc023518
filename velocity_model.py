"""
neonspin - Velocity Model
Base idle spin plus transient user-added spin with per-tick decay.

Velocities are (dx, dy) rate pairs, not a true 3D angular velocity: dx turns
the shape about Y and dy about X. Their magnitude is the "speed" every
feedback subsystem reads.
"""

import math
from dataclasses import dataclass

from config import RotationConfig


@dataclass(frozen=True)
class AngularVelocity:
    """Two independent angular-rate components"""
    dx: float = 0.0
    dy: float = 0.0

    def magnitude(self) -> float:
        return math.hypot(self.dx, self.dy)

    def scaled(self, factor: float) -> "AngularVelocity":
        return AngularVelocity(self.dx * factor, self.dy * factor)

    def clamped(self, limit: float) -> "AngularVelocity":
        """Clamp each component to [-limit, limit]."""
        return AngularVelocity(
            max(-limit, min(limit, self.dx)),
            max(-limit, min(limit, self.dy)),
        )

    def __add__(self, other: "AngularVelocity") -> "AngularVelocity":
        return AngularVelocity(self.dx + other.dx, self.dy + other.dy)


ZERO = AngularVelocity(0.0, 0.0)


class VelocityModel:
    """
    Owns the constant base spin and the decaying user-added spin.

    tick() must be called once per frame even with no gesture active; that is
    what lets a flick coast back to the idle rotation.
    """

    def __init__(self,
                 base: AngularVelocity = AngularVelocity(30.0, 20.0),
                 decay_factor: float = 0.985,
                 rest_epsilon: float = 0.1,
                 max_added: float = 3000.0,
                 max_momentum: float = 4000.0):
        self._base = base
        self.added = ZERO
        self.decay_factor = decay_factor
        self.rest_epsilon = rest_epsilon
        self.max_added = max_added
        self.max_momentum = max_momentum

    @classmethod
    def from_config(cls, rotation: RotationConfig) -> "VelocityModel":
        return cls(
            base=AngularVelocity(rotation.base_dx, rotation.base_dy),
            decay_factor=rotation.decay_factor,
            rest_epsilon=rotation.rest_epsilon,
            max_added=rotation.max_added,
            max_momentum=rotation.max_momentum,
        )

    @property
    def base(self) -> AngularVelocity:
        return self._base

    def apply_drag_delta(self, delta_x: float, delta_y: float, gain: float) -> None:
        """Add a pan delta scaled by gain, clamped to max_added per component."""
        impulse = AngularVelocity(delta_x * gain, delta_y * gain)
        self.added = (self.added + impulse).clamped(self.max_added)

    def apply_release_boost(self, exit_velocity_x: float, exit_velocity_y: float,
                            boost_factor: float = 1.5) -> None:
        """Add the release (flick) velocity, clamped to the looser max_momentum."""
        impulse = AngularVelocity(exit_velocity_x, exit_velocity_y).scaled(boost_factor)
        self.added = (self.added + impulse).clamped(self.max_momentum)

    def tick(self, decay_factor: float | None = None, epsilon: float | None = None) -> None:
        """Decay added spin one frame; snap to exact zero once both components are tiny."""
        factor = self.decay_factor if decay_factor is None else decay_factor
        eps = self.rest_epsilon if epsilon is None else epsilon

        decayed = self.added.scaled(factor)
        if abs(decayed.dx) < eps and abs(decayed.dy) < eps:
            decayed = ZERO
        self.added = decayed

    def current_total(self) -> AngularVelocity:
        return self._base + self.added

    def current_added_speed(self) -> float:
        return self.added.magnitude()

    def reset(self) -> None:
        self.added = ZERO
