"""
neonspin - Star Field
Three depth-staggered particle layers emitted from a sphere around the camera.
The feedback mapper pushes ParticleLayerParams into each layer every tick;
the host calls step(dt) and draws positions/sizes/opacities.
"""

from typing import Dict, Optional

import numpy as np

from feedback_mapper import ParticleLayerParams

EMITTER_RADIUS = 10.0
LIFESPAN = 10.0
LIFESPAN_VARIATION = 2.0
VELOCITY_VARIATION = 0.2
TWINKLE_PERIOD = 3.0
MAX_PARTICLES = 4000


def star_field_name(index: int) -> str:
    return f"starField{index}"


class StarFieldLayer:
    """One emitter: surface-normal birth on a sphere, +z acceleration, twinkle."""

    def __init__(self, index: int, rng: Optional[np.random.Generator] = None):
        self.index = index
        self.rng = rng if rng is not None else np.random.default_rng()
        self.base_size = 0.02 - index * 0.005

        self.velocity = 0.5 + index * 0.3
        self.birth_rate = 50.0 + index * 30.0
        self.acceleration = 2.0

        self.positions = np.zeros((0, 3))
        self.velocities = np.zeros((0, 3))
        self.ages = np.zeros(0)
        self.lifespans = np.zeros(0)
        self.sizes = np.zeros(0)
        self._birth_debt = 0.0

    def __len__(self) -> int:
        return len(self.ages)

    def apply_particle_params(self, params: ParticleLayerParams) -> None:
        self.velocity = params.velocity
        self.birth_rate = params.birth_rate
        self.acceleration = params.acceleration

    def _spawn(self, count: int) -> None:
        count = min(count, MAX_PARTICLES - len(self))
        if count <= 0:
            return
        normals = self.rng.normal(size=(count, 3))
        norms = np.linalg.norm(normals, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        normals /= norms

        speeds = self.velocity + self.rng.uniform(-VELOCITY_VARIATION, VELOCITY_VARIATION, size=(count, 1))
        self.positions = np.vstack([self.positions, normals * EMITTER_RADIUS])
        self.velocities = np.vstack([self.velocities, normals * speeds])
        self.ages = np.concatenate([self.ages, np.zeros(count)])
        self.lifespans = np.concatenate([
            self.lifespans,
            LIFESPAN + self.rng.uniform(-LIFESPAN_VARIATION, LIFESPAN_VARIATION, size=count),
        ])
        self.sizes = np.concatenate([
            self.sizes,
            np.clip(self.base_size + self.rng.uniform(-0.005, 0.005, size=count), 0.002, None),
        ])

    def step(self, dt: float) -> None:
        if dt <= 0:
            return
        self._birth_debt += self.birth_rate * dt
        births = int(self._birth_debt)
        self._birth_debt -= births
        self._spawn(births)

        if len(self) == 0:
            return
        self.velocities[:, 2] += self.acceleration * dt
        self.positions += self.velocities * dt
        self.ages += dt

        alive = self.ages < self.lifespans
        if not np.all(alive):
            self.positions = self.positions[alive]
            self.velocities = self.velocities[alive]
            self.ages = self.ages[alive]
            self.lifespans = self.lifespans[alive]
            self.sizes = self.sizes[alive]

    def opacities(self) -> np.ndarray:
        """0.8 base alpha, twinkling 1 -> 0.3 -> 1 over TWINKLE_PERIOD."""
        phase = (self.ages % TWINKLE_PERIOD) / TWINKLE_PERIOD
        twinkle = 0.3 + 0.7 * np.abs(1.0 - 2.0 * phase)
        return 0.8 * twinkle


def build_star_field(layer_count: int = 3, seed: Optional[int] = None) -> Dict[str, StarFieldLayer]:
    rng = np.random.default_rng(seed)
    return {star_field_name(i): StarFieldLayer(i, rng) for i in range(layer_count)}
