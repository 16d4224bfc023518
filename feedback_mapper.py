"""
neonspin - Feedback Mapper
Fans the per-tick spin speed out to star field parameters and a haptic target.

Particle parameters are a pure function of total speed. The haptic target is
produced by a policy object so the different "feels" (threshold-gated pulsing
vs. velocity-linear frequency) share one mapper.
"""

from dataclasses import dataclass, field
from typing import List

from config import FrequencyCurve, HapticConfig, HapticGate, ParticleConfig


@dataclass(frozen=True)
class ParticleLayerParams:
    velocity: float
    birth_rate: float
    acceleration: float


@dataclass(frozen=True)
class FeedbackTarget:
    """Haptic target recomputed every tick.

    ``intensity`` is the configured pulse strength; the normalized speed
    clamp(gate_speed / max_user_speed, 0, 1) is carried separately as ``drive``.
    """
    active: bool = False
    frequency_hz: float = 0.0
    intensity: float = 0.0    # Pulse strength 0-1
    sharpness: float = 0.0    # Pulse sharpness 0-1
    drive: float = 0.0        # Normalized gate speed 0-1 that picked the cadence
    duration_ms: int = 1000   # Pattern span for the pattern-player emission


INACTIVE = FeedbackTarget()


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def speed_multiplier(speed: float, base_speed: float = 36.0) -> float:
    """Speed relative to idle, floored at 1 so stars never slow below idle."""
    if base_speed <= 0:
        return 1.0
    return max(1.0, speed / base_speed)


def particle_params(speed: float, config: ParticleConfig | None = None) -> List[ParticleLayerParams]:
    cfg = config or ParticleConfig()
    mult = speed_multiplier(speed, cfg.base_speed)
    layers = []
    for i in range(cfg.layer_count):
        layers.append(ParticleLayerParams(
            velocity=(cfg.velocity_base + cfg.velocity_step * i) * mult,
            birth_rate=(cfg.birth_rate_base + cfg.birth_rate_step * i) * (1 + (mult - 1) * cfg.birth_rate_gain),
            acceleration=cfg.acceleration_base + (mult - 1) * cfg.acceleration_gain,
        ))
    return layers


# ---------------------------------------------------------------------------
# Haptic policies
# ---------------------------------------------------------------------------

class HapticPolicy:
    """
    Hysteresis gate over one speed signal plus a frequency curve.

    Subclasses set the activate/deactivate thresholds and implement
    ``_frequency_and_drive``.
    """

    def __init__(self, config: HapticConfig, activate_above: float, deactivate_below: float):
        self.config = config
        self.activate_above = activate_above
        self.deactivate_below = min(deactivate_below, activate_above)
        self.active = False

    def gate_speed(self, speed: float, added_speed: float) -> float:
        if self.config.gate == HapticGate.TOTAL_SPEED:
            return speed
        return added_speed

    def reset(self) -> None:
        self.active = False

    def evaluate(self, speed: float, added_speed: float) -> FeedbackTarget:
        gate_speed = self.gate_speed(speed, added_speed)
        if self.active:
            if gate_speed < self.deactivate_below:
                self.active = False
        elif gate_speed > self.activate_above:
            self.active = True

        if not self.active:
            return INACTIVE

        frequency, drive = self._frequency_and_drive(gate_speed)
        return FeedbackTarget(
            active=True,
            frequency_hz=frequency,
            intensity=_clamp01(self.config.intensity),
            sharpness=_clamp01(self.config.sharpness),
            drive=drive,
            duration_ms=int(self.config.duration_ms),
        )

    def _frequency_and_drive(self, gate_speed: float) -> tuple[float, float]:
        raise NotImplementedError


class ThresholdPulsePolicy(HapticPolicy):
    """Reference feel: pulse interval lerps slow->fast with normalized speed."""

    def __init__(self, config: HapticConfig):
        threshold = config.activation_threshold
        super().__init__(config, threshold, threshold - max(0.0, config.hysteresis))

    def pulse_interval(self, drive: float) -> float:
        slow = self.config.slow_interval_s
        fast = self.config.fast_interval_s
        return slow + (fast - slow) * _clamp01(drive)

    def _frequency_and_drive(self, gate_speed: float) -> tuple[float, float]:
        full_scale = self.config.max_user_speed
        drive = _clamp01(gate_speed / full_scale) if full_scale > 0 else 1.0
        interval = self.pulse_interval(drive)
        frequency = 1.0 / interval if interval > 0 else self.config.frequency_hz
        return min(frequency, self.config.frequency_hz), drive


class VelocityFrequencyPolicy(HapticPolicy):
    """Velocity-linear feel: min Hz at rest up to the configured Hz at full scale."""

    def __init__(self, config: HapticConfig):
        super().__init__(config, config.start_speed, config.stop_speed)

    def _frequency_and_drive(self, gate_speed: float) -> tuple[float, float]:
        full_scale = self.config.velocity_full_scale
        drive = _clamp01(gate_speed / full_scale) if full_scale > 0 else 1.0
        low = self.config.min_frequency_hz
        return low + drive * (self.config.frequency_hz - low), drive


def build_haptic_policy(config: HapticConfig) -> HapticPolicy:
    if config.curve == FrequencyCurve.VELOCITY_LINEAR:
        return VelocityFrequencyPolicy(config)
    return ThresholdPulsePolicy(config)


# ---------------------------------------------------------------------------
# Mapper
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FeedbackFrame:
    particles: List[ParticleLayerParams] = field(default_factory=list)
    haptic: FeedbackTarget = INACTIVE


class FeedbackMapper:
    """Speed -> {particle params for each layer, haptic target}"""

    def __init__(self, particles: ParticleConfig, haptic: HapticConfig):
        self.particle_config = particles
        self.haptic_config = haptic
        self.policy = build_haptic_policy(haptic)
        self.interaction_count = 0

    @property
    def haptics_enabled(self) -> bool:
        return bool(self.haptic_config.enabled)

    def set_haptics_enabled(self, enabled: bool) -> None:
        self.haptic_config.enabled = enabled
        if not enabled:
            self.policy.reset()

    def reconfigure(self, particles: ParticleConfig, haptic: HapticConfig) -> None:
        self.particle_config = particles
        self.haptic_config = haptic
        self.policy = build_haptic_policy(haptic)

    def notify_interaction_began(self) -> None:
        self.interaction_count += 1

    def particle_params(self, speed: float) -> List[ParticleLayerParams]:
        return particle_params(speed, self.particle_config)

    def haptic_target(self, speed: float, added_speed: float) -> FeedbackTarget:
        if not self.haptics_enabled:
            self.policy.reset()
            return INACTIVE
        return self.policy.evaluate(speed, added_speed)

    def map(self, speed: float, added_speed: float) -> FeedbackFrame:
        return FeedbackFrame(
            particles=self.particle_params(speed),
            haptic=self.haptic_target(speed, added_speed),
        )
