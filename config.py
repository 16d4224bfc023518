# neonspin Configuration
# All default values and constants

from dataclasses import dataclass, field, is_dataclass
from enum import IntEnum
from typing import Optional

from logging_utils import log_event


CURRENT_CONFIG_VERSION = 1


class HapticGate(IntEnum):
    """Which speed signal opens the haptic gate"""
    USER_SPEED = 1         # Only user-added spin (idle rotation never buzzes)
    TOTAL_SPEED = 2        # Base + added spin (idle rotation can buzz)


class FrequencyCurve(IntEnum):
    """How gate speed maps to pulse frequency"""
    INTERVAL_LERP = 1      # Lerp pulse interval slow->fast by normalized speed
    VELOCITY_LINEAR = 2    # Lerp frequency min->configured Hz over a full-scale speed


class HapticEmission(IntEnum):
    """How pulses reach the haptic engine"""
    PULSE_TRAIN = 1        # One transient per timer callback, rescheduled on change
    PATTERN_PLAYER = 2     # Pre-built pattern handed to the engine's player
    IMPACT = 3             # Single transient per activation


@dataclass
class RotationConfig:
    """Spin physics (fixed per-tick units, dt is not used)"""
    base_dx: float = 30.0             # Idle angular rate about Y
    base_dy: float = 20.0             # Idle angular rate about X
    angle_scale: float = 0.0001       # Radians per velocity unit per tick
    decay_factor: float = 0.985       # Multiplier applied to added spin every tick
    rest_epsilon: float = 0.1         # Both components below this -> added spin snaps to zero
    drag_gain: float = 3.0            # Pan delta (points) -> added spin
    max_added: float = 3000.0         # Clamp after a drag delta
    release_boost: float = 1.5        # Exit velocity multiplier on release
    max_momentum: float = 4000.0      # Clamp after a release boost


@dataclass
class ParticleConfig:
    """Star field response to spin speed"""
    base_speed: float = 36.0          # Speed that maps to multiplier 1.0 (idle spin)
    layer_count: int = 3              # starField0..N-1
    velocity_base: float = 0.5        # Layer 0 particle velocity at idle
    velocity_step: float = 0.3        # Extra velocity per deeper layer
    birth_rate_base: float = 50.0     # Layer 0 birth rate at idle
    birth_rate_step: float = 30.0     # Extra birth rate per deeper layer
    birth_rate_gain: float = 0.3      # Birth rate growth per multiplier unit
    acceleration_base: float = 2.0    # +z acceleration at idle
    acceleration_gain: float = 1.5    # Acceleration growth per multiplier unit


@dataclass
class HapticConfig:
    """Haptic pulse settings (user-facing ranges clamped in migrate_config)"""
    enabled: bool = True
    intensity: float = 0.7            # 0.1 - 1.0
    frequency_hz: float = 20.0        # 5 - 100, ceiling for pulse rate
    sharpness: float = 0.2            # 0.0 - 1.0
    duration_ms: int = 1000           # 100 - 2000, pattern span in PATTERN_PLAYER mode
    backend: str = "audio"            # audio / log / none

    gate: HapticGate = HapticGate.USER_SPEED
    curve: FrequencyCurve = FrequencyCurve.INTERVAL_LERP
    emission: HapticEmission = HapticEmission.PULSE_TRAIN

    # INTERVAL_LERP gate + cadence
    activation_threshold: float = 40.0  # Gate speed above this -> active
    hysteresis: float = 5.0             # Deactivate below threshold - hysteresis
    max_user_speed: float = 3000.0      # Gate speed that maps to drive 1.0
    slow_interval_s: float = 0.2        # Pulse interval at drive 0
    fast_interval_s: float = 0.05       # Pulse interval at drive 1

    # VELOCITY_LINEAR gate + cadence
    start_speed: float = 20.0
    stop_speed: float = 10.0
    min_frequency_hz: float = 5.0
    velocity_full_scale: float = 500.0

    # Scheduler
    reschedule_ratio: float = 0.1     # Relative frequency change that forces a reschedule
    retry_backoff_ms: int = 100       # First engine recreation delay after a start failure
    max_retries: int = 5              # Recreation attempts before giving up until next start()


@dataclass
class AudioConfig:
    """Ambient music loop"""
    music_enabled: bool = False
    volume: float = 0.4
    loop_file: Optional[str] = None   # WAV file to loop; None = synthesized pad
    sample_rate: int = 44100
    block_size: int = 1024
    pad_seconds: float = 8.0          # Length of the synthesized loop


@dataclass
class SceneConfig:
    """Desktop host settings"""
    shape: str = "tetrahedron"
    color: str = "Cyan"
    frame_interval_ms: int = 16       # ~60 FPS refresh
    camera_distance: float = 5.0


@dataclass
class Config:
    """Master configuration"""
    version: int = 1                  # Schema version for persisted configs
    rotation: RotationConfig = field(default_factory=RotationConfig)
    particles: ParticleConfig = field(default_factory=ParticleConfig)
    haptic: HapticConfig = field(default_factory=HapticConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    scene: SceneConfig = field(default_factory=SceneConfig)

    log_level: str = "INFO"           # Logging level (DEBUG/INFO/WARNING/ERROR)


# (min, max) for user-facing haptic settings
HAPTIC_RANGE_LIMITS = {
    'intensity': (0.1, 1.0),
    'frequency_hz': (5.0, 100.0),
    'sharpness': (0.0, 1.0),
    'duration_ms': (100, 2000),
}


def apply_dict_to_dataclass(target, data) -> None:
    """Recursively apply values from a dict onto a dataclass instance.
    Unknown keys are ignored; IntEnum fields are coerced when possible."""
    if not isinstance(data, dict):
        return

    for key, value in data.items():
        if not hasattr(target, key):
            continue

        current = getattr(target, key)

        if is_dataclass(current) and isinstance(value, dict):
            apply_dict_to_dataclass(current, value)
            continue

        if isinstance(current, IntEnum):
            try:
                setattr(target, key, current.__class__(value))
            except (ValueError, TypeError):
                log_event("WARNING", "Config", f"Could not convert {key} to {current.__class__.__name__}, keeping default")
            continue

        setattr(target, key, value)


def _clamped_float(value, default: float, low: float, high: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = default
    return max(low, min(high, number))


def migrate_config(config: Config, loaded_version) -> None:
    """Upgrade older config structures to the current schema.
    Restores defaults for None values, clamps haptic ranges and bumps version."""
    try:
        version = int(loaded_version) if loaded_version is not None else 0
    except (TypeError, ValueError):
        version = 0

    haptic_defaults = HapticConfig()
    if version < 1:
        if getattr(config.haptic, 'enabled', True) is None:
            config.haptic.enabled = haptic_defaults.enabled
        if getattr(config.haptic, 'backend', None) is None:
            config.haptic.backend = haptic_defaults.backend
        if getattr(config.audio, 'music_enabled', False) is None:
            config.audio.music_enabled = False

    if getattr(config, 'log_level', None) is None:
        config.log_level = "INFO"

    for name, (low, high) in HAPTIC_RANGE_LIMITS.items():
        default = getattr(haptic_defaults, name)
        value = _clamped_float(getattr(config.haptic, name, default), default, low, high)
        setattr(config.haptic, name, int(value) if isinstance(default, int) else value)

    config.audio.volume = _clamped_float(config.audio.volume, 0.4, 0.0, 1.0)

    config.version = CURRENT_CONFIG_VERSION


# Default config instance
DEFAULT_CONFIG = Config()
