"""
neonspin - Haptic Engines
Swappable backends behind one small interface so the scheduler never sees
host-specific APIs.

  LoggingHapticEngine      dry-run: logs and counts pulses
  AudioClickHapticEngine   renders each transient as a short click via sounddevice
  UnavailableHapticEngine  hardware without haptics
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from config import HapticConfig
from errors import EngineUnavailable, PulseEmissionFailed
from logging_utils import log_event, log_throttled


@dataclass(frozen=True)
class PulseEvent:
    """One transient inside a pattern"""
    relative_time: float   # Seconds from pattern start
    intensity: float
    sharpness: float


def build_pulse_pattern(frequency_hz: float, duration_ms: float,
                        intensity: float, sharpness: float) -> List[PulseEvent]:
    """Evenly spaced transients covering max(1 s, duration); always at least one."""
    if frequency_hz <= 0:
        return [PulseEvent(0.0, intensity, sharpness)]
    pulse_interval = 1.0 / frequency_hz
    total_duration = max(1.0, duration_ms / 1000.0)
    count = max(1, int(total_duration / pulse_interval))
    return [PulseEvent(i * pulse_interval, intensity, sharpness) for i in range(count)]


def pattern_span(duration_ms: float) -> float:
    return max(1.0, duration_ms / 1000.0)


class PatternPlayer:
    """Handle returned by play_pattern()"""

    def __init__(self, on_stop: Optional[Callable[[], None]] = None):
        self._on_stop = on_stop
        self.stopped = False

    def stop(self) -> None:
        if self.stopped:
            return
        self.stopped = True
        if self._on_stop:
            self._on_stop()


class HapticEngine:
    """
    Base engine. ``reset_handler`` is set by the owner and called when the
    host invalidates the engine (backgrounding, audio device change, ...).
    """

    name = "base"

    def __init__(self):
        self.reset_handler: Optional[Callable[[], None]] = None
        self.running = False
        self._valid = True

    @property
    def is_valid(self) -> bool:
        return self._valid

    def start(self) -> None:
        self.running = True

    def stop(self) -> None:
        self.running = False

    def play_transient(self, intensity: float, sharpness: float) -> None:
        raise NotImplementedError

    def play_pattern(self, events: List[PulseEvent]) -> PatternPlayer:
        raise NotImplementedError

    def invalidate(self) -> None:
        """Mark the engine dead and notify the owner."""
        self._valid = False
        self.running = False
        log_event("WARNING", "Haptics", "Engine reset", engine=self.name)
        if self.reset_handler:
            self.reset_handler()


class UnavailableHapticEngine(HapticEngine):
    name = "none"

    def start(self) -> None:
        raise EngineUnavailable("haptics not supported on this host")

    def play_transient(self, intensity: float, sharpness: float) -> None:
        raise EngineUnavailable("haptics not supported on this host")

    def play_pattern(self, events: List[PulseEvent]) -> PatternPlayer:
        raise EngineUnavailable("haptics not supported on this host")


class LoggingHapticEngine(HapticEngine):
    """Dry-run engine: no hardware, every pulse is logged (throttled) and counted."""

    name = "log"

    def __init__(self):
        super().__init__()
        self.transients = 0
        self.patterns = 0

    def play_transient(self, intensity: float, sharpness: float) -> None:
        if not self.running:
            raise PulseEmissionFailed("engine not started")
        self.transients += 1
        log_throttled("haptics.log.transient", 1.0, "DEBUG", "Haptics", "Dry-run pulse",
                      intensity=f"{intensity:.2f}", sharpness=f"{sharpness:.2f}", total=self.transients)

    def play_pattern(self, events: List[PulseEvent]) -> PatternPlayer:
        if not self.running:
            raise PulseEmissionFailed("engine not started")
        self.patterns += 1
        log_throttled("haptics.log.pattern", 1.0, "DEBUG", "Haptics", "Dry-run pattern",
                      pulses=len(events), total=self.patterns)
        return PatternPlayer()


def _load_sounddevice():
    import sounddevice as sd
    return sd


def render_click(intensity: float, sharpness: float, sample_rate: int,
                 length_s: float = 0.012) -> np.ndarray:
    """Short exponentially decaying sine burst; sharper = higher pitch, faster decay."""
    n = max(1, int(sample_rate * length_s))
    t = np.arange(n, dtype=np.float32) / sample_rate
    pitch = 80.0 + 240.0 * float(np.clip(sharpness, 0.0, 1.0))
    decay = 300.0 + 500.0 * float(np.clip(sharpness, 0.0, 1.0))
    amplitude = 0.6 * float(np.clip(intensity, 0.0, 1.0))
    return (amplitude * np.sin(2 * np.pi * pitch * t) * np.exp(-decay * t)).astype(np.float32)


def render_pattern(events: List[PulseEvent], sample_rate: int) -> np.ndarray:
    if not events:
        return np.zeros(1, dtype=np.float32)
    clicks = [render_click(e.intensity, e.sharpness, sample_rate) for e in events]
    end = max(int(e.relative_time * sample_rate) + len(c) for e, c in zip(events, clicks))
    buffer = np.zeros(end, dtype=np.float32)
    for event, click in zip(events, clicks):
        offset = int(event.relative_time * sample_rate)
        buffer[offset:offset + len(click)] += click
    return np.clip(buffer, -1.0, 1.0)


class AudioClickHapticEngine(HapticEngine):
    """Desktop stand-in for a taptic engine: transients become audible clicks."""

    name = "audio"

    def __init__(self, sample_rate: int = 44100):
        super().__init__()
        self.sample_rate = sample_rate
        self._sd = None

    def start(self) -> None:
        if self.running:
            return
        try:
            sd = _load_sounddevice()
        except (ImportError, OSError) as e:
            raise EngineUnavailable(f"sounddevice not usable: {e}") from e
        try:
            sd.query_devices(kind='output')
        except (sd.PortAudioError, ValueError) as e:
            raise EngineUnavailable(f"no output device: {e}") from e
        self._sd = sd
        super().start()
        log_event("INFO", "Haptics", "Audio click engine started", sample_rate=self.sample_rate)

    def stop(self) -> None:
        if self._sd is not None and self.running:
            try:
                self._sd.stop()
            except self._sd.PortAudioError as e:
                log_event("WARNING", "Haptics", "Audio stop failed", error=e)
        super().stop()

    def _play(self, buffer: np.ndarray) -> None:
        if not self.running or self._sd is None:
            raise PulseEmissionFailed("engine not started")
        try:
            self._sd.play(buffer, self.sample_rate)
        except self._sd.PortAudioError as e:
            raise PulseEmissionFailed(str(e)) from e

    def play_transient(self, intensity: float, sharpness: float) -> None:
        self._play(render_click(intensity, sharpness, self.sample_rate))

    def play_pattern(self, events: List[PulseEvent]) -> PatternPlayer:
        self._play(render_pattern(events, self.sample_rate))
        sd = self._sd
        return PatternPlayer(on_stop=sd.stop)


def create_haptic_engine(backend: str, config: HapticConfig | None = None,
                         sample_rate: int = 44100) -> HapticEngine:
    """Factory used by the scheduler; backend is audio / log / none."""
    name = (backend or "none").lower()
    if name == "audio":
        return AudioClickHapticEngine(sample_rate=sample_rate)
    if name == "log":
        return LoggingHapticEngine()
    if name != "none":
        log_event("WARNING", "Haptics", "Unknown haptic backend, haptics disabled", backend=backend)
    return UnavailableHapticEngine()
