"""
neonspin - Haptic Pulse Scheduler
Owns the haptic engine handle and turns FeedbackTargets into timed pulses.

State machine:
  IDLE   -> ACTIVE  start() with an active target and a working engine
  ACTIVE -> IDLE    stop(), inactive target, haptics disabled, engine reset
  IDLE   -> ERROR   engine start failed; engine torn down, recreation scheduled
  ERROR  -> IDLE    recreation succeeded, engine unavailable, or retries exhausted

Timer callbacks only touch the engine handle and scheduler state. Each one
carries the generation it was scheduled under and bails out when stale, so a
stop() can never be followed by a pulse into a torn-down engine.
"""

import threading
from enum import Enum
from typing import Callable, Optional

from config import HapticConfig, HapticEmission
from errors import EngineReset, EngineUnavailable, HapticError
from feedback_mapper import FeedbackTarget
from haptic_engines import HapticEngine, PatternPlayer, build_pulse_pattern, pattern_span
from haptic_lifecycle import ensure_haptic_engine
from logging_utils import log_event, log_throttled
from timer_hosts import TimerHandle, TimerHost

# Absolute change in pulse intensity/sharpness that forces a reschedule
PARAM_RESCHEDULE_DELTA = 0.05


class SchedulerState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    ERROR = "error"


class HapticPulseScheduler:
    """
    Schedules discrete haptic emissions on the cadence requested by the
    current FeedbackTarget, using one of three emission strategies
    (pulse train, pattern player, single impact).
    """

    def __init__(self, config: HapticConfig,
                 engine_factory: Callable[[], HapticEngine],
                 timer_host: TimerHost):
        self.config = config
        self.engine_factory = engine_factory
        self.timer_host = timer_host

        self.engine: Optional[HapticEngine] = None
        self.state = SchedulerState.IDLE
        self._lock = threading.RLock()

        # Emission bookkeeping
        self._generation = 0
        self._pending: Optional[TimerHandle] = None
        self._player: Optional[PatternPlayer] = None
        self._target: Optional[FeedbackTarget] = None
        self._last_pulse_at: Optional[float] = None

        # Engine recreation after a failed start
        self._retry_generation = 0
        self._retry_handle: Optional[TimerHandle] = None
        self._retry_attempts = 0

        # Session counters
        self.activations = 0
        self.pulses_emitted = 0
        self.pulse_failures = 0
        self.reschedules = 0

    @property
    def scheduled_target(self) -> Optional[FeedbackTarget]:
        return self._target

    # ------------------------------------------------------------------
    # Public lifecycle
    # ------------------------------------------------------------------

    def apply(self, target: FeedbackTarget) -> None:
        """Per-frame dispatch: start, update or stop depending on the target."""
        if target.active and self.config.enabled:
            if self.state is SchedulerState.ACTIVE:
                self.update(target)
            else:
                self.start(target)
        else:
            self.stop()

    def start(self, target: FeedbackTarget) -> bool:
        """Begin pulsing. Returns True when the scheduler is ACTIVE afterwards."""
        with self._lock:
            if not self.config.enabled or not target.active:
                return False
            if self.state is SchedulerState.ACTIVE:
                self.update(target)
                return True
            if self.state is SchedulerState.ERROR:
                # Recreation already pending
                return False
            if not self._ensure_engine():
                return False

            self.state = SchedulerState.ACTIVE
            self.activations += 1
            log_event("DEBUG", "Haptics", "Pulsing started",
                      freq=f"{target.frequency_hz:.1f}", emission=self.config.emission.name)
            self._begin_emission(target, first_delay=0.0)
            return True

    def update(self, target: FeedbackTarget) -> None:
        """Reschedule when the requested cadence differs meaningfully from the current one."""
        with self._lock:
            if not target.active or not self.config.enabled:
                self.stop()
                return
            if self.state is not SchedulerState.ACTIVE:
                self.start(target)
                return
            if not self._differs(self._target, target):
                return

            self._cancel_emission()
            self.reschedules += 1
            if self.config.emission == HapticEmission.IMPACT:
                self._generation += 1
                self._target = target
                return
            self._begin_emission(target, first_delay=self._remaining_interval(target))

    def stop(self) -> None:
        """Cancel pending pulses and release the player. Safe to call repeatedly.
        An ERROR state is left to the recreation path."""
        with self._lock:
            self._cancel_emission()
            if self.state is SchedulerState.ACTIVE:
                self.state = SchedulerState.IDLE
                log_event("DEBUG", "Haptics", "Pulsing stopped")

    def handle_engine_reset(self) -> None:
        """Engine invalidated by the host: tear down; recreate lazily on next start()."""
        with self._lock:
            log_event("WARNING", "Haptics", "Engine reset, tearing down")
            self._cancel_emission()
            self._teardown_engine()
            if self.state is SchedulerState.ACTIVE:
                self.state = SchedulerState.IDLE

    def shutdown(self) -> None:
        with self._lock:
            self._cancel_emission()
            self._cancel_retry()
            self._teardown_engine()
            self.state = SchedulerState.IDLE

    # ------------------------------------------------------------------
    # Engine handle
    # ------------------------------------------------------------------

    def _create_engine(self) -> HapticEngine:
        engine = self.engine_factory()
        engine.reset_handler = self.handle_engine_reset
        return engine

    def _ensure_engine(self) -> bool:
        if self.engine is not None and not self.engine.is_valid:
            self._teardown_engine()
        try:
            self.engine = ensure_haptic_engine(self.engine, self._create_engine)
            return True
        except EngineUnavailable as e:
            self._teardown_engine()
            log_throttled("haptics.unavailable", 30.0, "INFO", "Haptics",
                          "Haptic engine unavailable, haptics off", reason=e)
            return False
        except Exception as e:
            log_event("ERROR", "Haptics", "Engine start failed", error=e)
            self._teardown_engine()
            self._enter_error()
            return False

    def _teardown_engine(self) -> None:
        engine = self.engine
        self.engine = None
        if engine is None:
            return
        engine.reset_handler = None
        try:
            engine.stop()
        except Exception as e:
            log_event("WARNING", "Haptics", "Engine stop failed", error=e)

    def _enter_error(self) -> None:
        self.state = SchedulerState.ERROR
        self._retry_attempts = 0
        self._schedule_retry()

    def _schedule_retry(self) -> None:
        self._retry_generation += 1
        generation = self._retry_generation
        delay = (self.config.retry_backoff_ms / 1000.0) * (2 ** self._retry_attempts)
        self._retry_handle = self.timer_host.call_later(delay, lambda: self._retry_engine(generation))

    def _cancel_retry(self) -> None:
        self._retry_generation += 1
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    def _retry_engine(self, generation: int) -> None:
        with self._lock:
            if generation != self._retry_generation or self.state is not SchedulerState.ERROR:
                return
            self._retry_handle = None
            if not self.config.enabled:
                self.state = SchedulerState.IDLE
                log_event("INFO", "Haptics", "Haptics disabled, engine not recreated")
                return
            self._retry_attempts += 1
            try:
                self.engine = ensure_haptic_engine(None, self._create_engine)
            except EngineUnavailable as e:
                self.state = SchedulerState.IDLE
                log_event("INFO", "Haptics", "Engine unavailable after reset", reason=e)
                return
            except Exception as e:
                self._teardown_engine()
                if self._retry_attempts >= self.config.max_retries:
                    self.state = SchedulerState.IDLE
                    log_event("ERROR", "Haptics", "Engine recreation failed, giving up until next start",
                              attempts=self._retry_attempts, error=e)
                else:
                    log_event("WARNING", "Haptics", "Engine recreation failed, retrying",
                              attempt=self._retry_attempts, error=e)
                    self._schedule_retry()
                return

            self.state = SchedulerState.IDLE
            log_event("INFO", "Haptics", "Engine recreated", attempts=self._retry_attempts)

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def _differs(self, current: Optional[FeedbackTarget], new: FeedbackTarget) -> bool:
        if current is None:
            return True
        base = max(current.frequency_hz, 1e-6)
        if abs(new.frequency_hz - current.frequency_hz) / base > self.config.reschedule_ratio:
            return True
        if abs(new.intensity - current.intensity) > PARAM_RESCHEDULE_DELTA:
            return True
        return abs(new.sharpness - current.sharpness) > PARAM_RESCHEDULE_DELTA

    def _interval(self, target: FeedbackTarget) -> float:
        if target.frequency_hz <= 0:
            return 1.0
        return 1.0 / target.frequency_hz

    def _remaining_interval(self, target: FeedbackTarget) -> float:
        if self._last_pulse_at is None:
            return 0.0
        elapsed = self.timer_host.now() - self._last_pulse_at
        return max(0.0, self._interval(target) - elapsed)

    def _begin_emission(self, target: FeedbackTarget, first_delay: float) -> None:
        self._generation += 1
        generation = self._generation
        self._target = target

        emission = self.config.emission
        if emission == HapticEmission.PATTERN_PLAYER:
            self._play_pattern(generation)
        elif emission == HapticEmission.IMPACT:
            self._emit(target)
        elif first_delay <= 0.0:
            self._pulse(generation)
        else:
            self._pending = self.timer_host.call_later(first_delay, lambda: self._pulse(generation))

    def _cancel_emission(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        if self._player is not None:
            try:
                self._player.stop()
            except Exception as e:
                log_event("WARNING", "Haptics", "Pattern stop failed", error=e)
            self._player = None
        self._target = None

    def _is_live(self, generation: int) -> bool:
        return (generation == self._generation
                and self.state is SchedulerState.ACTIVE
                and self.engine is not None
                and self._target is not None)

    def _pulse(self, generation: int) -> None:
        with self._lock:
            if not self._is_live(generation):
                return
            self._pending = None
            target = self._target
            self._emit(target)
            # _emit may have torn the engine down via a reset callback
            if self._is_live(generation):
                self._pending = self.timer_host.call_later(
                    self._interval(target), lambda: self._pulse(generation))

    def _emit(self, target: FeedbackTarget) -> None:
        self._last_pulse_at = self.timer_host.now()
        try:
            self.engine.play_transient(target.intensity, target.sharpness)
            self.pulses_emitted += 1
        except EngineReset:
            self.handle_engine_reset()
        except HapticError as e:
            self.pulse_failures += 1
            log_throttled("haptics.pulse_failed", 2.0, "WARNING", "Haptics", "Pulse failed, skipping", error=e)
        except Exception as e:
            self.pulse_failures += 1
            log_throttled("haptics.pulse_error", 2.0, "ERROR", "Haptics", "Pulse error, skipping", error=e)

    def _play_pattern(self, generation: int) -> None:
        with self._lock:
            if not self._is_live(generation):
                return
            self._pending = None
            target = self._target
            if self._player is not None:
                self._player.stop()
                self._player = None

            events = build_pulse_pattern(target.frequency_hz, target.duration_ms,
                                         target.intensity, target.sharpness)
            self._last_pulse_at = self.timer_host.now()
            try:
                self._player = self.engine.play_pattern(events)
                self.pulses_emitted += len(events)
            except EngineReset:
                self.handle_engine_reset()
            except HapticError as e:
                self.pulse_failures += 1
                log_throttled("haptics.pattern_failed", 2.0, "WARNING", "Haptics", "Pattern failed", error=e)
            except Exception as e:
                self.pulse_failures += 1
                log_throttled("haptics.pattern_error", 2.0, "ERROR", "Haptics", "Pattern error", error=e)

            if self._is_live(generation):
                self._pending = self.timer_host.call_later(
                    pattern_span(target.duration_ms), lambda: self._play_pattern(generation))
