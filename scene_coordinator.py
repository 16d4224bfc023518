"""
neonspin - Scene Coordinator
Single-threaded glue between the host and the spin/feedback pipeline:

  gesture -> GestureTranslator -> VelocityModel
  tick    -> RotationIntegrator -> FeedbackMapper -> {star field emitters, HapticPulseScheduler}

The host adapts its refresh callback to tick() and its pan recognizer to
handle_gesture(); both must run on the same thread.
"""

import time
from typing import Callable, Dict, Optional

from config import Config
from feedback_mapper import FeedbackFrame, FeedbackMapper
from gesture_translator import GestureSample, GestureTranslator
from haptic_engines import HapticEngine, create_haptic_engine
from haptic_lifecycle import set_haptics_enabled
from haptic_scheduler import HapticPulseScheduler
from logging_utils import log_event
from rotation_integrator import Orientation, RotationIntegrator, TransformTarget
from star_field import star_field_name
from timer_hosts import ThreadingTimerHost, TimerHost
from velocity_model import VelocityModel


class SceneCoordinator:
    """Owns the pipeline objects; the host owns the renderer, timers and engine backend."""

    def __init__(self, config: Config,
                 orientation: Optional[TransformTarget] = None,
                 emitters: Optional[Dict[str, object]] = None,
                 engine_factory: Optional[Callable[[], HapticEngine]] = None,
                 timer_host: Optional[TimerHost] = None):
        self.config = config
        rotation = config.rotation

        self.model = VelocityModel.from_config(rotation)
        self.mapper = FeedbackMapper(config.particles, config.haptic)
        self.translator = GestureTranslator(
            self.model,
            drag_gain=rotation.drag_gain,
            release_boost=rotation.release_boost,
            on_began=self.mapper.notify_interaction_began,
        )
        self.integrator = RotationIntegrator(
            self.model,
            target=orientation if orientation is not None else Orientation(),
            angle_scale=rotation.angle_scale,
        )

        if engine_factory is None:
            engine_factory = self._create_default_engine
        self.scheduler = HapticPulseScheduler(
            config.haptic,
            engine_factory,
            timer_host if timer_host is not None else ThreadingTimerHost(),
        )
        self.emitters: Dict[str, object] = dict(emitters or {})
        self.last_frame: Optional[FeedbackFrame] = None

        self._reset_session_stats()

    # ------------------------------------------------------------------
    # Host bindings
    # ------------------------------------------------------------------

    @property
    def orientation(self) -> Optional[TransformTarget]:
        return self.integrator.target

    def bind_orientation(self, target: Optional[TransformTarget]) -> None:
        self.integrator.bind(target)

    def bind_emitters(self, emitters: Dict[str, object]) -> None:
        self.emitters = dict(emitters)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def handle_gesture(self, sample: GestureSample) -> None:
        self.translator.handle(sample)

    def tick(self, dt: Optional[float] = None) -> Optional[FeedbackFrame]:
        """One display refresh. dt is accepted for host convenience and ignored."""
        result = self.integrator.tick()
        if result is None:
            return None

        frame = self.mapper.map(result.speed, result.added_speed)
        self._push_particles(frame)
        self.scheduler.apply(frame.haptic)
        self._update_session_stats(result.speed, result.added_speed, frame.haptic.active)

        self.last_frame = frame
        return frame

    def _push_particles(self, frame: FeedbackFrame) -> None:
        for i, params in enumerate(frame.particles):
            emitter = self.emitters.get(star_field_name(i))
            if emitter is None:
                continue
            emitter.apply_particle_params(params)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_haptics_enabled(self, enabled: bool) -> None:
        set_haptics_enabled(self.mapper, self.scheduler, enabled)
        log_event("INFO", "Scene", "Haptics " + ("on" if enabled else "off"))

    def _create_default_engine(self) -> HapticEngine:
        haptic = self.config.haptic
        return create_haptic_engine(haptic.backend, haptic, sample_rate=self.config.audio.sample_rate)

    def apply_config(self, config: Config) -> None:
        """Swap in new settings. Spin state is kept; physics limits and policies update.
        A backend change drops the live engine so the next start builds the new one."""
        previous_backend = self.config.haptic.backend
        self.config = config
        rotation = config.rotation
        self.model.decay_factor = rotation.decay_factor
        self.model.rest_epsilon = rotation.rest_epsilon
        self.model.max_added = rotation.max_added
        self.model.max_momentum = rotation.max_momentum
        self.translator.drag_gain = rotation.drag_gain
        self.translator.release_boost = rotation.release_boost
        self.integrator.angle_scale = rotation.angle_scale

        if config.haptic.backend != previous_backend:
            self.scheduler.shutdown()
            log_event("INFO", "Scene", "Haptic backend changed",
                      old=previous_backend, new=config.haptic.backend)
        else:
            self.scheduler.stop()
        self.mapper.reconfigure(config.particles, config.haptic)
        self.scheduler.config = config.haptic

    def handle_engine_reset(self) -> None:
        self.scheduler.handle_engine_reset()

    def shutdown(self) -> None:
        self.scheduler.shutdown()
        self._log_session_summary()

    # ------------------------------------------------------------------
    # Session summary
    # ------------------------------------------------------------------

    def _reset_session_stats(self) -> None:
        self._session_started_at = time.time()
        self._session_ticks = 0
        self._session_peak_speed = 0.0
        self._session_peak_added_speed = 0.0
        self._session_speed_sum = 0.0
        self._session_haptic_ticks = 0

    def _update_session_stats(self, speed: float, added_speed: float, haptic_active: bool) -> None:
        self._session_ticks += 1
        self._session_speed_sum += speed
        self._session_peak_speed = max(self._session_peak_speed, speed)
        self._session_peak_added_speed = max(self._session_peak_added_speed, added_speed)
        if haptic_active:
            self._session_haptic_ticks += 1

    def session_summary(self) -> dict:
        ticks = self._session_ticks
        return {
            "ticks": ticks,
            "seconds": max(0.0, time.time() - self._session_started_at),
            "peak_speed": self._session_peak_speed,
            "peak_user_speed": self._session_peak_added_speed,
            "mean_speed": self._session_speed_sum / ticks if ticks else 0.0,
            "haptic_ticks": self._session_haptic_ticks,
            "touches": self.mapper.interaction_count,
            "haptic_activations": self.scheduler.activations,
            "pulses": self.scheduler.pulses_emitted,
            "pulse_failures": self.scheduler.pulse_failures,
        }

    def _log_session_summary(self) -> None:
        if self._session_ticks <= 0:
            return
        summary = self.session_summary()
        log_event(
            "INFO",
            "Scene",
            "Session summary",
            ticks=summary["ticks"],
            seconds=f"{summary['seconds']:.1f}",
            peak_speed=f"{summary['peak_speed']:.1f}",
            peak_user_speed=f"{summary['peak_user_speed']:.1f}",
            mean_speed=f"{summary['mean_speed']:.1f}",
            touches=summary["touches"],
            haptic_activations=summary["haptic_activations"],
            pulses=summary["pulses"],
            pulse_failures=summary["pulse_failures"],
        )
