"""
neonspin - Gesture Translator
Turns already-decoded pan samples into spin impulses on the VelocityModel.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from velocity_model import VelocityModel


class GesturePhase(Enum):
    BEGAN = "began"
    CHANGED = "changed"
    ENDED = "ended"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class GestureSample:
    """One pan recognizer callback"""
    phase: GesturePhase
    position: Tuple[float, float]     # Pointer location in view points
    velocity: Tuple[float, float]     # Instantaneous pointer velocity (points/s)


class GestureTranslator:
    """
    Pan state machine:
      BEGAN      -> remember position, forget previous release velocity
      CHANGED    -> position delta * drag_gain into added spin
      ENDED/CANC -> last instantaneous velocity * release_boost into added spin
    """

    def __init__(self, model: VelocityModel,
                 drag_gain: float = 3.0,
                 release_boost: float = 1.5,
                 on_began: Optional[Callable[[], None]] = None,
                 on_ended: Optional[Callable[[], None]] = None):
        self.model = model
        self.drag_gain = drag_gain
        self.release_boost = release_boost
        self.on_began = on_began
        self.on_ended = on_ended

        self.last_position: Optional[Tuple[float, float]] = None
        self.current_velocity: Tuple[float, float] = (0.0, 0.0)

    @property
    def active(self) -> bool:
        return self.last_position is not None

    def handle(self, sample: GestureSample) -> None:
        if sample.phase is GesturePhase.BEGAN:
            self._began(sample)
        elif sample.phase is GesturePhase.CHANGED:
            self._changed(sample)
        elif sample.phase in (GesturePhase.ENDED, GesturePhase.CANCELLED):
            self._ended()

    def _began(self, sample: GestureSample) -> None:
        self.last_position = sample.position
        self.current_velocity = (0.0, 0.0)
        if self.on_began:
            self.on_began()

    def _changed(self, sample: GestureSample) -> None:
        if self.last_position is None:
            # Move without a begin (recognizer reattached mid-drag)
            return
        delta_x = sample.position[0] - self.last_position[0]
        delta_y = sample.position[1] - self.last_position[1]
        self.model.apply_drag_delta(delta_x, delta_y, self.drag_gain)
        self.last_position = sample.position
        self.current_velocity = sample.velocity

    def _ended(self) -> None:
        if self.last_position is None:
            return
        vx, vy = self.current_velocity
        self.model.apply_release_boost(vx, vy, self.release_boost)
        self.last_position = None
        self.current_velocity = (0.0, 0.0)
        if self.on_ended:
            self.on_ended()


RELEASE_STALE_S = 0.05


def pointer_release_samples(position: Tuple[float, float],
                            velocity: Tuple[float, float],
                            idle_s: float,
                            stale_after_s: float = RELEASE_STALE_S) -> List[GestureSample]:
    """Samples a pointer host sends on button release.

    A pointer held still for longer than stale_after_s has no flick left, so a
    zero-velocity CHANGED is sent first and the release adds no boost.
    """
    if idle_s > stale_after_s:
        return [
            GestureSample(GesturePhase.CHANGED, position, (0.0, 0.0)),
            GestureSample(GesturePhase.ENDED, position, (0.0, 0.0)),
        ]
    return [GestureSample(GesturePhase.ENDED, position, velocity)]
