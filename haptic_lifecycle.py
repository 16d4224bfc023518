from typing import Callable, Optional

from haptic_engines import HapticEngine


def ensure_haptic_engine(
    existing_engine: Optional[HapticEngine],
    engine_factory: Callable[[], HapticEngine],
    *,
    force_new: bool = False,
) -> HapticEngine:
    """Create and start a haptic engine if needed; reuse a valid running one.
    Start errors propagate to the caller."""
    engine = None if force_new else existing_engine

    if engine is not None and engine.is_valid:
        if not engine.running:
            engine.start()
        return engine

    engine = engine_factory()
    engine.start()
    return engine


def set_haptics_enabled(mapper, scheduler, enabled: bool) -> None:
    """Flip haptics on/off; turning off stops any in-flight pulsing immediately."""
    mapper.set_haptics_enabled(enabled)
    if not enabled:
        scheduler.stop()
