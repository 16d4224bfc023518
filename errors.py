"""Failure taxonomy for the haptic and audio collaborators.

None of these ever reach the user: the scheduler and the ambient loop catch
them at their boundary, log, and degrade to "no haptics" / "no music".
"""


class HapticError(Exception):
    """Base class for haptic engine failures."""


class EngineUnavailable(HapticError):
    """Haptic hardware or engine is absent or failed to initialize."""


class PulseEmissionFailed(HapticError):
    """A single pulse failed to play; the cadence continues."""


class EngineReset(HapticError):
    """The host invalidated the engine (e.g. app backgrounded)."""


class AudioUnavailable(Exception):
    """No output device or stream could be opened for the ambient loop."""
