"""Deterministic doubles shared by the haptics and scene tests."""

from errors import PulseEmissionFailed
from haptic_engines import HapticEngine, PatternPlayer


class ManualHandle:
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualTimerHost:
    """TimerHost driven by advance(); callbacks fire in due order."""

    def __init__(self):
        self.time = 0.0
        self.pending = []

    def now(self):
        return self.time

    def call_later(self, delay_s, callback):
        handle = ManualHandle(self.time + max(0.0, delay_s), callback)
        self.pending.append(handle)
        return handle

    def live(self):
        return [h for h in self.pending if not h.cancelled]

    def advance(self, seconds):
        end = self.time + seconds
        while True:
            due = [h for h in self.live() if h.due <= end + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.pending.remove(handle)
            self.time = max(self.time, handle.due)
            handle.callback()
        self.time = end


class FakeEngine(HapticEngine):
    name = "fake"

    def __init__(self, start_error=None, fail_pulses=False):
        super().__init__()
        self.start_error = start_error
        self.fail_pulses = fail_pulses
        self.start_calls = 0
        self.stop_calls = 0
        self.transients = []
        self.patterns = []
        self.players = []

    def start(self):
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error
        super().start()

    def stop(self):
        self.stop_calls += 1
        super().stop()

    def play_transient(self, intensity, sharpness):
        if self.fail_pulses:
            raise PulseEmissionFailed("fake failure")
        self.transients.append((intensity, sharpness))

    def play_pattern(self, events):
        self.patterns.append(list(events))
        player = PatternPlayer()
        self.players.append(player)
        return player


class EngineFactory:
    """Hands out FakeEngines; the first ``failures`` starts raise ``error``."""

    def __init__(self, failures=0, error=None, fail_pulses=False):
        self.failures = failures
        self.error = error if error is not None else RuntimeError("engine boot failed")
        self.fail_pulses = fail_pulses
        self.created = []

    def __call__(self):
        error = self.error if len(self.created) < self.failures else None
        engine = FakeEngine(start_error=error, fail_pulses=self.fail_pulses)
        self.created.append(engine)
        return engine

    @property
    def last(self):
        return self.created[-1]
