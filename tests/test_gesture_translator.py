import unittest

from gesture_translator import GesturePhase, GestureSample, GestureTranslator, pointer_release_samples
from velocity_model import ZERO, AngularVelocity, VelocityModel


def sample(phase, x=0.0, y=0.0, vx=0.0, vy=0.0):
    return GestureSample(phase, (x, y), (vx, vy))


class TestGestureTranslator(unittest.TestCase):
    def setUp(self):
        self.model = VelocityModel()
        self.began = 0
        self.ended = 0
        self.translator = GestureTranslator(
            self.model,
            on_began=self._on_began,
            on_ended=self._on_ended,
        )

    def _on_began(self):
        self.began += 1

    def _on_ended(self):
        self.ended += 1

    def test_began_adds_no_velocity(self):
        self.translator.handle(sample(GesturePhase.BEGAN, 100, 100))
        self.assertTrue(self.translator.active)
        self.assertEqual(self.model.added, ZERO)
        self.assertEqual(self.began, 1)

    def test_changed_applies_delta_times_gain(self):
        self.translator.handle(sample(GesturePhase.BEGAN, 100, 100))
        self.translator.handle(sample(GesturePhase.CHANGED, 110, 95, vx=500, vy=-250))
        self.assertEqual(self.model.added, AngularVelocity(30.0, -15.0))
        self.assertEqual(self.translator.last_position, (110, 95))
        self.assertEqual(self.translator.current_velocity, (500, -250))

    def test_deltas_are_incremental(self):
        self.translator.handle(sample(GesturePhase.BEGAN, 0, 0))
        self.translator.handle(sample(GesturePhase.CHANGED, 10, 0))
        self.translator.handle(sample(GesturePhase.CHANGED, 15, 0))
        self.assertEqual(self.model.added.dx, 45.0)

    def test_ended_applies_release_boost(self):
        self.translator.handle(sample(GesturePhase.BEGAN, 0, 0))
        self.translator.handle(sample(GesturePhase.CHANGED, 10, 0, vx=200, vy=100))
        self.translator.handle(sample(GesturePhase.ENDED, 10, 0, vx=999, vy=999))
        # 10*3 drag + 200*1.5 release; the ended sample's own velocity is not used
        self.assertEqual(self.model.added, AngularVelocity(330.0, 150.0))
        self.assertFalse(self.translator.active)
        self.assertEqual(self.ended, 1)

    def test_cancelled_behaves_like_ended(self):
        self.translator.handle(sample(GesturePhase.BEGAN, 0, 0))
        self.translator.handle(sample(GesturePhase.CHANGED, 0, 0, vx=-100, vy=0))
        self.translator.handle(sample(GesturePhase.CANCELLED))
        self.assertEqual(self.model.added, AngularVelocity(-150.0, 0.0))
        self.assertEqual(self.ended, 1)

    def test_changed_without_began_is_ignored(self):
        self.translator.handle(sample(GesturePhase.CHANGED, 50, 50, vx=100, vy=100))
        self.translator.handle(sample(GesturePhase.ENDED))
        self.assertEqual(self.model.added, ZERO)
        self.assertEqual(self.ended, 0)

    def test_new_gesture_forgets_previous_velocity(self):
        self.translator.handle(sample(GesturePhase.BEGAN, 0, 0))
        self.translator.handle(sample(GesturePhase.CHANGED, 0, 0, vx=400, vy=0))
        self.translator.handle(sample(GesturePhase.ENDED))
        self.model.reset()

        self.translator.handle(sample(GesturePhase.BEGAN, 0, 0))
        self.translator.handle(sample(GesturePhase.ENDED))
        self.assertEqual(self.model.added, ZERO)

    def test_custom_gains(self):
        self.translator.drag_gain = 1.0
        self.translator.release_boost = 2.0
        self.translator.handle(sample(GesturePhase.BEGAN, 0, 0))
        self.translator.handle(sample(GesturePhase.CHANGED, 4, 2, vx=10, vy=0))
        self.translator.handle(sample(GesturePhase.ENDED))
        self.assertEqual(self.model.added, AngularVelocity(24.0, 2.0))


class TestPointerRelease(unittest.TestCase):
    def setUp(self):
        self.model = VelocityModel()
        self.translator = GestureTranslator(self.model)
        self.translator.handle(sample(GesturePhase.BEGAN, 0, 0))
        self.translator.handle(sample(GesturePhase.CHANGED, 10, 0, vx=400, vy=0))

    def release(self, idle_s):
        for s in pointer_release_samples((10.0, 0.0), (400.0, 0.0), idle_s):
            self.translator.handle(s)

    def test_quick_release_keeps_flick(self):
        self.release(0.016)
        self.assertEqual(self.model.added, AngularVelocity(630.0, 0.0))
        self.assertFalse(self.translator.active)

    def test_release_after_holding_still_adds_no_flick(self):
        self.release(0.3)
        self.assertEqual(self.model.added, AngularVelocity(30.0, 0.0))
        self.assertFalse(self.translator.active)

    def test_held_release_samples(self):
        samples = pointer_release_samples((5.0, 6.0), (400.0, 50.0), 0.051)
        self.assertEqual([s.phase for s in samples], [GesturePhase.CHANGED, GesturePhase.ENDED])
        self.assertTrue(all(s.velocity == (0.0, 0.0) for s in samples))
        self.assertTrue(all(s.position == (5.0, 6.0) for s in samples))


if __name__ == "__main__":
    unittest.main()
