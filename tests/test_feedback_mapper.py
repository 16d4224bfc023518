import unittest

from config import FrequencyCurve, HapticConfig, HapticGate, ParticleConfig
from feedback_mapper import (
    INACTIVE,
    FeedbackMapper,
    ThresholdPulsePolicy,
    VelocityFrequencyPolicy,
    build_haptic_policy,
    particle_params,
    speed_multiplier,
)


class TestParticleParams(unittest.TestCase):
    def test_multiplier_floors_at_one(self):
        self.assertEqual(speed_multiplier(0.0), 1.0)
        self.assertEqual(speed_multiplier(20.0), 1.0)
        self.assertAlmostEqual(speed_multiplier(360.0), 10.0)

    def test_idle_layers(self):
        layers = particle_params(36.0)
        self.assertEqual(len(layers), 3)
        self.assertAlmostEqual(layers[0].velocity, 0.5)
        self.assertAlmostEqual(layers[1].velocity, 0.8)
        self.assertAlmostEqual(layers[2].velocity, 1.1)
        self.assertAlmostEqual(layers[0].birth_rate, 50.0)
        self.assertAlmostEqual(layers[2].birth_rate, 110.0)
        self.assertAlmostEqual(layers[0].acceleration, 2.0)

    def test_fast_layers(self):
        layers = particle_params(360.0)
        self.assertAlmostEqual(layers[1].velocity, 8.0)
        self.assertAlmostEqual(layers[1].birth_rate, 296.0)
        self.assertAlmostEqual(layers[1].acceleration, 15.5)

    def test_layer_count_follows_config(self):
        self.assertEqual(len(particle_params(100.0, ParticleConfig(layer_count=5))), 5)


class TestThresholdPulsePolicy(unittest.TestCase):
    def setUp(self):
        self.policy = ThresholdPulsePolicy(HapticConfig())

    def test_idle_spin_never_activates(self):
        # Total speed is ~36 but user-added speed is zero
        self.assertIs(self.policy.evaluate(36.06, 0.0), INACTIVE)
        self.assertIs(self.policy.evaluate(5000.0, 0.0), INACTIVE)

    def test_hysteresis(self):
        self.assertFalse(self.policy.evaluate(80.0, 40.0).active)
        self.assertTrue(self.policy.evaluate(80.0, 41.0).active)
        self.assertTrue(self.policy.evaluate(80.0, 36.0).active)
        self.assertFalse(self.policy.evaluate(80.0, 34.9).active)
        self.assertFalse(self.policy.evaluate(80.0, 38.0).active)

    def test_interval_lerps_slow_to_fast(self):
        self.assertAlmostEqual(self.policy.pulse_interval(0.0), 0.2)
        self.assertAlmostEqual(self.policy.pulse_interval(1.0), 0.05)
        self.assertAlmostEqual(self.policy.pulse_interval(0.5), 0.125)
        self.assertAlmostEqual(self.policy.pulse_interval(3.0), 0.05)

    def test_target_fields(self):
        target = self.policy.evaluate(1600.0, 1500.0)
        self.assertTrue(target.active)
        self.assertAlmostEqual(target.drive, 0.5)
        self.assertAlmostEqual(target.frequency_hz, 8.0)
        self.assertAlmostEqual(target.intensity, 0.7)
        self.assertAlmostEqual(target.sharpness, 0.2)
        self.assertEqual(target.duration_ms, 1000)

    def test_drive_tracks_speed_while_intensity_stays_configured(self):
        slow = self.policy.evaluate(800.0, 750.0)
        fast = self.policy.evaluate(5000.0, 4500.0)

        self.assertAlmostEqual(slow.drive, 0.25)
        self.assertAlmostEqual(fast.drive, 1.0)
        self.assertAlmostEqual(slow.intensity, 0.7)
        self.assertAlmostEqual(fast.intensity, 0.7)

    def test_frequency_capped_by_config(self):
        policy = ThresholdPulsePolicy(HapticConfig(frequency_hz=10.0))
        target = policy.evaluate(4000.0, 3000.0)
        self.assertAlmostEqual(target.frequency_hz, 10.0)

    def test_total_speed_gate(self):
        policy = ThresholdPulsePolicy(HapticConfig(gate=HapticGate.TOTAL_SPEED))
        self.assertTrue(policy.evaluate(50.0, 0.0).active)


class TestVelocityFrequencyPolicy(unittest.TestCase):
    def setUp(self):
        self.policy = VelocityFrequencyPolicy(HapticConfig(curve=FrequencyCurve.VELOCITY_LINEAR))

    def test_start_and_stop_thresholds(self):
        self.assertFalse(self.policy.evaluate(0.0, 20.0).active)
        self.assertTrue(self.policy.evaluate(0.0, 21.0).active)
        self.assertTrue(self.policy.evaluate(0.0, 10.0).active)
        self.assertFalse(self.policy.evaluate(0.0, 9.0).active)

    def test_frequency_is_linear(self):
        target = self.policy.evaluate(0.0, 250.0)
        self.assertAlmostEqual(target.frequency_hz, 12.5)
        target = self.policy.evaluate(0.0, 900.0)
        self.assertAlmostEqual(target.frequency_hz, 20.0)
        self.assertAlmostEqual(target.drive, 1.0)

    def test_build_policy_picks_curve(self):
        self.assertIsInstance(build_haptic_policy(HapticConfig()), ThresholdPulsePolicy)
        self.assertIsInstance(
            build_haptic_policy(HapticConfig(curve=FrequencyCurve.VELOCITY_LINEAR)),
            VelocityFrequencyPolicy,
        )


class TestFeedbackMapper(unittest.TestCase):
    def test_map_combines_particles_and_haptics(self):
        mapper = FeedbackMapper(ParticleConfig(), HapticConfig())
        frame = mapper.map(360.0, 300.0)
        self.assertEqual(len(frame.particles), 3)
        self.assertTrue(frame.haptic.active)

    def test_disabled_haptics_are_inactive(self):
        haptic = HapticConfig(enabled=False)
        mapper = FeedbackMapper(ParticleConfig(), haptic)
        self.assertIs(mapper.map(3000.0, 3000.0).haptic, INACTIVE)

    def test_disable_resets_gate(self):
        haptic = HapticConfig()
        mapper = FeedbackMapper(ParticleConfig(), haptic)
        self.assertTrue(mapper.haptic_target(500.0, 500.0).active)

        mapper.set_haptics_enabled(False)
        self.assertFalse(haptic.enabled)
        self.assertFalse(mapper.policy.active)

        mapper.set_haptics_enabled(True)
        # Inside the hysteresis band a fresh gate stays closed
        self.assertFalse(mapper.haptic_target(38.0, 38.0).active)

    def test_reconfigure_swaps_policy(self):
        mapper = FeedbackMapper(ParticleConfig(), HapticConfig())
        mapper.reconfigure(ParticleConfig(layer_count=2), HapticConfig(curve=FrequencyCurve.VELOCITY_LINEAR))
        self.assertIsInstance(mapper.policy, VelocityFrequencyPolicy)
        self.assertEqual(len(mapper.particle_params(36.0)), 2)

    def test_interaction_count(self):
        mapper = FeedbackMapper(ParticleConfig(), HapticConfig())
        mapper.notify_interaction_began()
        mapper.notify_interaction_began()
        self.assertEqual(mapper.interaction_count, 2)


if __name__ == "__main__":
    unittest.main()
