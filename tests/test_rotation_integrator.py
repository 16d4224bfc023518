import math
import unittest

import numpy as np

from rotation_integrator import (
    IDLE_SPEED,
    X_AXIS,
    Y_AXIS,
    Orientation,
    RotationIntegrator,
    rotation_matrix,
)
from velocity_model import AngularVelocity, VelocityModel


class TestRotationMatrix(unittest.TestCase):
    def test_quarter_turn_about_x(self):
        m = rotation_matrix(math.pi / 2, X_AXIS)
        rotated = m @ np.array([0.0, 1.0, 0.0, 1.0])
        np.testing.assert_allclose(rotated, [0.0, 0.0, 1.0, 1.0], atol=1e-12)

    def test_quarter_turn_about_y(self):
        m = rotation_matrix(math.pi / 2, Y_AXIS)
        rotated = m @ np.array([0.0, 0.0, 1.0, 1.0])
        np.testing.assert_allclose(rotated, [1.0, 0.0, 0.0, 1.0], atol=1e-12)

    def test_zero_axis_is_identity(self):
        np.testing.assert_array_equal(rotation_matrix(1.0, (0.0, 0.0, 0.0)), np.eye(4))


class TestRotationIntegrator(unittest.TestCase):
    def test_idle_tick_composes_x_then_y(self):
        model = VelocityModel()
        orientation = Orientation()
        integrator = RotationIntegrator(model, orientation)

        result = integrator.tick()

        expected = rotation_matrix(20.0 * 0.0001, X_AXIS) @ rotation_matrix(30.0 * 0.0001, Y_AXIS)
        np.testing.assert_allclose(orientation.transform, expected, atol=1e-12)
        self.assertAlmostEqual(result.angle_x, 0.002)
        self.assertAlmostEqual(result.angle_y, 0.003)
        self.assertAlmostEqual(result.speed, math.hypot(30.0, 20.0))
        self.assertEqual(result.added_speed, 0.0)

    def test_transform_is_post_multiplied(self):
        model = VelocityModel()
        start = rotation_matrix(0.7, (0.0, 0.0, 1.0))
        orientation = Orientation(start.copy())
        integrator = RotationIntegrator(model, orientation)

        integrator.tick()

        step = rotation_matrix(0.002, X_AXIS) @ rotation_matrix(0.003, Y_AXIS)
        np.testing.assert_allclose(orientation.transform, start @ step, atol=1e-12)

    def test_speed_sampled_before_decay(self):
        model = VelocityModel()
        model.added = AngularVelocity(100.0, 0.0)
        integrator = RotationIntegrator(model, Orientation())

        result = integrator.tick()

        self.assertAlmostEqual(result.added_speed, 100.0)
        self.assertAlmostEqual(result.speed, math.hypot(130.0, 20.0))
        self.assertAlmostEqual(result.angle_y, 130.0 * 0.0001)
        self.assertAlmostEqual(model.added.dx, 98.5)

    def test_unbound_tick_is_noop(self):
        model = VelocityModel()
        model.added = AngularVelocity(100.0, 0.0)
        integrator = RotationIntegrator(model)

        self.assertIsNone(integrator.tick())
        self.assertEqual(model.added.dx, 100.0)

    def test_bind_later(self):
        model = VelocityModel()
        integrator = RotationIntegrator(model)
        orientation = Orientation()
        integrator.bind(orientation)
        self.assertIsNotNone(integrator.tick())
        self.assertFalse(np.allclose(orientation.transform, np.eye(4)))

    def test_transform_stays_orthonormal(self):
        model = VelocityModel()
        model.added = AngularVelocity(4000.0, -3000.0)
        orientation = Orientation()
        integrator = RotationIntegrator(model, orientation)
        for _ in range(500):
            integrator.tick()
        r = orientation.rotation()
        np.testing.assert_allclose(r @ r.T, np.eye(3), atol=1e-9)

    def test_idle_speed(self):
        integrator = RotationIntegrator(VelocityModel())
        self.assertAlmostEqual(integrator.idle_speed, IDLE_SPEED)

    def test_orientation_reset(self):
        orientation = Orientation(rotation_matrix(1.0, X_AXIS))
        orientation.reset()
        np.testing.assert_array_equal(orientation.transform, np.eye(4))


if __name__ == "__main__":
    unittest.main()
