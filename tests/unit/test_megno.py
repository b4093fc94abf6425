"""
Unit Tests for the MEGNO Computation

Tests verify:
1. Reproducible perturbations with a fixed seed
2. Hand-computed trapezoidal accumulation
3. The tangent integrand and the MEGNO equations
"""

import pytest
import numpy as np

from src.sitnikov.megno import (
    MegnoAccumulator,
    MegnoEquations,
    accumulate_megnos,
    perturb,
    tangent_integrand,
)
from src.sitnikov.orbit import PrimaryOrbit


class TestPerturb:
    """Test the displacement of initial values"""

    def test_same_seed_same_values(self):
        """Test a fixed seed gives bit-identical samples"""
        first = perturb([1.0, 0.0], np.random.default_rng(1))
        second = perturb([1.0, 0.0], np.random.default_rng(1))
        np.testing.assert_array_equal(first, second)

    def test_values_are_displaced(self):
        """Test samples differ from the means but stay close"""
        x = np.array([1.0, 0.0])
        displaced = perturb(x, np.random.default_rng(1), sd=0.1)

        assert displaced.shape == (2,)
        assert np.all(displaced != x)
        assert np.all(np.abs(displaced - x) < 1.0)

    def test_dtype_preserved(self):
        """Test single precision input stays single precision"""
        displaced = perturb(np.array([1.0, 0.0], dtype=np.float32), np.random.default_rng(1))
        assert displaced.dtype == np.float32


class TestMegnoAccumulator:
    """Test incremental trapezoidal integration"""

    def test_first_step(self):
        """Test i = 1 uses the plain trapezoidal rule from a zero integrand"""
        h, c = 0.1, 2.0
        acc = MegnoAccumulator(h)
        megno, mean_megno = acc.update(c)

        assert acc.integral == pytest.approx(h * c / 2)
        assert megno == pytest.approx(2 / h * (h * c / 2))
        assert acc.mean_integral == pytest.approx(h * megno / 2)
        assert mean_megno == pytest.approx(acc.mean_integral / h)

    def test_second_step(self):
        """Test i = 2 follows the incremental update"""
        h, c = 0.1, 2.0
        acc = MegnoAccumulator(h)
        acc.update(c)
        megno, _ = acc.update(c)

        assert acc.i == 2
        assert acc.integral == pytest.approx(0.75 * h * c)
        assert megno == pytest.approx(2 / (2 * h) * 0.75 * h * c)

    def test_trapezoidal_formula(self):
        """Test the general step against the closed form"""
        acc = MegnoAccumulator(h=0.5)
        i, integral, prev, current = 4, 1.0, 2.0, 3.0
        expected = (integral + 0.5 * prev / 2 / 3) * 3 / 4 + 0.5 * current / 2 / 4
        assert acc.trapezoidal(i, integral, prev, current) == pytest.approx(expected)

    def test_time_offset(self):
        """Test the time moment includes t_0"""
        acc = MegnoAccumulator(h=0.1, t_0=1.0)
        megno, _ = acc.update(2.0)
        assert megno == pytest.approx(2 / 1.1 * 0.1)


class TestTangentIntegrand:
    """Test the MEGNO integrand"""

    def test_displacement_along_position(self):
        """Test a pure position displacement gives no growth"""
        assert tangent_integrand(2.0, 0.0, 1.0, 0.0, 1.0) == 0.0

    def test_mixed_displacement(self):
        """Test (δż*δz + da/dz*δz*δż)/(δz² + δż²)*t"""
        t, z, r = 2.0, 1.0, 1.0
        gradient = (2 * z ** 2 - r ** 2) / (r ** 2 + z ** 2) ** 2.5
        expected = (1.0 + gradient) / 2.0 * t
        assert tangent_integrand(t, z, 1.0, 1.0, r) == pytest.approx(expected)

    def test_scale_invariance(self):
        """Test the integrand doesn't depend on the displacement size"""
        small = tangent_integrand(3.0, 0.5, 1e-6, 2e-6, 1.2)
        large = tangent_integrand(3.0, 0.5, 1.0, 2.0, 1.2)
        assert small == pytest.approx(large)


class TestMegnoEquations:
    """Test the right-hand side of the MEGNO system"""

    def test_update(self):
        """Test each component of the derivative"""
        orbit = PrimaryOrbit(e=0.0)
        equations = MegnoEquations(orbit)
        t = 2.0
        x = np.array([1.0, 1.1, 0.0, 0.05, 0.3, 0.4])

        dx = equations.update(t, x)
        a = orbit.acceleration(t, x[0:2])
        delta_z, delta_z_v, delta_a = 0.1, 0.05, a[1] - a[0]

        np.testing.assert_allclose(dx[:4], [0.0, 0.05, a[0], a[1]])
        assert dx[4] == pytest.approx(
            (delta_z_v * delta_z + delta_a * delta_z_v) / (delta_z ** 2 + delta_z_v ** 2) * t
        )
        assert dx[5] == pytest.approx(2 * 0.3 / t)

    def test_dtype_preserved(self):
        """Test single precision states give single precision derivatives"""
        equations = MegnoEquations(PrimaryOrbit(e=0.2, dtype=np.float32))
        x = np.array([1.0, 1.1, 0.0, 0.05, 0.0, 0.0], dtype=np.float32)
        assert equations.update(1.0, x).dtype == np.float32


class TestAccumulateMegnos:
    """Test MEGNOs along precomputed trajectories"""

    def test_shapes_and_initial_column(self):
        """Test the series cover every column with zeros first"""
        orbit = PrimaryOrbit(e=0.0)
        columns = 5
        trajectories = np.array([
            np.full(columns, 1.0),
            np.full(columns, 1.1),
            np.zeros(columns),
            np.full(columns, 0.05),
        ])

        megno, mean_megno = accumulate_megnos(orbit, trajectories, 0.0, 0.1)

        assert megno.shape == (columns,)
        assert mean_megno.shape == (columns,)
        assert megno[0] == 0.0
        assert mean_megno[0] == 0.0
        assert np.all(np.isfinite(megno))

    def test_matches_accumulator(self):
        """Test the series equal a manual accumulation"""
        orbit = PrimaryOrbit(e=0.3)
        h = 0.05
        trajectories = np.array([
            [1.0, 0.99, 0.97],
            [1.1, 1.08, 1.05],
            [0.0, -0.2, -0.4],
            [0.05, -0.16, -0.37],
        ])

        megno, mean_megno = accumulate_megnos(orbit, trajectories, 0.0, h)

        acc = MegnoAccumulator(h)
        for i in (1, 2):
            t = i * h
            z, z_tilde, z_v, z_v_tilde = trajectories[:, i]
            integrand = tangent_integrand(t, z, z_tilde - z, z_v_tilde - z_v, orbit.radius(t))
            expected = acc.update(integrand)
            assert megno[i] == pytest.approx(expected[0])
            assert mean_megno[i] == pytest.approx(expected[1])


if __name__ == '__main__':
    pytest.main([__file__, '-v', '--tb=short'])
