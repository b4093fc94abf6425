"""
Unit Tests for the Sitnikov Model

Tests verify:
1. Scaling of configuration values into model units
2. Trajectories are time-reversible
3. MEGNO series from both schemes
4. Accessor errors and failure chaining
"""

import pytest
import numpy as np

from src.common.config import SitnikovConfig
from src.common.exceptions import ConvergenceError, IntegrationError, OutputError, format_error_chain
from src.integrators.factory import IntegrationMethod
from src.sitnikov.model import SitnikovModel
from src.sitnikov.orbit import PrimaryOrbit
from src.sitnikov.writer import deserialize_from


H = 1e-2 * np.pi / 2
N = 100


def megno_config(scheme: str) -> SitnikovConfig:
    config = SitnikovConfig()
    config.model.e = 0.2
    config.integration.h = 0.1
    config.integration.periods = 1
    config.megno.enabled = True
    config.megno.scheme = scheme
    return config


class TestFromConfig:
    """Test configuration values are scaled into model units"""

    def test_scaling(self):
        """Test h, n, i_m and tau"""
        config = SitnikovConfig()
        config.model.tau = 0.25
        config.integration.h = 0.01
        config.integration.periods = 1

        model = SitnikovModel.from_config(config)

        assert model.h == pytest.approx(0.01 * np.pi / 2)
        assert model.n == 400
        assert model.i_m == 100
        assert model.tau == pytest.approx(np.pi / 2)

    def test_method_and_dtype(self):
        """Test the method alias and floating point type are resolved"""
        config = SitnikovConfig()
        config.integration.method = 'rk4'
        config.integration.dtype = 'float32'

        model = SitnikovModel.from_config(config)

        assert model.method == IntegrationMethod.RUNGE_KUTTA_4TH
        assert model.dtype == np.float32
        assert model.x_0.dtype == np.float32


class TestModelValidation:
    """Test invalid model parameters"""

    @pytest.mark.parametrize("i_m", [0, -1, N + 1])
    def test_invalid_megno_offset(self, i_m):
        """Test i_m must be in [1, n] for the ode scheme"""
        with pytest.raises(ValueError, match="MEGNO offset"):
            SitnikovModel(0.2, 0.0, 1.0, 0.0, H, N, i_m=i_m, compute_megno=True)

    def test_offset_ignored_without_megno(self):
        """Test i_m isn't checked for plain runs"""
        SitnikovModel(0.2, 0.0, 1.0, 0.0, H, N, i_m=0)

    def test_unknown_scheme(self):
        """Test unknown MEGNO schemes are rejected"""
        with pytest.raises(ValueError, match="MEGNO scheme"):
            SitnikovModel(0.2, 0.0, 1.0, 0.0, H, N, i_m=10, compute_megno=True,
                          megno_scheme='simpson')

    def test_unknown_method(self):
        """Test unknown integration methods are rejected"""
        with pytest.raises(ValueError):
            SitnikovModel(0.2, 0.0, 1.0, 0.0, H, N, method='euler')


class TestMotion:
    """Test plain integrations of the equations of motion"""

    def test_plain_run(self):
        """Test shapes and initial values"""
        model = SitnikovModel(0.2, 0.0, 1.0, 0.0, H, N)
        results = model.integrate()

        assert results.x.data.shape == (2, N + 1)
        assert results.m is None
        assert model.position()[0] == 1.0
        assert model.velocity()[0] == 0.0
        assert len(model.times()) == N + 1
        assert model.times()[-1] == pytest.approx(N * H)

    def test_body_falls_towards_the_plane(self):
        """Test a body released at rest starts moving towards z = 0"""
        model = SitnikovModel(0.0, 0.0, 1.0, 0.0, H, N)
        model.integrate()

        assert model.position()[-1] < 1.0
        assert model.velocity()[-1] < 0.0

    @pytest.mark.parametrize("method,tolerance", [
        (IntegrationMethod.RUNGE_KUTTA_4TH, 100 * H ** 4),
        (IntegrationMethod.LEAPFROG, 10 * H ** 2),
        (IntegrationMethod.YOSHIDA_4TH, 10 * H ** 4),
    ])
    def test_reversibility(self, method, tolerance):
        """Test integrating back with -h recovers the initial values"""
        forward = SitnikovModel(0.6, 0.0, 1.0, 0.0, H, N, method=method)
        forward.integrate()
        z, z_v = forward.results.x.final_state()

        backward = SitnikovModel(0.6, 0.0, z, z_v, -H, N, t_0=N * H, method=method)
        backward.integrate()

        np.testing.assert_allclose(
            backward.results.x.final_state(), [1.0, 0.0], atol=tolerance
        )

    def test_single_precision(self):
        """Test float32 runs stay in float32 and agree with float64"""
        single = SitnikovModel(0.2, 0.0, 1.0, 0.0, H, N, dtype=np.float32)
        double = SitnikovModel(0.2, 0.0, 1.0, 0.0, H, N)
        single.integrate()
        double.integrate()

        assert single.position().dtype == np.float32
        np.testing.assert_allclose(single.position(), double.position(), atol=1e-4)


class TestMegno:
    """Test MEGNO runs"""

    def test_ode_scheme(self):
        """Test the MEGNO system starts at i_m with zero integrals"""
        model = SitnikovModel.from_config(megno_config('ode'))
        assert (model.n, model.i_m) == (40, 10)

        results = model.integrate()

        assert results.x.data.shape == (4, 11)
        assert results.m.data.shape == (6, 31)
        np.testing.assert_array_equal(results.m.state(0)[:4], results.x.state(10))
        assert model.megno()[0] == 0.0
        assert model.mean_megno()[0] == 0.0
        assert np.all(np.isfinite(model.megno()))
        assert np.all(np.isfinite(model.mean_megno()))
        assert len(model.times()) == 31
        assert model.times()[0] == pytest.approx(10 * model.h)

    def test_trapezoidal_scheme(self):
        """Test the series cover the whole trajectory"""
        model = SitnikovModel.from_config(megno_config('trapezoidal'))
        results = model.integrate()

        assert results.x.data.shape == (4, 41)
        assert results.m is None
        assert model.megno().shape == (41,)
        assert model.mean_megno().shape == (41,)
        assert model.megno()[0] == 0.0
        assert np.all(np.isfinite(model.mean_megno()))

    def test_shadow_trajectory_is_displaced(self):
        """Test the shadow starts at perturbed initial values"""
        model = SitnikovModel.from_config(megno_config('trapezoidal'))
        model.integrate()
        z, z_tilde, z_v, z_v_tilde = model.results.x.initial_values()

        assert (z, z_v) == (1.0, 0.0)
        assert z_tilde != z
        assert z_v_tilde != z_v

    @pytest.mark.parametrize("scheme", ['ode', 'trapezoidal'])
    def test_deterministic(self, scheme):
        """Test repeated runs are bit-identical"""
        first = SitnikovModel.from_config(megno_config(scheme))
        second = SitnikovModel.from_config(megno_config(scheme))
        first.integrate()
        second.integrate()

        np.testing.assert_array_equal(first.mean_megno(), second.mean_megno())

    def test_series_keys(self):
        """Test MEGNO runs provide four series"""
        model = SitnikovModel.from_config(megno_config('ode'))
        model.integrate()
        assert list(model.series()) == ['z', 'z_v', 'megno', 'mean_megno']


class TestAccessors:
    """Test accessors before integration and without MEGNOs"""

    def test_not_integrated(self):
        """Test accessors need results"""
        model = SitnikovModel(0.2, 0.0, 1.0, 0.0, H, N)
        with pytest.raises(ValueError, match="hasn't been integrated"):
            model.position()
        with pytest.raises(ValueError):
            model.times()

    def test_megno_not_computed(self):
        """Test MEGNO accessors need a MEGNO run"""
        model = SitnikovModel(0.2, 0.0, 1.0, 0.0, H, N)
        model.integrate()
        with pytest.raises(ValueError, match="MEGNOs weren't computed"):
            model.megno()
        with pytest.raises(ValueError):
            model.mean_megno()


class TestWrite:
    """Test result files"""

    def test_plain_files(self, tmp_path):
        """Test z and z_v are written"""
        model = SitnikovModel(0.2, 0.0, 1.0, 0.0, H, N)
        model.integrate()
        model.write(tmp_path)

        assert sorted(p.name for p in tmp_path.iterdir()) == ['z.bin', 'z_v.bin']
        np.testing.assert_array_equal(deserialize_from(tmp_path / 'z.bin'), model.position())
        np.testing.assert_array_equal(deserialize_from(tmp_path / 'z_v.bin'), model.velocity())

    def test_megno_files(self, tmp_path):
        """Test MEGNO runs write four files"""
        model = SitnikovModel.from_config(megno_config('ode'))
        model.integrate()
        model.write(str(tmp_path))

        names = sorted(p.name for p in tmp_path.iterdir())
        assert names == ['mean_megno.bin', 'megno.bin', 'z.bin', 'z_v.bin']
        np.testing.assert_array_equal(deserialize_from(tmp_path / 'megno.bin'), model.megno())

    def test_missing_directory(self, tmp_path):
        """Test the output directory must exist"""
        model = SitnikovModel(0.2, 0.0, 1.0, 0.0, H, N)
        model.integrate()
        with pytest.raises(OutputError, match="doesn't exist"):
            model.write(tmp_path / 'missing')

    def test_nothing_to_write(self, tmp_path):
        """Test writing before integrating fails"""
        model = SitnikovModel(0.2, 0.0, 1.0, 0.0, H, N)
        with pytest.raises(OutputError, match="Nothing to write"):
            model.write(tmp_path)


class TestFailureChaining:
    """Test numerical failures surface with their context"""

    def test_motion_failure(self, monkeypatch):
        """Test a failing acceleration is reported with the stage and partial results"""
        model = SitnikovModel(0.6, 0.0, 1.0, 0.0, H, N)
        calls = {'count': 0}
        acceleration = model.orbit.acceleration

        def failing_acceleration(t, z):
            calls['count'] += 1
            if calls['count'] > 10:
                raise ConvergenceError("boom")
            return acceleration(t, z)

        monkeypatch.setattr(model.orbit, 'acceleration', failing_acceleration)

        with pytest.raises(IntegrationError) as exc_info:
            model.integrate()

        chain = format_error_chain(exc_info.value)
        assert chain.startswith("Couldn't integrate the equations of motion: Couldn't compute")
        assert chain.endswith("boom")
        assert exc_info.value.partial_result is not None
        assert exc_info.value.partial_result.initial_values()[0] == 1.0

    def test_megno_ode_failure(self, monkeypatch):
        """Test failures in the MEGNO system name the MEGNO equations"""
        model = SitnikovModel.from_config(megno_config('ode'))

        def failing_update(t, x):
            raise ConvergenceError("boom")

        monkeypatch.setattr(model.megno_equations, 'update', failing_update)

        with pytest.raises(IntegrationError) as exc_info:
            model.integrate()

        chain = format_error_chain(exc_info.value)
        assert chain.startswith("Couldn't integrate the MEGNO equations: Couldn't compute the first increment")
        assert exc_info.value.partial_result is not None

    def test_trapezoidal_failure(self, monkeypatch):
        """Test failures of the radius name the MEGNO integrals"""
        model = SitnikovModel.from_config(megno_config('trapezoidal'))

        def failing_radius(t):
            raise ConvergenceError("boom")

        # The equations of motion keep the working radius
        monkeypatch.setattr(model.orbit, '_checked_radius', PrimaryOrbit.radius.__get__(model.orbit))
        monkeypatch.setattr(model.orbit, 'radius', failing_radius)

        with pytest.raises(IntegrationError) as exc_info:
            model.integrate()

        assert format_error_chain(exc_info.value) == (
            "Couldn't compute the MEGNO integrals: "
            f"Couldn't compute the radius at t = {model.h}: boom"
        )


if __name__ == '__main__':
    pytest.main([__file__, '-v', '--tb=short'])
