"""Tests for Monte Carlo Integrator."""

import math

import numpy as np
import pytest

from parallel_montecarlo import (
    IntegrationResult,
    MonteCarloIntegrator,
    VarianceEstimator,
    integrate,
    monte_carlo_integration,
)


def f_square(x):
    return x * x


def f_constant(x):
    return 3.0


class TestMonteCarloIntegration:
    """Test a single integration trial."""

    def test_constant_function(self):
        """Test a constant integrand is integrated exactly."""
        rng = np.random.default_rng(0)
        assert monte_carlo_integration(f_constant, 0.0, 2.0, 100, rng) == 6.0

    def test_sin(self):
        """Test integral of sin over [0, pi] is close to 2."""
        rng = np.random.default_rng(1)
        estimate = monte_carlo_integration(math.sin, 0.0, math.pi, 100_000, rng)
        assert abs(estimate - 2.0) < 0.05

    def test_vectorized(self):
        """Test numpy ufuncs can be evaluated on whole arrays."""
        rng = np.random.default_rng(2)
        estimate = monte_carlo_integration(
            np.sin, 0.0, math.pi, 100_000, rng, vectorized=True
        )
        assert abs(estimate - 2.0) < 0.05

    def test_vectorized_constant(self):
        """Test a vectorized integrand returning a scalar counts every point."""
        rng = np.random.default_rng(0)
        estimate = monte_carlo_integration(
            lambda x: 3.0, 0.0, 2.0, 100, rng, vectorized=True
        )
        assert estimate == 6.0

    def test_vectorized_wrong_shape(self):
        """Test a vectorized integrand returning the wrong shape raises ValueError."""
        rng = np.random.default_rng(0)
        with pytest.raises(ValueError):
            monte_carlo_integration(
                lambda x: np.ones(3), 0.0, 1.0, 100, rng, vectorized=True
            )

    def test_vectorized_matches_scalar(self):
        """Test scalar and vectorized evaluation agree for the same points."""
        scalar = monte_carlo_integration(
            math.cos, 0.0, 1.0, 1000, np.random.default_rng(3)
        )
        vector = monte_carlo_integration(
            np.cos, 0.0, 1.0, 1000, np.random.default_rng(3), vectorized=True
        )
        assert abs(scalar - vector) < 1e-12

    def test_default_rng(self):
        """Test a sampler is created when none is given."""
        estimate = monte_carlo_integration(f_square, 0.0, 1.0, 50_000)
        assert abs(estimate - 1.0 / 3.0) < 0.05

    def test_degenerate_interval(self):
        """Test an empty interval integrates to zero."""
        assert monte_carlo_integration(f_square, 1.0, 1.0, 10) == 0.0

    def test_not_callable(self):
        """Test a non-callable integrand raises TypeError."""
        with pytest.raises(TypeError):
            monte_carlo_integration(123, 0.0, 1.0, 10)

    def test_invalid_sample_count(self):
        """Test non-positive sample counts raise ValueError."""
        with pytest.raises(ValueError):
            monte_carlo_integration(f_square, 0.0, 1.0, 0)

    def test_reversed_interval(self):
        """Test a > b raises ValueError."""
        with pytest.raises(ValueError):
            monte_carlo_integration(f_square, 1.0, 0.0, 10)

    def test_infinite_interval(self):
        """Test non-finite bounds raise ValueError."""
        with pytest.raises(ValueError):
            monte_carlo_integration(f_square, 0.0, math.inf, 10)


class TestMonteCarloIntegrator:
    """Test cases for MonteCarloIntegrator."""

    def test_init(self):
        """Test integrator initialization."""
        integrator = MonteCarloIntegrator(n_workers=2)
        assert integrator.n_workers == 2
        assert integrator.backend == "thread"

    def test_default_workers(self):
        """Test the worker count defaults to the CPU count."""
        assert MonteCarloIntegrator().n_workers >= 1

    def test_invalid_backend(self):
        """Test an unknown backend raises ValueError."""
        with pytest.raises(ValueError):
            MonteCarloIntegrator(backend="gpu")

    def test_invalid_workers(self):
        """Test non-positive worker counts raise ValueError."""
        with pytest.raises(ValueError):
            MonteCarloIntegrator(n_workers=0)

    def test_result_fields(self):
        """Test the result carries its run parameters."""
        integrator = MonteCarloIntegrator(n_workers=2)
        result = integrator.integrate(f_square, 0.0, 1.0, sample_count=8, n_trials=32)

        assert isinstance(result, IntegrationResult)
        assert isinstance(result.estimator, VarianceEstimator)
        assert result.estimator.sample_count == 32
        assert result.sample_count == 8
        assert result.n_trials == 32
        assert result.interval == (0.0, 1.0)
        assert result.execution_time >= 0.0
        assert "n_trials=32" in repr(result)

    def test_sin_converges(self):
        """Test mean of means and trial variance for sin over [0, pi]."""
        integrator = MonteCarloIntegrator(n_workers=4)
        result = integrator.integrate(math.sin, 0.0, math.pi, sample_count=1024)

        # Var(pi * sin(U)) / N for U ~ U(0, pi)
        expected_variance = (0.5 - (2.0 / math.pi) ** 2) * math.pi**2 / 1024

        assert abs(result.mean - 2.0) < 0.05
        assert 0.5 * expected_variance < result.variance < 1.5 * expected_variance
        assert abs(result.std_dev - math.sqrt(result.variance)) < 1e-12
        assert abs(result.standard_error - math.sqrt(result.variance / 128)) < 1e-12

    def test_erf(self):
        """Test the error function integral matches math.erf(1)."""
        integrator = MonteCarloIntegrator(n_workers=2)
        result = integrator.integrate(
            lambda x: 2.0 / math.sqrt(math.pi) * math.exp(-x * x),
            0.0,
            1.0,
            sample_count=4096,
            n_trials=16,
        )
        assert abs(result.mean - math.erf(1.0)) < 0.01

    def test_constant_has_zero_variance(self):
        """Test every trial of a constant integrand agrees."""
        result = MonteCarloIntegrator(n_workers=3).integrate(
            f_constant, 0.0, 2.0, sample_count=10, n_trials=40
        )
        assert result.mean == 6.0
        assert result.variance == 0.0

    def test_variance_shrinks_with_samples(self):
        """Test more samples per trial give lower trial variance."""
        integrator = MonteCarloIntegrator(n_workers=2)
        coarse = integrator.integrate(math.sin, 0.0, math.pi, sample_count=1)
        fine = integrator.integrate(math.sin, 0.0, math.pi, sample_count=128)
        assert fine.variance < coarse.variance

    def test_reproducible(self):
        """Test the same seed and worker count give identical results."""
        integrator = MonteCarloIntegrator(n_workers=4)
        first = integrator.integrate(f_square, 0.0, 1.0, 16, seed=7)
        second = integrator.integrate(f_square, 0.0, 1.0, 16, seed=7)
        assert first.estimator == second.estimator

    def test_different_seeds_differ(self):
        """Test different seeds draw different points."""
        integrator = MonteCarloIntegrator(n_workers=4)
        first = integrator.integrate(f_square, 0.0, 1.0, 16, seed=1)
        second = integrator.integrate(f_square, 0.0, 1.0, 16, seed=2)
        assert first.mean != second.mean

    def test_process_backend_matches_thread(self):
        """Test thread and process backends compute the same statistics."""
        thread = MonteCarloIntegrator(n_workers=2, backend="thread")
        process = MonteCarloIntegrator(n_workers=2, backend="process")

        a = thread.integrate(math.sin, 0.0, math.pi, 32, n_trials=16, seed=5)
        b = process.integrate(math.sin, 0.0, math.pi, 32, n_trials=16, seed=5)

        assert a.estimator == b.estimator

    def test_not_callable(self):
        """Test a non-callable integrand raises TypeError."""
        with pytest.raises(TypeError):
            MonteCarloIntegrator(n_workers=1).integrate("x", 0.0, 1.0, 10)

    def test_invalid_trials(self):
        """Test non-positive trial counts raise ValueError."""
        with pytest.raises(ValueError):
            MonteCarloIntegrator(n_workers=1).integrate(f_square, 0.0, 1.0, 10, n_trials=0)

    def test_invalid_sample_count(self):
        """Test non-positive sample counts raise ValueError."""
        with pytest.raises(ValueError):
            MonteCarloIntegrator(n_workers=1).integrate(f_square, 0.0, 1.0, -1)


class TestIntegrateFunction:
    """Test the convenience function."""

    def test_integrate(self):
        """Test integrate() builds an integrator and runs it."""
        result = integrate(f_square, 0.0, 1.0, sample_count=256, n_workers=2)

        assert result.n_trials == 128
        assert abs(result.mean - 1.0 / 3.0) < 0.02

    def test_integrate_vectorized(self):
        """Test integrate() forwards the vectorized flag."""
        result = integrate(
            np.cos, 0.0, math.pi, sample_count=1024, n_workers=2, vectorized=True
        )
        assert abs(result.mean) < 0.05


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
