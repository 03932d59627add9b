"""Monte Carlo integration of one-dimensional functions.

A single trial estimates the integral of ``f`` over ``[a, b]`` from uniformly
drawn points. :class:`MonteCarloIntegrator` repeats the trial many times
across parallel workers; every worker folds its trial results into a private
:class:`VarianceEstimator` and the partial estimators are merged into one.
"""

import logging
import math
import time
from typing import Callable, Optional, Tuple

import numpy as np

from .estimator import VarianceEstimator
from .parallel import (
    BACKENDS,
    block_size_for,
    make_blocks,
    reduce_estimators,
    resolve_workers,
    run_blocks,
)

logger = logging.getLogger(__name__)

DEFAULT_TRIALS = 128
DEFAULT_SEED = 42


def _check_interval(a: float, b: float) -> None:
    if not (math.isfinite(a) and math.isfinite(b)):
        raise ValueError(f"Interval bounds must be finite, got [{a}, {b}]")
    if a > b:
        raise ValueError(f"Lower bound must not exceed upper bound, got [{a}, {b}]")


def monte_carlo_integration(
    f: Callable[[float], float],
    a: float,
    b: float,
    sample_count: int,
    rng: Optional[np.random.Generator] = None,
    vectorized: bool = False,
) -> float:
    """Estimate the integral of ``f`` from ``a`` to ``b`` with one trial.

    Formula: (b - a) / N * Σ f(x_i) where x_i ~ U(a, b)

    Args:
        f: Integrand accepting a float and returning a float
        a: Lower bound
        b: Upper bound
        sample_count: Number of points N to draw
        rng: Uniform sampler (default: a fresh ``numpy.random.default_rng()``)
        vectorized: If True, ``f`` is called once with the whole array of
            points (e.g. ``np.sin``) instead of once per point. A scalar
            result is broadcast to every point.

    Returns:
        The integral estimate

    Raises:
        TypeError: If ``f`` is not callable
        ValueError: If ``sample_count`` is not positive, the interval is invalid,
            or a vectorized ``f`` returns an array of the wrong shape

    Example:
        >>> import math
        >>> rng = np.random.default_rng(0)
        >>> estimate = monte_carlo_integration(math.sin, 0.0, math.pi, 100_000, rng)
        >>> abs(estimate - 2.0) < 0.05
        True
    """
    if not callable(f):
        raise TypeError("f must be callable")
    if sample_count <= 0:
        raise ValueError("sample_count must be positive")
    _check_interval(a, b)

    if rng is None:
        rng = np.random.default_rng()

    points = rng.uniform(a, b, size=sample_count)
    if vectorized:
        values = np.broadcast_to(
            np.asarray(f(points), dtype=np.float64), points.shape
        )
    else:
        values = np.array([f(x) for x in points], dtype=np.float64)

    return float(values.sum() * (b - a) / sample_count)


def _run_trials(
    f: Callable[[float], float],
    a: float,
    b: float,
    sample_count: int,
    n_trials: int,
    seed_seq: np.random.SeedSequence,
    vectorized: bool,
) -> VarianceEstimator:
    """Run ``n_trials`` integrations on one worker and fold their results.

    Module-level so it can be submitted to a process pool.
    """
    rng = np.random.Generator(np.random.Philox(seed_seq))
    estimator = VarianceEstimator()
    for _ in range(n_trials):
        estimator.add_sample(
            monte_carlo_integration(f, a, b, sample_count, rng, vectorized)
        )
    return estimator


class IntegrationResult:
    """Aggregated statistics over repeated integration trials.

    Attributes:
        estimator: Merged estimator over all trial results
        sample_count: Points drawn per trial
        n_trials: Number of trials
        interval: ``(a, b)``
        execution_time: Wall-clock time in seconds

    Example:
        >>> result = integrator.integrate(math.sin, 0.0, math.pi, sample_count=64)
        >>> print(f"mean of means = {result.mean:.2f}")
        >>> print(f"variance = {result.variance:.1e}")
    """

    def __init__(
        self,
        estimator: VarianceEstimator,
        sample_count: int,
        n_trials: int,
        interval: Tuple[float, float],
        execution_time: float = 0.0,
    ):
        self.estimator = estimator
        self.sample_count = sample_count
        self.n_trials = n_trials
        self.interval = interval
        self.execution_time = execution_time

    @property
    def mean(self) -> float:
        """Mean of the trial estimates."""
        return self.estimator.mean

    @property
    def variance(self) -> float:
        """Sample variance of the trial estimates."""
        return self.estimator.variance()

    @property
    def std_dev(self) -> float:
        return self.estimator.std_dev()

    @property
    def standard_error(self) -> float:
        """Standard error of the mean of the trial estimates."""
        return self.estimator.standard_error()

    def __repr__(self):
        return (
            f"IntegrationResult(mean={self.mean}, variance={self.variance}, "
            f"sample_count={self.sample_count}, n_trials={self.n_trials})"
        )


class MonteCarloIntegrator:
    """Parallel Monte Carlo integrator.

    Runs many independent integration trials, spread over a pool of
    workers. Each worker owns its own estimator; the estimators are merged
    only after all workers finish.

    Example:
        >>> import math
        >>> from parallel_montecarlo import MonteCarloIntegrator
        >>>
        >>> integrator = MonteCarloIntegrator(n_workers=4)
        >>> result = integrator.integrate(math.sin, 0.0, math.pi, sample_count=128)
        >>> print(f"{result.mean:.2f} +/- {result.std_dev:.2f}")  # ~2.00
    """

    def __init__(self, n_workers: Optional[int] = None, backend: str = "thread"):
        """Initialize the integrator.

        Args:
            n_workers: Number of workers (default: CPU count).
            backend: "thread" (default) or "process". The process backend
                needs a picklable integrand, i.e. a module-level function
                or numpy ufunc rather than a lambda.

        Raises:
            ValueError: If ``n_workers`` is not positive or ``backend`` is unknown.
        """
        if backend not in BACKENDS:
            raise ValueError(f"backend must be one of {BACKENDS}, got '{backend}'")

        self._n_workers = resolve_workers(n_workers)
        self._backend = backend

    @property
    def n_workers(self) -> int:
        return self._n_workers

    @property
    def backend(self) -> str:
        return self._backend

    def integrate(
        self,
        f: Callable[[float], float],
        a: float,
        b: float,
        sample_count: int,
        n_trials: int = DEFAULT_TRIALS,
        seed: Optional[int] = DEFAULT_SEED,
        vectorized: bool = False,
    ) -> IntegrationResult:
        """Repeat the integration of ``f`` over ``[a, b]`` ``n_trials`` times.

        Trials are split into blocks, each block gets an independent random
        stream spawned from ``seed``. The same seed and worker count give
        identical results.

        Args:
            f: Integrand
            a: Lower bound
            b: Upper bound
            sample_count: Points drawn per trial
            n_trials: Number of trials (default: 128)
            seed: Random seed (default: 42). None draws fresh OS entropy.
            vectorized: Call ``f`` on whole arrays of points

        Returns:
            IntegrationResult with the merged statistics of all trials.

        Raises:
            TypeError: If ``f`` is not callable.
            ValueError: If ``sample_count`` or ``n_trials`` is not positive,
                or the interval is invalid.
        """
        if not callable(f):
            raise TypeError("f must be callable")
        if sample_count <= 0:
            raise ValueError("sample_count must be positive")
        if n_trials <= 0:
            raise ValueError("n_trials must be positive")
        _check_interval(a, b)

        t0 = time.perf_counter()

        blocks = make_blocks(n_trials, block_size_for(n_trials, self._n_workers))
        child_seqs = np.random.SeedSequence(seed).spawn(len(blocks))

        logger.info(
            "Running %d trials of %d samples on [%g, %g] using %d %s workers",
            n_trials,
            sample_count,
            a,
            b,
            self._n_workers,
            self._backend,
        )
        partials = run_blocks(
            _run_trials,
            [
                (f, a, b, sample_count, j - i, seed_seq, vectorized)
                for (i, j), seed_seq in zip(blocks, child_seqs)
            ],
            self._n_workers,
            self._backend,
        )
        estimator = reduce_estimators(partials)

        return IntegrationResult(
            estimator=estimator,
            sample_count=sample_count,
            n_trials=n_trials,
            interval=(a, b),
            execution_time=time.perf_counter() - t0,
        )


def integrate(
    f: Callable[[float], float],
    a: float,
    b: float,
    sample_count: int,
    n_trials: int = DEFAULT_TRIALS,
    seed: Optional[int] = DEFAULT_SEED,
    n_workers: Optional[int] = None,
    backend: str = "thread",
    vectorized: bool = False,
) -> IntegrationResult:
    """Convenience function for parallel Monte Carlo integration.

    This is a shorthand for creating a MonteCarloIntegrator and calling integrate().

    Example:
        >>> from parallel_montecarlo import integrate
        >>>
        >>> result = integrate(lambda x: x * x, 0.0, 1.0, sample_count=1024)
        >>> print(f"{result.mean:.2f}")  # ~0.33
    """
    integrator = MonteCarloIntegrator(n_workers=n_workers, backend=backend)
    return integrator.integrate(f, a, b, sample_count, n_trials, seed, vectorized)
