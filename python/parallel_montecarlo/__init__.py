"""Parallel Monte Carlo - numerically stable statistics for parallel integration.

This library estimates one-dimensional integrals by Monte Carlo sampling,
repeats the estimate over many trials spread across worker threads or
processes, and aggregates the trial results with a mergeable online
variance estimator (Welford's update and Chan's parallel combination).

Example (Estimator):
    >>> from parallel_montecarlo import VarianceEstimator
    >>>
    >>> left = VarianceEstimator.from_samples(range(0, 100))
    >>> right = VarianceEstimator.from_samples(range(100, 200))
    >>> merged = VarianceEstimator.merge(left, right)
    >>> print(f"{merged.mean} {merged.variance():.2f}")  # 99.5 3350.00

Example (Integration):
    >>> import math
    >>> from parallel_montecarlo import MonteCarloIntegrator
    >>>
    >>> integrator = MonteCarloIntegrator(n_workers=4)
    >>> result = integrator.integrate(math.sin, 0.0, math.pi, sample_count=128)
    >>> print(f"mean of means: {result.mean:.2f}, variance: {result.variance:.1e}")
"""

from .driver import DEMO_INTEGRALS, run_convergence, run_demo
from .estimator import VarianceEstimator
from .integrator import (
    IntegrationResult,
    MonteCarloIntegrator,
    integrate,
    monte_carlo_integration,
)
from .parallel import (
    accumulate,
    accumulate_parallel,
    make_blocks,
    reduce_estimators,
    tree_reduce,
)

__version__ = "0.1.0"

__all__ = [
    "VarianceEstimator",
    "MonteCarloIntegrator",
    "IntegrationResult",
    "integrate",
    "monte_carlo_integration",
    "accumulate",
    "accumulate_parallel",
    "make_blocks",
    "reduce_estimators",
    "tree_reduce",
    "run_convergence",
    "run_demo",
    "DEMO_INTEGRALS",
]
