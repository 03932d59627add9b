"""Convergence experiment over growing sample counts.

For each sample count ``2**i`` the integral is estimated ``n_trials`` times
in parallel and the mean and variance of the estimates are printed. The
variance should shrink roughly in proportion to ``1 / sample_count``.
"""

import logging
import math
from typing import Callable, List, NamedTuple, Optional

from .integrator import DEFAULT_SEED, DEFAULT_TRIALS, IntegrationResult, MonteCarloIntegrator

logger = logging.getLogger(__name__)

DEFAULT_MAX_POWER = 8
SEPARATOR = "=========="


def square(x: float) -> float:
    return x * x


def erf_integrand(x: float) -> float:
    """Integrand of the error function: erf(1) is its integral over [0, 1]."""
    return 2.0 / math.sqrt(math.pi) * math.exp(-x * x)


class DemoIntegral(NamedTuple):
    f: Callable[[float], float]
    description: str
    a: float
    b: float
    expected: float


DEMO_INTEGRALS = [
    DemoIntegral(square, "∫ from 0 to 1 of x^2 dx", 0.0, 1.0, 0.33),
    DemoIntegral(math.sin, "∫ from 0 to PI of sin(x) dx", 0.0, math.pi, 2.0),
    DemoIntegral(math.cos, "∫ from 0 to PI of cos(x) dx", 0.0, math.pi, 0.0),
    DemoIntegral(erf_integrand, "Error Function erf(1)", 0.0, 1.0, 0.84),
]


def format_result(result: IntegrationResult) -> str:
    return (
        f"sample count: {result.sample_count}, "
        f"mean of means: {result.mean:.2f}, "
        f"variance: {result.variance:.1e}"
    )


def run_convergence(
    f: Callable[[float], float],
    description: str,
    a: float,
    b: float,
    expected: float,
    max_power: int = DEFAULT_MAX_POWER,
    n_trials: int = DEFAULT_TRIALS,
    seed: Optional[int] = DEFAULT_SEED,
    integrator: Optional[MonteCarloIntegrator] = None,
) -> List[IntegrationResult]:
    """Estimate an integral for sample counts 1, 2, 4, ..., 2**(max_power - 1).

    Prints a header, one report line per sample count and a separator.

    Args:
        f: Integrand
        description: Human-readable name of the integral
        a: Lower bound
        b: Upper bound
        expected: Known value, printed for comparison
        max_power: Number of sample counts to try (default: 8)
        n_trials: Trials per sample count (default: 128)
        seed: Base random seed; each sample count uses ``seed + i``
        integrator: Integrator to reuse (default: a new one with CPU-count workers)

    Returns:
        One IntegrationResult per sample count, in increasing order
    """
    if max_power <= 0:
        raise ValueError("max_power must be positive")
    if integrator is None:
        integrator = MonteCarloIntegrator()

    logger.info("Convergence run for %s", description)
    print(f"Estimate {description}. Expected result: {expected}")
    results = []
    for i in range(max_power):
        sample_count = 2**i
        trial_seed = None if seed is None else seed + i
        result = integrator.integrate(
            f, a, b, sample_count, n_trials=n_trials, seed=trial_seed
        )
        print(format_result(result))
        results.append(result)
    print(SEPARATOR)
    return results


def run_demo(
    max_power: int = DEFAULT_MAX_POWER,
    n_trials: int = DEFAULT_TRIALS,
    integrator: Optional[MonteCarloIntegrator] = None,
) -> List[List[IntegrationResult]]:
    """Run the convergence experiment for every entry of DEMO_INTEGRALS."""
    if integrator is None:
        integrator = MonteCarloIntegrator()
    return [
        run_convergence(
            demo.f,
            demo.description,
            demo.a,
            demo.b,
            demo.expected,
            max_power=max_power,
            n_trials=n_trials,
            integrator=integrator,
        )
        for demo in DEMO_INTEGRALS
    ]
