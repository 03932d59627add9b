#!/usr/bin/env python3
"""Monte Carlo Integration Example

Estimate four known integrals with 1, 2, 4, ..., 128 samples per trial and
128 trials per sample count. The variance of the estimates shrinks as the
sample count grows.
"""

import logging

from parallel_montecarlo import MonteCarloIntegrator, run_demo

logging.basicConfig(level=logging.WARNING, format="%(asctime)s [%(levelname)s] %(message)s")

# Create integrator
integrator = MonteCarloIntegrator()

run_demo(integrator=integrator)
