#!/usr/bin/env python3
"""Parallel Accumulation Example

Fold the integers 0..9999 on several workers and merge the partial
estimators. The result matches a single sequential estimator.
"""

from parallel_montecarlo import VarianceEstimator, accumulate_parallel

samples = range(10_000)

# Sequential reference
sequential = VarianceEstimator.from_samples(samples)

# Same samples, folded on 4 workers and merged
merged = accumulate_parallel(samples, n_workers=4)

print(f"Sample count:   {merged.sample_count}")
print(f"Mean:           {merged.mean:.6f}  (sequential: {sequential.mean:.6f})")
print(f"Variance:       {merged.variance():.2f}  (expected: 8334166.67)")
print(f"Std deviation:  {merged.std_dev():.6f}")
print(f"Relative var.:  {merged.relative_variance():.6f}")
