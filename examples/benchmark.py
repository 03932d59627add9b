import parallel_montecarlo as pmc
import numpy as np
import time
from matplotlib import pyplot as plt
from numpy import exp, sin, cos


def f1(x):
    b = exp(sin(x)) + cos(exp(x))
    return x / b


SAMPLE_SIZES = [16, 64, 256, 1024, 4096, 16384, 65536]
WORKER_COUNTS = [1, 2, 4, 8]
N_TRIALS = 128

times = {n: [] for n in WORKER_COUNTS}

for SAMPLE_COUNT in SAMPLE_SIZES:
    print(f"\n{'=' * 60}")
    print(f"Testing with {SAMPLE_COUNT:,} samples x {N_TRIALS} trials")
    print(f"{'=' * 60}")

    for n_workers in WORKER_COUNTS:
        integrator = pmc.MonteCarloIntegrator(n_workers=n_workers)
        start = time.time()
        result = integrator.integrate(
            f1, 0.0, 1.0, SAMPLE_COUNT, n_trials=N_TRIALS, vectorized=True
        )
        elapsed = time.time() - start
        times[n_workers].append(elapsed)
        print(
            f"{n_workers} workers: mean {result.mean:.6f}, "
            f"variance {result.variance:.1e}, {elapsed:.6f} seconds"
        )

    # Naive single-pass reference using numpy
    start_numpy = time.time()
    estimates = [
        np.mean(f1(np.random.uniform(0.0, 1.0, SAMPLE_COUNT))) for _ in range(N_TRIALS)
    ]
    numpy_time = time.time() - start_numpy
    print(f"NumPy: mean {np.mean(estimates):.6f}, variance {np.var(estimates, ddof=1):.1e}")
    print(f"NumPy execution time: {numpy_time:.6f} seconds")

plt.figure(figsize=(8, 6), dpi=100, layout="constrained")
for n_workers, marker in zip(WORKER_COUNTS, ["o-", "s-", "^-", "d-"]):
    plt.loglog(
        SAMPLE_SIZES,
        times[n_workers],
        marker,
        label=f"{n_workers} workers",
        linewidth=2,
        markersize=8,
    )

plt.xlabel("Samples per Trial", fontsize=12)
plt.ylabel("Execution Time (seconds)", fontsize=12)
plt.title("Parallel Monte Carlo Integration Performance", fontsize=14)
plt.legend(fontsize=11)
plt.show()
