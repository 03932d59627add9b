"""Fold/reduce helpers for accumulating estimators across workers.

Work is cut into half-open blocks. Each block is folded into a private
:class:`VarianceEstimator` by one task, and the per-block estimators are
reduced with :meth:`VarianceEstimator.merge` once every task has finished.
No estimator is shared while it is being mutated, so no locking is needed.
"""

import logging
import multiprocessing as mp
import os
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .estimator import VarianceEstimator

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_SIZE = 10_000
CHUNKS_PER_WORKER = 8
BACKENDS = ("thread", "process")


def make_blocks(n: int, block_size: int = DEFAULT_BLOCK_SIZE) -> List[Tuple[int, int]]:
    """Partition ``[0, n)`` into half-open ``(i, j)`` blocks.

    Every index falls in exactly one block.

    Example:
        >>> make_blocks(5, block_size=2)
        [(0, 2), (2, 4), (4, 5)]
    """
    if block_size <= 0:
        raise ValueError("block_size must be positive")
    blocks = []
    i = 0
    while i < n:
        j = min(i + block_size, n)
        blocks.append((i, j))
        i = j
    return blocks


def resolve_workers(n_workers: Optional[int]) -> int:
    """Return ``n_workers``, defaulting to the CPU count."""
    if n_workers is None:
        return os.cpu_count() or 1
    if n_workers <= 0:
        raise ValueError("n_workers must be positive")
    return n_workers


def block_size_for(n: int, n_workers: int) -> int:
    """Block length giving each worker several blocks for load balancing."""
    return max(1, n // (n_workers * CHUNKS_PER_WORKER))


def make_executor(backend: str, max_workers: int) -> Executor:
    """Create the executor for ``backend`` ("thread" or "process")."""
    if backend == "thread":
        return ThreadPoolExecutor(max_workers=max_workers)
    if backend == "process":
        return ProcessPoolExecutor(
            max_workers=max_workers, mp_context=mp.get_context("spawn")
        )
    raise ValueError(f"backend must be one of {BACKENDS}, got '{backend}'")


def accumulate(values: Iterable[float]) -> VarianceEstimator:
    """Fold ``values`` into a new estimator on the calling thread."""
    return VarianceEstimator.from_samples(values)


def reduce_estimators(estimators: Iterable[VarianceEstimator]) -> VarianceEstimator:
    """Sequential left fold of ``estimators`` with ``merge``.

    An empty input reduces to the empty estimator.
    """
    result = VarianceEstimator()
    for estimator in estimators:
        result = VarianceEstimator.merge(result, estimator)
    return result


def tree_reduce(estimators: Sequence[VarianceEstimator]) -> VarianceEstimator:
    """Pairwise tree reduction of ``estimators`` with ``merge``.

    Neighbouring estimators are merged level by level; an odd one out is
    carried up unchanged, so every leaf is merged exactly once.
    """
    level = list(estimators)
    if not level:
        return VarianceEstimator()
    while len(level) > 1:
        merged = [
            VarianceEstimator.merge(level[k], level[k + 1])
            for k in range(0, len(level) - 1, 2)
        ]
        if len(level) % 2:
            merged.append(level[-1])
        level = merged
    return level[0].copy()


def run_blocks(
    task: Callable[..., VarianceEstimator],
    block_args: Sequence[tuple],
    n_workers: int,
    backend: str = "thread",
) -> List[VarianceEstimator]:
    """Run ``task(*args)`` for each entry of ``block_args`` and collect the results.

    Results are returned in block order. With one worker or one block the
    tasks run sequentially on the calling thread. For the process backend
    ``task`` and its arguments must be picklable.

    Raises:
        ValueError: If ``backend`` is unknown
    """
    if backend not in BACKENDS:
        raise ValueError(f"backend must be one of {BACKENDS}, got '{backend}'")

    if n_workers <= 1 or len(block_args) <= 1:
        return [task(*args) for args in block_args]

    max_workers = min(n_workers, len(block_args))
    logger.debug(
        "Running %d blocks on %d %s workers", len(block_args), max_workers, backend
    )
    with make_executor(backend, max_workers) as ex:
        futs = [ex.submit(task, *args) for args in block_args]
        results = []
        for k, f in enumerate(futs):
            results.append(f.result())
            logger.debug("Block %d/%d done", k + 1, len(futs))
    return results


def accumulate_parallel(
    values: Sequence[float],
    n_workers: Optional[int] = None,
    backend: str = "thread",
    block_size: Optional[int] = None,
) -> VarianceEstimator:
    """Fold ``values`` across workers and merge the partial estimators.

    Args:
        values: Sliceable sequence of samples (list, tuple, range or numpy array)
        n_workers: Number of workers (default: CPU count)
        backend: "thread" or "process"
        block_size: Samples per block (default: spread over several blocks
            per worker)

    Returns:
        Estimator equivalent to accumulating ``values`` sequentially

    Example:
        >>> estimator = accumulate_parallel(range(10_000), n_workers=4)
        >>> round(estimator.variance(), 2)
        8334166.67
    """
    n_workers = resolve_workers(n_workers)
    n = len(values)
    if block_size is None:
        block_size = block_size_for(n, n_workers)
    blocks = make_blocks(n, block_size)

    logger.info(
        "Accumulating %d samples in %d blocks using %d %s workers",
        n,
        len(blocks),
        n_workers,
        backend,
    )
    partials = run_blocks(
        accumulate,
        [(values[i:j],) for i, j in blocks],
        n_workers,
        backend,
    )
    return tree_reduce(partials)
