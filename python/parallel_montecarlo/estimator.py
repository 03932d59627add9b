"""Online mean/variance estimation with parallel merging.

Uses Welford's one-pass update for single samples and Chan's pairwise
combination rule for merging estimators built from disjoint sample sets.
Adapted from
https://pbr-book.org/4ed/Utilities/Mathematical_Infrastructure#RobustVarianceEstimation
"""

import math
from typing import Iterable


class VarianceEstimator:
    """Numerically stable running mean and variance.

    A fresh estimator is the identity element for :meth:`merge`. Each
    parallel worker owns one estimator, feeds it with :meth:`add_sample`,
    and the per-worker estimators are combined afterwards.

    Attributes:
        mean: Running mean of all samples (0.0 when empty)
        sum_square_differences: Sum of squared deviations from the running
            mean (Welford's M2). This is not the variance itself.
        sample_count: Number of samples folded in

    Example:
        >>> left = VarianceEstimator.from_samples(range(0, 100))
        >>> right = VarianceEstimator.from_samples(range(100, 200))
        >>> merged = VarianceEstimator.merge(left, right)
        >>> merged.mean
        99.5
        >>> round(merged.variance(), 2)
        3350.0
    """

    def __init__(
        self,
        mean: float = 0.0,
        sum_square_differences: float = 0.0,
        sample_count: int = 0,
    ):
        self.mean = mean
        self.sum_square_differences = sum_square_differences
        self.sample_count = sample_count

    @classmethod
    def from_samples(cls, values: Iterable[float]) -> "VarianceEstimator":
        """Build an estimator from an iterable of samples."""
        return cls().add_samples(values)

    def add_sample(self, x: float) -> None:
        """Fold one sample into the estimator.

        NaN and infinite values are not rejected; they propagate through
        the statistics.
        """
        self.sample_count += 1
        delta = x - self.mean
        self.mean += delta / self.sample_count
        delta2 = x - self.mean
        self.sum_square_differences += delta * delta2

    def add_samples(self, values: Iterable[float]) -> "VarianceEstimator":
        """Fold every value of ``values`` in order and return ``self``."""
        for x in values:
            self.add_sample(float(x))
        return self

    def variance(self) -> float:
        """Unbiased sample variance, or 0.0 with fewer than two samples."""
        if self.sample_count > 1:
            return max(self.sum_square_differences, 0.0) / (self.sample_count - 1)
        return 0.0

    def relative_variance(self) -> float:
        """Variance divided by the mean.

        Returns 0.0 both for an empty estimator and for a mean of exactly
        zero.
        """
        if self.sample_count < 1 or self.mean == 0.0:
            return 0.0
        return self.variance() / self.mean

    def std_dev(self) -> float:
        return math.sqrt(self.variance())

    def standard_error(self) -> float:
        """Standard error of the mean, or 0.0 when empty."""
        if self.sample_count < 1:
            return 0.0
        return math.sqrt(self.variance() / self.sample_count)

    def copy(self) -> "VarianceEstimator":
        return VarianceEstimator(
            self.mean, self.sum_square_differences, self.sample_count
        )

    @staticmethod
    def merge(lhs: "VarianceEstimator", rhs: "VarianceEstimator") -> "VarianceEstimator":
        """Combine two estimators built from disjoint sample sets.

        The result is statistically equivalent to a single estimator that
        ingested all samples of both inputs. Neither input is modified.

        Args:
            lhs: Left estimator
            rhs: Right estimator

        Returns:
            A new estimator

        Raises:
            TypeError: If either argument is not a VarianceEstimator
        """
        if not isinstance(lhs, VarianceEstimator) or not isinstance(
            rhs, VarianceEstimator
        ):
            raise TypeError(
                f"Can only merge VarianceEstimator instances, got "
                f"{type(lhs).__name__} and {type(rhs).__name__}"
            )

        if rhs.sample_count == 0:
            return lhs.copy()
        if lhs.sample_count == 0:
            return rhs.copy()

        left_count = float(lhs.sample_count)
        right_count = float(rhs.sample_count)
        sample_count = lhs.sample_count + rhs.sample_count

        sqr_mean_diff = (rhs.mean - lhs.mean) * (rhs.mean - lhs.mean)
        sum_square_differences = (
            lhs.sum_square_differences
            + rhs.sum_square_differences
            + sqr_mean_diff * left_count * right_count / sample_count
        )
        mean = (left_count * lhs.mean + right_count * rhs.mean) / sample_count

        return VarianceEstimator(mean, sum_square_differences, sample_count)

    def __add__(self, other: object) -> "VarianceEstimator":
        if isinstance(other, VarianceEstimator):
            return VarianceEstimator.merge(self, other)
        return NotImplemented

    def __radd__(self, other: object) -> "VarianceEstimator":
        # sum() starts from the integer 0
        if type(other) is int and other == 0:
            return self.copy()
        return NotImplemented

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VarianceEstimator):
            return NotImplemented
        return (
            self.mean == other.mean
            and self.sum_square_differences == other.sum_square_differences
            and self.sample_count == other.sample_count
        )

    __hash__ = None

    def __repr__(self):
        return (
            f"VarianceEstimator(mean={self.mean}, "
            f"sum_square_differences={self.sum_square_differences}, "
            f"sample_count={self.sample_count})"
        )

