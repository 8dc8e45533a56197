import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from ttp import EmptyInput, InvalidParameter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatisticsSummary:
    count: int
    mean: float
    median: float
    variance: float
    std_dev: float
    min: float
    max: float
    q1: float
    q2: float
    q3: float


def median(sorted_values):
    """Median of an already sorted array; mean of the middle pair for even sizes."""
    size = len(sorted_values)
    mid = size // 2
    if size % 2 == 0:
        return (float(sorted_values[mid - 1]) + float(sorted_values[mid])) / 2
    return float(sorted_values[mid])


def quartiles(sorted_values):
    """Quartiles as medians of the lower and upper halves, median excluded.

    For [1, 2, 3, 4] this gives (1.5, 2.5, 3.5); for [1, 2, 3, 4, 5] it
    gives (1.5, 3.0, 4.5). A single value is its own quartiles.
    """
    size = len(sorted_values)
    q2 = median(sorted_values)
    if size == 1:
        return q2, q2, q2
    q1 = median(sorted_values[:size // 2])
    q3 = median(sorted_values[(size + 1) // 2:])
    return q1, q2, q3


def summarize(distances):
    """Descriptive statistics of a batch of distances.

    The variance is the population variance (divided by N, not N - 1).
    The caller's sequence is left untouched.
    """
    values = np.array(distances, dtype=float)
    if values.size == 0:
        raise EmptyInput("Cannot summarize an empty list of distances")

    ordered = np.sort(values)
    variance = float(np.var(values))
    q1, q2, q3 = quartiles(ordered)
    return StatisticsSummary(
        count=int(values.size),
        mean=float(np.mean(values)),
        median=q2,
        variance=variance,
        std_dev=float(np.sqrt(variance)),
        min=float(ordered[0]),
        max=float(ordered[-1]),
        q1=q1,
        q2=q2,
        q3=q3,
    )


def histogram(distances, bins=20):
    """Equal-width bin counts starting at the smallest distance.

    The bin width is the integer step (max - min) // bins, at least 1. Bins
    are half-open except the last, which stretches to the largest distance
    and includes it, so every value is counted exactly once.
    """
    if bins < 1:
        raise InvalidParameter(f"Need at least one bin, got {bins}")
    values = np.array(distances, dtype=float)
    if values.size == 0:
        raise EmptyInput("Cannot build a histogram of an empty list of distances")

    low, high = values.min(), values.max()
    step = max((high - low) // bins, 1)
    starts = low + step * np.arange(bins)
    ends = starts + step
    ends[-1] = max(ends[-1], high)
    counts = [int(((values >= s) & (values < e)).sum()) for s, e in zip(starts[:-1], ends[:-1])]
    counts.append(int((values >= starts[-1]).sum()))
    return pd.DataFrame({"start": starts, "end": ends, "count": counts})


def log_summary(summary):
    logger.info(f"Mean: {summary.mean}")
    logger.info(f"Median: {summary.median}")
    logger.info(f"Variance: {summary.variance}")
    logger.info(f"Std Dev: {summary.std_dev}")
    logger.info(f"Min-Max: ({summary.min}, {summary.max})")
    logger.info(f"Quartiles: ({summary.q1}, {summary.q2}, {summary.q3})")
