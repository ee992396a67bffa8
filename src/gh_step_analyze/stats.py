"""Statistics helpers for step duration reporting.

This module provides utilities for:
- Rounding half up to whole seconds.
- Nearest-rank percentiles and medians over pre-sorted samples.
- Summarizing a repository's observations (count, mean, median, min, max, P95).
- Computing each observation's signed offset from the repository mean.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

from .models import DetailRow, Observation, RepositoryRef, RepositorySummary


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ``.5`` rounding up.

    Python's built-in ``round`` uses banker's rounding (``round(0.5) == 0``),
    which is not what duration reporting expects.
    """
    return int(math.floor(value + 0.5))


def calculate_percentile(sorted_values: Sequence[int], p: float) -> Optional[int]:
    """Calculate a percentile using the nearest-rank method.

    The input sequence is expected to already be sorted in ascending order. The
    0-based index is ``ceil(p / 100 * count) - 1``, clamped to the valid range.

    Args:
        sorted_values: Sorted numeric samples.
        p: Percentile in the inclusive range ``[0, 100]``.

    Returns:
        Percentile value or ``None`` when input is empty.

    Raises:
        ValueError: If ``p`` is outside ``[0, 100]``.
    """
    if not 0 <= p <= 100:
        raise ValueError("Percentile 'p' must be in the range [0, 100].")

    if not sorted_values:
        return None

    index = math.ceil(p * len(sorted_values) / 100.0) - 1
    index = min(len(sorted_values) - 1, max(0, index))
    return sorted_values[index]


def calculate_median(sorted_values: Sequence[int]) -> Optional[int]:
    """Return the middle value, or the rounded mean of the two middle values."""
    if not sorted_values:
        return None

    middle = len(sorted_values) // 2
    if len(sorted_values) % 2 == 1:
        return sorted_values[middle]

    return round_half_up((sorted_values[middle - 1] + sorted_values[middle]) / 2)


def summarize(repository: RepositoryRef, durations: Sequence[int]) -> RepositorySummary:
    """Summarize duration samples for a repository.

    An empty sample yields a summary with ``count == 0`` and every statistic
    set to ``None`` rather than zero or NaN.
    """
    samples: List[int] = sorted(durations)
    if not samples:
        return RepositorySummary(repository=repository, count=0)

    return RepositorySummary(
        repository=repository,
        count=len(samples),
        mean_seconds=round_half_up(sum(samples) / len(samples)),
        median_seconds=calculate_median(samples),
        min_seconds=samples[0],
        max_seconds=samples[-1],
        p95_seconds=calculate_percentile(samples, 95),
    )


def summarize_observations(
    repository: RepositoryRef,
    observations: Sequence[Observation],
) -> RepositorySummary:
    return summarize(repository, [observation.duration_seconds for observation in observations])


def compute_offsets(
    observations: Sequence[Observation],
    summary: RepositorySummary,
) -> Tuple[DetailRow, ...]:
    """Pair each observation with ``duration - mean`` for its repository."""
    if summary.mean_seconds is None:
        return ()

    return tuple(
        DetailRow(
            observation=observation,
            offset_from_mean_seconds=observation.duration_seconds - summary.mean_seconds,
        )
        for observation in observations
    )
