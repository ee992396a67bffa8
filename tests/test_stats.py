"""Tests for statistical calculations."""

import sys
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fakes import ci_workflow, make_job, make_run, make_step

from gh_step_analyze.models import Observation, RepositoryRef
from gh_step_analyze.stats import (
    calculate_median,
    calculate_percentile,
    compute_offsets,
    round_half_up,
    summarize,
    summarize_observations,
)

REPO = RepositoryRef(owner="octo", name="widgets")


def _observation(run_id: int, duration_seconds: int) -> Observation:
    step = make_step(duration_seconds=duration_seconds)
    return Observation(
        repository=REPO,
        workflow=ci_workflow(),
        run=make_run(run_id),
        job=make_job(run_id, steps=[step]),
        step=step,
        duration_seconds=duration_seconds,
    )


def test_round_half_up_rounds_halves_away_from_banker_rounding():
    """Verify .5 always rounds up, unlike the built-in round."""
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
    assert round_half_up(120.0) == 120


def test_calculate_percentile_empty_returns_none():
    """Verify percentile calculation returns None when sample list is empty."""
    assert calculate_percentile([], 95) is None


def test_calculate_percentile_nearest_rank():
    """Verify the nearest-rank index is ceil(p * n / 100) - 1."""
    values = list(range(1, 21))
    assert calculate_percentile(values, 95) == 19
    assert calculate_percentile(values, 50) == 10
    assert calculate_percentile(values, 100) == 20
    assert calculate_percentile(values, 0) == 1


def test_calculate_percentile_rejects_out_of_range():
    """Verify percentiles outside [0, 100] are rejected."""
    with pytest.raises(ValueError):
        calculate_percentile([1, 2, 3], 101)


def test_calculate_median_even_sample_rounds_half_up():
    """Verify even-sized samples average the two middle values and round half up."""
    assert calculate_median([10, 20, 21, 40]) == 21
    assert calculate_median([1, 2]) == 2
    assert calculate_median([5, 7, 9]) == 7


def test_summarize_empty_sample_is_explicitly_empty():
    """Verify no observations yields count 0 and no statistics rather than zeros or NaN."""
    summary = summarize(REPO, [])

    assert summary.is_empty
    assert summary.count == 0
    assert summary.mean_seconds is None
    assert summary.median_seconds is None
    assert summary.min_seconds is None
    assert summary.max_seconds is None
    assert summary.p95_seconds is None


def test_summarize_single_observation():
    """Verify a single 120 second sample sets every statistic to 120 with zero offset."""
    observations = [_observation(1, 120)]
    summary = summarize_observations(REPO, observations)

    assert summary.count == 1
    assert summary.mean_seconds == 120
    assert summary.median_seconds == 120
    assert summary.min_seconds == 120
    assert summary.max_seconds == 120
    assert summary.p95_seconds == 120
    assert compute_offsets(observations, summary)[0].offset_from_mean_seconds == 0


def test_summarize_three_observations():
    """Verify [60, 120, 180] summary statistics."""
    summary = summarize(REPO, [180, 60, 120])

    assert summary.count == 3
    assert summary.mean_seconds == 120
    assert summary.median_seconds == 120
    assert summary.min_seconds == 60
    assert summary.max_seconds == 180
    assert summary.p95_seconds == 180


def test_summarize_mean_rounds_half_up():
    """Verify the mean uses half-up rounding."""
    summary = summarize(REPO, [1, 2])

    assert summary.mean_seconds == 2


def test_compute_offsets_are_signed():
    """Verify offsets are duration minus mean and may be negative."""
    observations = [_observation(1, 60), _observation(2, 120), _observation(3, 180)]
    summary = summarize_observations(REPO, observations)

    offsets = [row.offset_from_mean_seconds for row in compute_offsets(observations, summary)]

    assert offsets == [-60, 0, 60]


def test_compute_offsets_empty_summary_has_no_rows():
    """Verify an empty summary produces no detail rows."""
    assert compute_offsets([], summarize(REPO, [])) == ()
