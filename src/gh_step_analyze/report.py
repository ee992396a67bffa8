"""Report assembly and plain-text rendering for step duration results."""

from __future__ import annotations

from typing import List, Mapping, Optional, Sequence

from .models import (
    AnalysisReport,
    RepositoryObservations,
    RepositoryRef,
    RepositoryReport,
)
from .stats import compute_offsets, summarize_observations

SUMMARY_HEADERS = ["Repo", "# of Runs", "Avg.", "Median", "Min.", "Max.", "P95"]
DETAIL_HEADERS = ["Job", "Step started", "Duration", "Offset from avg."]


def build_report(
    results: Mapping[RepositoryRef, RepositoryObservations],
    repositories: Sequence[RepositoryRef],
) -> AnalysisReport:
    """Bundle summaries and detail rows per repository, in caller order.

    Repositories without observations keep a ``count == 0`` summary and an
    empty detail list so their absence stays visible.
    """
    reports: List[RepositoryReport] = []

    for repository in dict.fromkeys(repositories):
        result = results.get(repository) or RepositoryObservations(repository=repository)
        summary = summarize_observations(repository, result.observations)
        reports.append(
            RepositoryReport(
                summary=summary,
                details=compute_offsets(result.observations, summary),
                errors=result.errors,
            )
        )

    return AnalysisReport(repositories=tuple(reports))


def format_duration(seconds: Optional[int]) -> str:
    """Format seconds as ``"<minutes>m <seconds>s"``, or ``"n/a"`` for ``None``."""
    if seconds is None:
        return "n/a"

    minutes, remaining_seconds = divmod(int(seconds), 60)
    return f"{minutes}m {remaining_seconds}s"


def format_offset(seconds: int) -> str:
    """Format a signed offset, e.g. ``"+0m 15s"`` or ``"-1m 2s"``."""
    sign = "-" if seconds < 0 else "+"
    return f"{sign}{format_duration(abs(seconds))}"


def _format_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> List[str]:
    widths = [len(header) for header in headers]
    for row in rows:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))

    def _line(cells: Sequence[str]) -> str:
        return " | ".join(cell.ljust(widths[index]) for index, cell in enumerate(cells)).rstrip()

    separator = "-+-".join("-" * width for width in widths)
    return [_line(headers), separator, *(_line(row) for row in rows)]


def render_report(report: AnalysisReport) -> str:
    """Render an analysis report as a summary table followed by per-repository details."""
    summary_rows = [
        [
            repository_report.summary.repository.full_name,
            str(repository_report.summary.count),
            format_duration(repository_report.summary.mean_seconds),
            format_duration(repository_report.summary.median_seconds),
            format_duration(repository_report.summary.min_seconds),
            format_duration(repository_report.summary.max_seconds),
            format_duration(repository_report.summary.p95_seconds),
        ]
        for repository_report in report.repositories
    ]
    lines = _format_table(SUMMARY_HEADERS, summary_rows)
    warnings: List[str] = []

    for repository_report in report.repositories:
        repository_name = repository_report.summary.repository.full_name

        if repository_report.details:
            detail_rows = []
            for detail in repository_report.details:
                observation = detail.observation
                started_at = observation.step.started_at
                detail_rows.append(
                    [
                        observation.job.html_url or str(observation.job.id),
                        started_at.isoformat() if started_at is not None else "n/a",
                        format_duration(observation.duration_seconds),
                        format_offset(detail.offset_from_mean_seconds),
                    ]
                )
            lines.extend(["", f"Repository: {repository_name}"])
            lines.extend(_format_table(DETAIL_HEADERS, detail_rows))

        warnings.extend(f"WARNING: {repository_name}: {error}" for error in repository_report.errors)

    if warnings:
        lines.append("")
        lines.extend(warnings)

    return "\n".join(lines)
