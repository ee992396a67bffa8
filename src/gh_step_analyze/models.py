"""Domain models for GitHub Actions step duration analysis.

These dataclasses intentionally model only the subset of API payload fields that
are required to locate a step and measure it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class RepositoryRef:
    """Identifies a GitHub repository as ``owner/name``."""

    owner: str
    name: str

    @classmethod
    def parse(cls, value: str) -> "RepositoryRef":
        """Parse an ``owner/name`` identifier.

        Raises:
            ConfigurationError: If the identifier does not have exactly two
                non-empty parts.
        """
        parts = value.strip().split("/")
        if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
            raise ConfigurationError(
                f"Invalid repository '{value}': expected the form 'owner/name'."
            )
        return cls(owner=parts[0].strip(), name=parts[1].strip())

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True, slots=True)
class Workflow:
    """Represents a workflow definition within a repository."""

    id: int
    name: str
    path: str = ""


@dataclass(frozen=True, slots=True)
class Run:
    """Represents one execution of a workflow."""

    id: int
    created_at: datetime
    status: str
    conclusion: Optional[str] = None
    run_number: Optional[int] = None
    html_url: str = ""


@dataclass(frozen=True, slots=True)
class Step:
    """Represents one step of a job as reported by the Actions API."""

    name: str
    status: str
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    conclusion: Optional[str] = None
    number: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Job:
    """Represents a job within a workflow run, with its ordered steps."""

    id: int
    name: str
    steps: Tuple[Step, ...] = ()
    html_url: str = ""


@dataclass(frozen=True, slots=True)
class Observation:
    """Represents one measured step duration in whole seconds."""

    repository: RepositoryRef
    workflow: Workflow
    run: Run
    job: Job
    step: Step
    duration_seconds: int


@dataclass(frozen=True, slots=True)
class RepositoryObservations:
    """Observations collected for one repository plus any recorded provider failures."""

    repository: RepositoryRef
    observations: Tuple[Observation, ...] = ()
    errors: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RepositorySummary:
    """Aggregated duration statistics for a repository.

    Every statistic is ``None`` when ``count`` is ``0``.
    """

    repository: RepositoryRef
    count: int
    mean_seconds: Optional[int] = None
    median_seconds: Optional[int] = None
    min_seconds: Optional[int] = None
    max_seconds: Optional[int] = None
    p95_seconds: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.count == 0


@dataclass(frozen=True, slots=True)
class DetailRow:
    """An observation together with its signed offset from the repository mean."""

    observation: Observation
    offset_from_mean_seconds: int


@dataclass(frozen=True, slots=True)
class RepositoryReport:
    """Summary and per-run details for one repository."""

    summary: RepositorySummary
    details: Tuple[DetailRow, ...] = ()
    errors: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class AnalysisReport:
    """The complete result of one analysis pass, in caller repository order."""

    repositories: Tuple[RepositoryReport, ...] = field(default_factory=tuple)

    @property
    def has_errors(self) -> bool:
        return any(report.errors for report in self.repositories)
