"""Configuration parsing and validation for the step analyzer."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .errors import AuthenticationError, ConfigurationError
from .models import RepositoryRef

DEFAULT_DAYS = 2
DEFAULT_MAX_CONCURRENCY = 8
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "ANALYZER_AUTH_TOKEN")


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the step analyzer."""

    repositories: Tuple[RepositoryRef, ...]
    workflow: str
    job: str
    step: str
    days: int
    token: str
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY


def _require_name(label: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ConfigurationError(f"Missing required value for '{label}': expected a non-empty name.")
    # Names are matched exactly against the API, so surrounding whitespace is kept.
    return value


def _parse_repositories(values: Iterable[str]) -> Tuple[RepositoryRef, ...]:
    repositories: List[RepositoryRef] = []
    for value in values:
        repository = RepositoryRef.parse(value)
        if repository not in repositories:
            repositories.append(repository)

    if not repositories:
        raise ConfigurationError("At least one repository ('owner/name') must be provided.")

    return tuple(repositories)


def _resolve_token(token: Optional[str]) -> str:
    if token and token.strip():
        return token.strip()

    for env_var in TOKEN_ENV_VARS:
        value = os.getenv(env_var, "").strip()
        if value:
            return value

    raise AuthenticationError(
        "Missing required GitHub token. Pass --token or set the 'GITHUB_TOKEN' "
        "(or 'ANALYZER_AUTH_TOKEN') environment variable."
    )


def load_config(
    repositories: Iterable[str],
    workflow: Optional[str],
    job: Optional[str],
    step: Optional[str],
    days: int = DEFAULT_DAYS,
    token: Optional[str] = None,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> Config:
    """Build and validate application configuration.

    Args:
        repositories: Repository identifiers in ``owner/name`` form. Duplicates
            are dropped, first occurrence wins.
        workflow: Exact workflow name to look for.
        job: Exact job name within each run.
        step: Exact step name within the job.
        days: Positive number of days of run history to analyze.
        token: GitHub token; falls back to ``GITHUB_TOKEN`` then
            ``ANALYZER_AUTH_TOKEN``.
        max_concurrency: Upper bound on simultaneous GitHub API requests.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If any value is missing or out of range.
        AuthenticationError: If no token is available.
    """
    parsed_repositories = _parse_repositories(repositories)
    workflow_name = _require_name("workflow", workflow)
    job_name = _require_name("job", job)
    step_name = _require_name("step", step)

    if days <= 0:
        raise ConfigurationError("Invalid value for 'days': expected an integer greater than 0.")

    if max_concurrency <= 0:
        raise ConfigurationError(
            "Invalid value for 'max_concurrency': expected an integer greater than 0."
        )

    return Config(
        repositories=parsed_repositories,
        workflow=workflow_name,
        job=job_name,
        step=step_name,
        days=days,
        token=_resolve_token(token),
        max_concurrency=max_concurrency,
    )
