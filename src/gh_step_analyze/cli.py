"""Command-line argument parsing and prompting for the step analyzer."""

from __future__ import annotations

import argparse
import getpass
import os
import sys
from typing import Callable, List, Optional, Sequence

from .config import DEFAULT_DAYS, DEFAULT_MAX_CONCURRENCY, TOKEN_ENV_VARS


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Args:
        value: Raw command-line argument value.

    Returns:
        The validated positive integer.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for step analysis.

    Workflow, job and step names default to the ``ANALYZER_WORKFLOW_NAME``,
    ``ANALYZER_JOB_NAME`` and ``ANALYZER_STEP_NAME`` environment variables.

    Returns:
        Parsed CLI arguments.
    """
    parser = argparse.ArgumentParser(
        prog="gh-step-analyze",
        description=(
            "Summarize how long a GitHub Actions step takes across recent "
            "successful workflow runs in one or more repositories."
        ),
        epilog=(
            'Example: gh-step-analyze --repo foo/bar --repo foo/baz --workflow "Build and Test" '
            '--job build --step "Install dependencies" --days 5'
        ),
    )

    parser.add_argument(
        "--token",
        default=None,
        help="GitHub token (default: GITHUB_TOKEN or ANALYZER_AUTH_TOKEN).",
    )
    parser.add_argument(
        "--repo",
        dest="repos",
        action="append",
        default=[],
        metavar="OWNER/NAME",
        help="Repository to analyze (repeatable).",
    )
    parser.add_argument(
        "--workflow",
        default=os.getenv("ANALYZER_WORKFLOW_NAME", ""),
        help="Workflow name.",
    )
    parser.add_argument(
        "--job",
        default=os.getenv("ANALYZER_JOB_NAME", ""),
        help="Job name.",
    )
    parser.add_argument(
        "--step",
        default=os.getenv("ANALYZER_STEP_NAME", ""),
        help="Step name.",
    )
    parser.add_argument(
        "--days",
        type=_positive_int,
        default=DEFAULT_DAYS,
        help=f"Number of days of run history to analyze (default: {DEFAULT_DAYS}).",
    )
    parser.add_argument(
        "--max-concurrency",
        type=_positive_int,
        default=DEFAULT_MAX_CONCURRENCY,
        help=(
            "Maximum simultaneous GitHub API requests "
            f"(default: {DEFAULT_MAX_CONCURRENCY})."
        ),
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser.parse_args(argv)


def _split_repos(value: str) -> List[str]:
    return [part.strip() for part in value.replace(",", " ").split() if part.strip()]


def prompt_for_missing(
    args: argparse.Namespace,
    input_func: Callable[[str], str] = input,
    password_func: Callable[[str], str] = getpass.getpass,
    interactive: Optional[bool] = None,
) -> argparse.Namespace:
    """Ask for any missing token, repositories or names when attached to a terminal.

    Values already supplied are never prompted for. Outside a terminal the
    namespace is returned unchanged and validation reports what is missing.
    """
    if interactive is None:
        interactive = sys.stdin.isatty()
    if not interactive:
        return args

    values = vars(args).copy()

    if not values.get("token") and not any(os.getenv(env_var) for env_var in TOKEN_ENV_VARS):
        values["token"] = password_func("Enter your GitHub token: ")
    if not values.get("repos"):
        values["repos"] = _split_repos(input_func("Repos (owner/name, comma separated): "))
    if not values.get("workflow"):
        values["workflow"] = input_func("Workflow name: ")
    if not values.get("job"):
        values["job"] = input_func("Job name: ")
    if not values.get("step"):
        values["step"] = input_func("Step name: ")

    return argparse.Namespace(**values)
