"""Application entry point for the GitHub Actions step analyzer."""

from __future__ import annotations

import asyncio
import logging
import sys

from .cli import parse_args, prompt_for_missing
from .config import load_config
from .coordinator import run_analysis
from .errors import AnalysisCancelledError, AuthenticationError, ConfigurationError, ProviderError
from .github_client import GitHubClient
from .report import build_report, render_report

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3
EXIT_PROVIDER = 4
EXIT_INTERRUPTED = 130


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def orchestrate_analysis() -> int:
    """Run the end-to-end analysis flow and return a process exit code.

    Exit codes:
        0: Success (per-repository warnings may still be printed).
        1: Unexpected failure.
        2: Invalid configuration.
        3: Missing GitHub token.
        4: GitHub API failure outside per-repository handling.
        130: Interrupted or cancelled; no partial report is printed.
    """
    try:
        args = prompt_for_missing(parse_args())
        _configure_logging(args.verbose)

        config = load_config(
            repositories=args.repos,
            workflow=args.workflow,
            job=args.job,
            step=args.step,
            days=args.days,
            token=args.token,
            max_concurrency=args.max_concurrency,
        )

        client = GitHubClient(config=config)
        print(
            f"Downloading and analyzing {config.days} days of job runs "
            f"for {len(config.repositories)} repositories..."
        )
        results = run_analysis(client, config)

        report = build_report(results, config.repositories)
        if report.has_errors:
            logger.warning(
                "Analysis completed with provider errors",
                extra={
                    "repositories_with_errors": [
                        repository.summary.repository.full_name
                        for repository in report.repositories
                        if repository.errors
                    ]
                },
            )
        print(render_report(report))
        return EXIT_OK
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION
    except AuthenticationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_AUTHENTICATION
    except ProviderError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_PROVIDER
    except (KeyboardInterrupt, asyncio.CancelledError, asyncio.TimeoutError, AnalysisCancelledError):
        print("Analysis cancelled; no report produced.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except Exception:
        logger.exception("Unexpected failure during analysis")
        print("ERROR: Unexpected failure during analysis.", file=sys.stderr)
        return EXIT_UNEXPECTED


def main() -> None:
    """Console-script entry point."""
    raise SystemExit(orchestrate_analysis())


if __name__ == "__main__":
    main()
