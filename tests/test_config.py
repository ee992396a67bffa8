"""Tests for configuration validation."""

import sys
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gh_step_analyze.config import load_config
from gh_step_analyze.errors import AuthenticationError, ConfigurationError
from gh_step_analyze.models import RepositoryRef


@pytest.fixture(autouse=True)
def _clear_token_env(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("ANALYZER_AUTH_TOKEN", raising=False)


def _load(**overrides):
    values = {
        "repositories": ["octo/widgets"],
        "workflow": "CI",
        "job": "build",
        "step": "Install dependencies",
        "days": 2,
        "token": "gh-token",
    }
    values.update(overrides)
    return load_config(**values)


def test_load_config_valid_values():
    """Verify a complete configuration is parsed and validated."""
    config = _load(repositories=["octo/widgets", " octo/gadgets ", "octo/widgets"])

    assert config.repositories == (
        RepositoryRef(owner="octo", name="widgets"),
        RepositoryRef(owner="octo", name="gadgets"),
    )
    assert config.workflow == "CI"
    assert config.days == 2
    assert config.token == "gh-token"
    assert config.max_concurrency == 8


def test_load_config_empty_repository_list_raises():
    """Verify an empty repository list is rejected before any network activity."""
    with pytest.raises(ConfigurationError):
        _load(repositories=[])


@pytest.mark.parametrize("value", ["widgets", "octo/", "/widgets", "octo/widgets/extra"])
def test_load_config_malformed_repository_raises(value):
    """Verify repositories must be given as owner/name."""
    with pytest.raises(ConfigurationError):
        _load(repositories=[value])


@pytest.mark.parametrize("field", ["workflow", "job", "step"])
def test_load_config_blank_names_raise(field):
    """Verify workflow, job and step names are required."""
    with pytest.raises(ConfigurationError):
        _load(**{field: "  "})


def test_load_config_keeps_name_whitespace():
    """Verify names are kept verbatim for exact matching."""
    assert _load(step=" Install ").step == " Install "


def test_load_config_non_positive_days_raises():
    """Verify days must be greater than zero."""
    with pytest.raises(ConfigurationError):
        _load(days=0)


def test_load_config_non_positive_concurrency_raises():
    """Verify the concurrency limit must be greater than zero."""
    with pytest.raises(ConfigurationError):
        _load(max_concurrency=0)


def test_load_config_reads_token_from_environment(monkeypatch):
    """Verify GITHUB_TOKEN takes precedence over ANALYZER_AUTH_TOKEN."""
    monkeypatch.setenv("ANALYZER_AUTH_TOKEN", "analyzer-token")
    assert _load(token=None).token == "analyzer-token"

    monkeypatch.setenv("GITHUB_TOKEN", "env-token")
    assert _load(token=None).token == "env-token"


def test_load_config_missing_token_raises_authentication_error():
    """Verify a missing token is reported as an authentication problem."""
    with pytest.raises(AuthenticationError):
        _load(token=None)
