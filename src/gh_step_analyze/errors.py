"""Custom exception types for the GitHub Actions step analyzer."""


class StepAnalyzerError(Exception):
    """Base exception for all recoverable step analyzer errors."""


class ConfigurationError(StepAnalyzerError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(StepAnalyzerError):
    """Raised when a GitHub token is unavailable."""


class ProviderError(StepAnalyzerError):
    """Raised when a GitHub API request fails or returns an unexpected response."""


class NotFoundError(ProviderError):
    """Raised when a GitHub API resource does not exist (HTTP 404)."""


class AnalysisCancelledError(StepAnalyzerError):
    """Raised in worker threads once an analysis has been cancelled or timed out."""
