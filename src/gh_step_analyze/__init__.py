"""Summarize how long a GitHub Actions step takes across repositories."""

__version__ = "0.1.0"
