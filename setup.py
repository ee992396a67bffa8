"""Setup configuration for gh_step_analyze"""

from setuptools import setup, find_packages

setup(
    name="gh-step-analyze",
    version="0.1.0",
    description=(
        "CLI tool for GitHub Actions step durations: average, median, min, max "
        "and P95 of a named step across repositories."
    ),
    author="gh-step-analyze Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "gh-step-analyze=gh_step_analyze.main:main",
        ],
    },
)
