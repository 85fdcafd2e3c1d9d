"""Year-in-review reports for GitLab and GitHub activity."""

__version__ = "0.1.0"
