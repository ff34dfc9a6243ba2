"""Estimate the sprints left on a Jira project from story points and status."""

__version__ = "1.0.0"
