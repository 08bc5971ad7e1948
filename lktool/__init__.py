"""Helpers for real-time media projects: config, hosted agents, templates and load tests."""

__version__ = "2.4.10"