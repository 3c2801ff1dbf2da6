"""Shared sample responses and project files for the test suite."""
