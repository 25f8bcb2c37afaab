"""Bundled test suites."""
