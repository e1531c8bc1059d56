"""Shared CI-failure status comment for pull requests."""
