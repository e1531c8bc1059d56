"""Command-line entry point for comment-failure-action."""
