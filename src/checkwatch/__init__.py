"""Pull request check monitoring for GitHub repositories."""

__version__ = "0.1.0"
