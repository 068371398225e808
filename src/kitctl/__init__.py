"""kitctl: mirror structured objects into a Git repository."""

__version__ = "0.3.0"
