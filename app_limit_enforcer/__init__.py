"""Daily per-application time limits: track usage, warn, then close the app."""

__version__ = "1.0.0"
