"""GitHub webhook receiver that keeps project checkouts up to date."""

__version__ = "0.1.0"
