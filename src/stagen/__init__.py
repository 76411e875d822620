"""Static HTML snapshots of git repositories."""

__version__ = "0.1.0"
