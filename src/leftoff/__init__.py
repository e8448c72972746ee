"""leftoff - remember where you left off."""

__version__ = "0.1.0"
