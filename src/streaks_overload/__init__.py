"""Daily hopper and streak tracking with multi-day rollover."""

__version__ = "0.1.0"
