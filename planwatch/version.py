"""Version information for planwatch."""

__version__ = "0.3.0"
