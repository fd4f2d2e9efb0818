"""
planwatch - live execution state for agent task plans.

Derives task status from a declarative queue and an append-only execution log,
and keeps connected dashboards in sync as an external agent rewrites them.
"""

from planwatch.version import __version__

__all__ = ["__version__"]
