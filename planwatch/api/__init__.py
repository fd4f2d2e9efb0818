"""
planwatch API module.

Note: the application is not imported here so that importing the services
does not build an app. Import ``create_application`` from planwatch.api.main.
"""

from planwatch.api.config import APIConfig

__all__ = [
    "APIConfig",
]
