"""
API routers package.
"""

from vacation_tracker.routers import (
    health,
    team,
    vacations,
)

__all__ = [
    "health",
    "team",
    "vacations",
]
