"""Routers package."""

from . import (
    health,
    auth,
    transcript,
    analyze,
    reports,
)
