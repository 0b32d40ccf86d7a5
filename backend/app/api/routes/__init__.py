# API Routes Module
from app.api.routes import (
    transitions,
    placements,
    notifications,
)

__all__ = [
    "transitions",
    "placements",
    "notifications",
]
