"""Core data model: shapes, trajectories, transitions, errors."""

from trajnlp.core.errors import (
    TrajnlpError,
    DimensionError,
    DifferentiationError,
    StructureError,
)
from trajnlp.core.shape import TrajectoryShape
from trajnlp.core.trajectory import KnotTrajectory
from trajnlp.core.transition import TransitionFunction

__all__ = [
    "TrajnlpError",
    "DimensionError",
    "DifferentiationError",
    "StructureError",
    "TrajectoryShape",
    "KnotTrajectory",
    "TransitionFunction",
]
