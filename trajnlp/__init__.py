"""
trajnlp: sparse dynamics constraints for trajectory optimization.

This library turns a per-timestep transition function into the pieces an
interior-point NLP solver asks for:
- Stacked dynamics residual over the whole trajectory
- Jacobian sparsity structure and values
- Upper-triangular Hessian-of-Lagrangian structure and values
- Pluggable differentiation providers (JAX, finite differences)
"""

__version__ = "0.1.0"

from trajnlp.core.errors import DimensionError, DifferentiationError, StructureError
from trajnlp.core.shape import TrajectoryShape
from trajnlp.core.trajectory import KnotTrajectory
from trajnlp.derivatives import JaxProvider, FiniteDifferenceProvider
from trajnlp.dynamics import (
    Dynamics,
    FunctionTransition,
    StackedTransition,
    LinearTransition,
    DerivativeTransition,
)
from trajnlp.optimization.interface import DynamicsNLP

__all__ = [
    "DimensionError",
    "DifferentiationError",
    "StructureError",
    "TrajectoryShape",
    "KnotTrajectory",
    "JaxProvider",
    "FiniteDifferenceProvider",
    "Dynamics",
    "FunctionTransition",
    "StackedTransition",
    "LinearTransition",
    "DerivativeTransition",
    "DynamicsNLP",
]
