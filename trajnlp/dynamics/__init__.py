"""Dynamics constraints and transition functions."""

from trajnlp.dynamics.builder import Dynamics, jacobian_structure, hessian_structure
from trajnlp.dynamics.transitions import (
    FunctionTransition,
    StackedTransition,
    LinearTransition,
    DerivativeTransition,
)

__all__ = [
    "Dynamics",
    "jacobian_structure",
    "hessian_structure",
    "FunctionTransition",
    "StackedTransition",
    "LinearTransition",
    "DerivativeTransition",
]
