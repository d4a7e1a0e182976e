"""Differentiation providers."""

from trajnlp.derivatives.protocols import DifferentiationProvider
from trajnlp.derivatives.jax_backend import JaxProvider
from trajnlp.derivatives.finite_difference import FiniteDifferenceProvider

__all__ = [
    "DifferentiationProvider",
    "JaxProvider",
    "FiniteDifferenceProvider",
]
