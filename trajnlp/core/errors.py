"""Exception hierarchy."""

from typing import Optional


class TrajnlpError(Exception):
    """Base class for all trajnlp errors."""


class DimensionError(TrajnlpError, ValueError):
    """A vector or matrix does not have the declared dimension."""


class DifferentiationError(TrajnlpError, ArithmeticError):
    """The differentiation provider could not produce a derivative."""

    def __init__(self, message: str, timestep: Optional[int] = None):
        if timestep is not None:
            message = f"timestep {timestep}: {message}"
        super().__init__(message)
        self.timestep = timestep


class StructureError(TrajnlpError, AssertionError):
    """Sparsity structure and value array disagree (builder bug)."""
