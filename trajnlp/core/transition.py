"""Transition function protocol."""

from typing import Protocol
from numpy.typing import NDArray


class TransitionFunction(Protocol):
    """
    One timestep's residual r = f(z_t, z_{t+1}).

    The zero set of f encodes the discretized dynamics. Implementations must
    be traceable by the differentiation provider in use (for JAX, written
    with jax.numpy operations).
    """

    @property
    def dim(self) -> int:
        """Residual width n_x."""
        ...

    def __call__(self, z_t: NDArray, z_next: NDArray) -> NDArray:
        """Residual for the transition t -> t+1, shape (n_x,)."""
        ...
