"""Trajectory shape configuration."""

from dataclasses import dataclass, field
from typing import Mapping

from trajnlp.core.errors import DimensionError


@dataclass(frozen=True)
class TrajectoryShape:
    """
    Dimensions that fix every sparsity structure.

    Attributes:
        T: Number of knot points
        n_z: Width of one knot point vector
        n_x: Width of one transition residual
        blocks: Ordered block name -> width mapping; widths sum to n_z
    """

    T: int
    n_z: int
    n_x: int
    blocks: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        if self.T < 2:
            raise DimensionError(
                f"need at least 2 knot points for a transition, got T={self.T}"
            )
        if self.n_z <= 0:
            raise DimensionError(f"knot width must be positive, got n_z={self.n_z}")
        if self.n_x <= 0:
            raise DimensionError(
                f"residual width must be positive, got n_x={self.n_x}"
            )
        if self.blocks:
            for name, width in self.blocks.items():
                if width <= 0:
                    raise DimensionError(
                        f"block '{name}' has non-positive width {width}"
                    )
            total = sum(self.blocks.values())
            if total != self.n_z:
                raise DimensionError(
                    f"block widths sum to {total}, expected n_z={self.n_z}"
                )

    @property
    def n_transitions(self) -> int:
        """Number of transitions t -> t+1."""
        return self.T - 1

    @property
    def n_constraints(self) -> int:
        """Length of the stacked residual F."""
        return self.n_x * (self.T - 1)

    @property
    def n_variables(self) -> int:
        """Length of the flattened trajectory Z."""
        return self.n_z * self.T

    @property
    def window_dim(self) -> int:
        """Width of a two-knot window [z_t; z_{t+1}]."""
        return 2 * self.n_z

    @property
    def jacobian_block_size(self) -> int:
        """Nonzeros contributed by one timestep to the Jacobian."""
        return self.n_x * self.window_dim

    @property
    def hessian_block_size(self) -> int:
        """Upper-triangular entries contributed by one timestep."""
        m = self.window_dim
        return m * (m + 1) // 2
