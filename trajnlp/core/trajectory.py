"""Knot-point trajectory storage."""

from typing import Dict, Mapping

import numpy as np
from numpy.typing import NDArray, ArrayLike

from trajnlp.core.errors import DimensionError


class KnotTrajectory:
    """
    T knot points, each a vector partitioned into named contiguous blocks.

    Data is stored as a (T, n_z) array. Flattening is knot-major, so
    z_t occupies [t*n_z, (t+1)*n_z) of the flat vector.
    """

    def __init__(self, data: ArrayLike, blocks: Mapping[str, int]):
        """
        Args:
            data: Knot values (T, n_z)
            blocks: Ordered block name -> width mapping, widths sum to n_z
        """
        data = np.array(data, dtype=float)
        if data.ndim != 2:
            raise DimensionError(
                f"trajectory data must be (T, n_z), got shape {data.shape}"
            )
        total = sum(blocks.values())
        if total != data.shape[1]:
            raise DimensionError(
                f"block widths sum to {total}, data has width {data.shape[1]}"
            )

        self.data = data
        self.blocks: Dict[str, int] = dict(blocks)

        self.components: Dict[str, slice] = {}
        offset = 0
        for name, width in self.blocks.items():
            self.components[name] = slice(offset, offset + width)
            offset += width

    @classmethod
    def from_components(
        cls, components: Mapping[str, ArrayLike]
    ) -> "KnotTrajectory":
        """
        Build from named component arrays.

        Args:
            components: name -> (T, w) or (T,) array, in block order

        Returns:
            Trajectory with blocks in the mapping's order
        """
        if not components:
            raise DimensionError("trajectory needs at least one component")

        columns = []
        blocks = {}
        T = None
        for name, values in components.items():
            values = np.asarray(values, dtype=float)
            if values.ndim == 1:
                values = values[:, None]
            if values.ndim != 2:
                raise DimensionError(
                    f"component '{name}' must be (T,) or (T, w), "
                    f"got shape {values.shape}"
                )
            if T is None:
                T = values.shape[0]
            elif values.shape[0] != T:
                raise DimensionError(
                    f"component '{name}' has {values.shape[0]} knots, expected {T}"
                )
            columns.append(values)
            blocks[name] = values.shape[1]

        return cls(np.hstack(columns), blocks)

    @property
    def T(self) -> int:
        """Number of knot points."""
        return self.data.shape[0]

    @property
    def dim(self) -> int:
        """Knot point width n_z."""
        return self.data.shape[1]

    def knot(self, t: int) -> NDArray:
        """Knot vector z_t."""
        return self.data[t]

    def window(self, t: int) -> NDArray:
        """Two-knot window [z_t; z_{t+1}]."""
        return self.data[t:t + 2].ravel()

    def component(self, name: str) -> NDArray:
        """Values of one block at every knot, (T, w)."""
        return self.data[:, self.components[name]]

    def block_indices(self, name: str) -> NDArray:
        """Positions of a block inside a knot vector."""
        s = self.components[name]
        return np.arange(s.start, s.stop)

    def flatten(self) -> NDArray:
        """Knot-major flat vector Z of length T*n_z."""
        return self.data.ravel()

    def from_flat(self, Z: ArrayLike) -> "KnotTrajectory":
        """New trajectory with this layout and values taken from a flat vector."""
        Z = np.asarray(Z, dtype=float)
        if Z.shape != (self.T * self.dim,):
            raise DimensionError(
                f"flat vector must have length {self.T * self.dim}, "
                f"got shape {Z.shape}"
            )
        return KnotTrajectory(Z.reshape(self.T, self.dim), self.blocks)

    def __repr__(self) -> str:
        return f"KnotTrajectory(T={self.T}, blocks={self.blocks})"
