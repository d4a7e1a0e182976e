"""Dynamics constraint F(Z) = 0 with sparse Jacobian and Hessian.

For a transition f(z_t, z_{t+1}) -> R^{n_x} and a trajectory of T knots,

    F(Z) = [f(z_0, z_1); f(z_1, z_2); ...; f(z_{T-2}, z_{T-1})]

Each block of F depends only on the two-knot window w_t = [z_t; z_{t+1}],
so the Jacobian is block banded and the Hessian of mu . F is a sum of
overlapping (2 n_z x 2 n_z) blocks. Structures are computed once from the
shape; values are recomputed at every call and written at the same
positions the structures were built from.
"""

import logging
from concurrent.futures import Executor
from functools import partial
from typing import Callable, Iterable, List, Optional, Tuple, Union

import jax.numpy as jnp
import numpy as np
from numpy.typing import NDArray, ArrayLike

from trajnlp.core.errors import DimensionError, DifferentiationError, StructureError
from trajnlp.core.shape import TrajectoryShape
from trajnlp.core.trajectory import KnotTrajectory
from trajnlp.core.transition import TransitionFunction
from trajnlp.derivatives.protocols import DifferentiationProvider
from trajnlp.derivatives.jax_backend import JaxProvider
from trajnlp.utils.indexing import knot_slice, window_slice, upper_triangle

logger = logging.getLogger(__name__)

Structure = List[Tuple[int, int]]


def jacobian_structure(shape: TrajectoryShape) -> Structure:
    """
    Jacobian sparsity of F.

    Block t is rows knot_slice(t, n_x) x columns window_slice(t, n_z),
    enumerated row-major; blocks in increasing t.
    """
    structure: Structure = []
    for t in range(shape.n_transitions):
        rows = knot_slice(t, shape.n_x)
        cols = window_slice(t, shape.n_z)
        r = np.repeat(rows, cols.size)
        c = np.tile(cols, rows.size)
        structure.extend(zip(r.tolist(), c.tolist()))
    logger.debug("Jacobian structure: %d entries for %r", len(structure), shape)
    return structure


def hessian_structure(shape: TrajectoryShape) -> Structure:
    """
    Upper-triangular Hessian sparsity of mu . F.

    Block t is the row-major upper triangle of window_slice(t, n_z) x
    window_slice(t, n_z). Pairs on the knot shared by consecutive windows
    appear once per window and are not merged.
    """
    iu, ju = upper_triangle(shape.window_dim)
    structure: Structure = []
    for t in range(shape.n_transitions):
        w = window_slice(t, shape.n_z)
        structure.extend(zip(w[iu].tolist(), w[ju].tolist()))
    logger.debug("Hessian structure: %d entries for %r", len(structure), shape)
    return structure


class Dynamics:
    """
    Stacked dynamics constraint built from one transition function.

    Provides the residual F(Z), the Jacobian values of F and the
    upper-triangular Hessian values of mu . F, each aligned with a
    sparsity structure fixed at construction.
    """

    def __init__(
        self,
        transition: TransitionFunction,
        trajectory: KnotTrajectory,
        provider: Optional[DifferentiationProvider] = None,
        executor: Optional[Executor] = None,
    ):
        """
        Args:
            transition: Residual f(z_t, z_next) with declared width dim
            trajectory: Trajectory fixing T, n_z and the block layout
            provider: Differentiation provider (JaxProvider() if omitted)
            executor: Optional executor to evaluate timesteps concurrently
        """
        self.transition = transition
        self.shape = TrajectoryShape(
            T=trajectory.T,
            n_z=trajectory.dim,
            n_x=transition.dim,
            blocks=trajectory.blocks,
        )
        self.provider = provider if provider is not None else JaxProvider()
        self.executor = executor

        # Fail fast on a transition whose output disagrees with its dim
        self._residual_block(trajectory.data, 0)

        self._jacobian_structure = jacobian_structure(self.shape)
        self._hessian_structure = hessian_structure(self.shape)
        self._upper = upper_triangle(self.shape.window_dim)

        logger.info(
            "Dynamics: T=%d, n_z=%d, n_x=%d, %d constraints, "
            "%d Jacobian and %d Hessian entries",
            self.shape.T,
            self.shape.n_z,
            self.shape.n_x,
            self.shape.n_constraints,
            len(self._jacobian_structure),
            len(self._hessian_structure),
        )

    @property
    def dim(self) -> int:
        """Number of constraints (T-1) n_x."""
        return self.shape.n_constraints

    @property
    def jacobian_structure(self) -> Structure:
        """Ordered (row, col) pairs of the Jacobian of F."""
        return self._jacobian_structure

    @property
    def hessian_structure(self) -> Structure:
        """Ordered upper-triangular (row, col) pairs of the Hessian of mu . F."""
        return self._hessian_structure

    # Window functions passed to the provider. Their identity is stable, so
    # providers may cache compiled derivatives keyed on them.

    def _window_residual(self, w: NDArray) -> NDArray:
        n_z = self.shape.n_z
        return self.transition(w[:n_z], w[n_z:])

    def _weighted_residual(self, w: NDArray, mu_t: NDArray):
        return jnp.dot(mu_t, self._window_residual(w))

    def _as_data(self, Z: Union[KnotTrajectory, ArrayLike]) -> NDArray:
        """Knot array (T, n_z) from a trajectory, a flat vector or a 2D array."""
        if isinstance(Z, KnotTrajectory):
            data = Z.data
        else:
            data = np.asarray(Z, dtype=float)
            if data.ndim == 1 and data.size == self.shape.n_variables:
                data = data.reshape(self.shape.T, self.shape.n_z)
        if data.shape != (self.shape.T, self.shape.n_z):
            raise DimensionError(
                f"trajectory must be ({self.shape.T}, {self.shape.n_z}) "
                f"or flat of length {self.shape.n_variables}, got {np.shape(data)}"
            )
        return data

    def _map(self, fn: Callable[[int], NDArray]) -> Iterable[Tuple[int, NDArray]]:
        """(t, fn(t)) for every transition; executor.map keeps submission order."""
        ts = range(self.shape.n_transitions)
        if self.executor is None:
            return zip(ts, map(fn, ts))
        return zip(ts, self.executor.map(fn, ts))

    def _residual_block(self, data: NDArray, t: int) -> NDArray:
        r = np.asarray(self.transition(data[t], data[t + 1]), dtype=float)
        if r.shape != (self.shape.n_x,):
            raise DimensionError(
                f"transition returned shape {r.shape} at timestep {t}, "
                f"expected ({self.shape.n_x},)"
            )
        return r

    def _jacobian_block(self, data: NDArray, t: int) -> NDArray:
        w = data[t:t + 2].ravel()
        try:
            J = self.provider.jacobian(self._window_residual, w)
        except DifferentiationError as e:
            if e.timestep is not None:
                raise
            raise DifferentiationError(str(e), timestep=t) from e

        expected = (self.shape.n_x, self.shape.window_dim)
        if J.shape != expected:
            raise DimensionError(
                f"Jacobian block at timestep {t} has shape {J.shape}, "
                f"expected {expected}"
            )
        if not np.all(np.isfinite(J)):
            raise DifferentiationError("non-finite Jacobian", timestep=t)
        return J.ravel()

    def _hessian_block(self, data: NDArray, mu: NDArray, t: int) -> NDArray:
        w = data[t:t + 2].ravel()
        mu_t = mu[knot_slice(t, self.shape.n_x)]
        try:
            H = self.provider.hessian(self._weighted_residual, w, mu_t)
        except DifferentiationError as e:
            if e.timestep is not None:
                raise
            raise DifferentiationError(str(e), timestep=t) from e

        m = self.shape.window_dim
        if H.shape != (m, m):
            raise DimensionError(
                f"Hessian block at timestep {t} has shape {H.shape}, "
                f"expected ({m}, {m})"
            )
        if not np.all(np.isfinite(H)):
            raise DifferentiationError("non-finite Hessian", timestep=t)
        return H[self._upper]

    def residual(self, Z: Union[KnotTrajectory, ArrayLike]) -> NDArray:
        """
        Stacked residual F(Z).

        Args:
            Z: Trajectory, flat vector (T*n_z,) or knot array (T, n_z)

        Returns:
            F of length (T-1) n_x
        """
        data = self._as_data(Z)
        F = np.zeros(self.shape.n_constraints)
        for t, r in self._map(partial(self._residual_block, data)):
            F[knot_slice(t, self.shape.n_x)] = r
        return F

    def jacobian(self, Z: Union[KnotTrajectory, ArrayLike]) -> NDArray:
        """
        Jacobian values of F at Z, aligned with jacobian_structure.

        Returns:
            Flat array of length (T-1) n_x 2 n_z
        """
        data = self._as_data(Z)
        size = self.shape.jacobian_block_size
        values = np.zeros(size * self.shape.n_transitions)
        for t, block in self._map(partial(self._jacobian_block, data)):
            values[knot_slice(t, size)] = block
        self._check_alignment(self._jacobian_structure, values)
        return values

    def hessian(
        self, Z: Union[KnotTrajectory, ArrayLike], mu: ArrayLike
    ) -> NDArray:
        """
        Upper-triangular Hessian values of mu . F at Z, aligned with
        hessian_structure.

        Args:
            Z: Trajectory point
            mu: Multipliers, one per constraint ((T-1) n_x,)

        Returns:
            Flat array of length (T-1) n (n+1)/2 with n = 2 n_z
        """
        data = self._as_data(Z)
        mu = np.asarray(mu, dtype=float)
        if mu.shape != (self.shape.n_constraints,):
            raise DimensionError(
                f"multipliers must have shape ({self.shape.n_constraints},), "
                f"got {mu.shape}"
            )
        size = self.shape.hessian_block_size
        values = np.zeros(size * self.shape.n_transitions)
        for t, block in self._map(partial(self._hessian_block, data, mu)):
            values[knot_slice(t, size)] = block
        self._check_alignment(self._hessian_structure, values)
        return values

    @staticmethod
    def _check_alignment(structure: Structure, values: NDArray) -> None:
        if len(structure) != values.shape[0]:
            raise StructureError(
                f"{values.shape[0]} values for {len(structure)} structure entries"
            )
