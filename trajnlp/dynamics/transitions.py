"""Transition functions: wrappers, stacking, and common residuals.

All residuals are written with jax.numpy so they can be traced by
JaxProvider; they also accept plain numpy arrays.
"""

from typing import Callable, Union

import jax.numpy as jnp
import numpy as np
from numpy.typing import NDArray, ArrayLike

from trajnlp.core.errors import DimensionError
from trajnlp.core.trajectory import KnotTrajectory
from trajnlp.core.transition import TransitionFunction


class FunctionTransition:
    """Wraps a plain callable f(z_t, z_next) with a declared residual width."""

    def __init__(self, fn: Callable[[NDArray, NDArray], NDArray], dim: int):
        if dim <= 0:
            raise DimensionError(f"residual width must be positive, got {dim}")
        self.fn = fn
        self._dim = dim

    @property
    def dim(self) -> int:
        return self._dim

    def __call__(self, z_t: NDArray, z_next: NDArray) -> NDArray:
        return self.fn(z_t, z_next)


class StackedTransition:
    """
    Vertical stack of several transitions.

    The residual is [f_1(z_t, z_next); f_2(z_t, z_next); ...], e.g. a
    physical state residual followed by control derivative chains.
    """

    def __init__(self, *transitions: TransitionFunction):
        if not transitions:
            raise ValueError("StackedTransition needs at least one transition")
        self.transitions = transitions

    @property
    def dim(self) -> int:
        return sum(f.dim for f in self.transitions)

    def __call__(self, z_t: NDArray, z_next: NDArray) -> NDArray:
        return jnp.concatenate(
            [jnp.atleast_1d(f(z_t, z_next)) for f in self.transitions]
        )


class LinearTransition:
    """
    Discrete linear dynamics residual x_{t+1} - A x_t - B u_t.

    Args:
        state: Name of the state block
        control: Name of the control block
        A: State matrix (n, n)
        B: Control matrix (n, m)
        trajectory: Trajectory defining the block layout
    """

    def __init__(
        self,
        state: str,
        control: str,
        A: ArrayLike,
        B: ArrayLike,
        trajectory: KnotTrajectory,
    ):
        self.x = trajectory.components[state]
        self.u = trajectory.components[control]
        n = trajectory.blocks[state]
        m = trajectory.blocks[control]

        A = np.asarray(A, dtype=float)
        B = np.asarray(B, dtype=float)
        if A.shape != (n, n):
            raise DimensionError(f"A must be ({n}, {n}), got {A.shape}")
        if B.shape != (n, m):
            raise DimensionError(f"B must be ({n}, {m}), got {B.shape}")

        self.A = jnp.asarray(A)
        self.B = jnp.asarray(B)

    @property
    def dim(self) -> int:
        return self.A.shape[0]

    def __call__(self, z_t: NDArray, z_next: NDArray) -> NDArray:
        return z_next[self.x] - self.A @ z_t[self.x] - self.B @ z_t[self.u]


class DerivativeTransition:
    """
    Finite-difference link between a variable and its derivative:

        v_{t+1} - v_t - dt * dv_t

    Chaining a -> da -> dda gives smooth pulses when dda is the
    optimized control.

    Args:
        variable: Name of the block v
        derivative: Name of the block dv (same width as v)
        trajectory: Trajectory defining the block layout
        timestep: Fixed step size, or the name of a width-1 timestep block
    """

    def __init__(
        self,
        variable: str,
        derivative: str,
        trajectory: KnotTrajectory,
        timestep: Union[float, str] = 1.0,
    ):
        if trajectory.blocks[variable] != trajectory.blocks[derivative]:
            raise DimensionError(
                f"blocks '{variable}' ({trajectory.blocks[variable]}) and "
                f"'{derivative}' ({trajectory.blocks[derivative]}) differ in width"
            )
        self.v = trajectory.components[variable]
        self.dv = trajectory.components[derivative]
        self._dim = trajectory.blocks[variable]

        if isinstance(timestep, str):
            if trajectory.blocks[timestep] != 1:
                raise DimensionError(
                    f"timestep block '{timestep}' must have width 1"
                )
            self.dt_index = trajectory.components[timestep].start
            self.dt = None
        else:
            self.dt_index = None
            self.dt = float(timestep)

    @property
    def dim(self) -> int:
        return self._dim

    def __call__(self, z_t: NDArray, z_next: NDArray) -> NDArray:
        dt = self.dt if self.dt_index is None else z_t[self.dt_index]
        return z_next[self.v] - z_t[self.v] - dt * z_t[self.dv]
