"""Sparse NLP callback interface for external solvers."""

from typing import Union

import numpy as np
import scipy.sparse as sparse
from numpy.typing import NDArray, ArrayLike
from scipy.optimize import NonlinearConstraint

from trajnlp.core.trajectory import KnotTrajectory
from trajnlp.dynamics.builder import Dynamics, Structure
from trajnlp.utils.sparse import sparse_matrix, symmetric_matrix


class DynamicsNLP:
    """
    Provides F(Z), its Jacobian and the Hessian of mu . F to an outer solver.

    Methods follow the usual sparse NLP callback contract (Ipopt style):
    structures are fixed, value arrays are aligned to them, and repeated
    Hessian pairs are left for the solver to sum.
    """

    def __init__(self, dynamics: Dynamics):
        self.dynamics = dynamics

    def constraint_count(self) -> int:
        """(T-1) n_x."""
        return self.dynamics.shape.n_constraints

    def variable_count(self) -> int:
        """T n_z."""
        return self.dynamics.shape.n_variables

    def evaluate_constraints(self, Z: Union[KnotTrajectory, ArrayLike]) -> NDArray:
        """Flat residual F(Z)."""
        return self.dynamics.residual(Z)

    def jacobian_structure(self) -> Structure:
        """Ordered (row, col) pairs of the constraint Jacobian."""
        return list(self.dynamics.jacobian_structure)

    def evaluate_jacobian(self, Z: Union[KnotTrajectory, ArrayLike]) -> NDArray:
        """Jacobian values aligned to jacobian_structure()."""
        return self.dynamics.jacobian(Z)

    def hessian_structure(self) -> Structure:
        """Ordered upper-triangular (row, col) pairs of the Lagrangian Hessian."""
        return list(self.dynamics.hessian_structure)

    def evaluate_hessian(
        self, Z: Union[KnotTrajectory, ArrayLike], mu: ArrayLike
    ) -> NDArray:
        """Hessian values of mu . F aligned to hessian_structure()."""
        return self.dynamics.hessian(Z, mu)

    def jacobian_matrix(self, Z: Union[KnotTrajectory, ArrayLike]) -> sparse.csr_matrix:
        """Constraint Jacobian as a sparse matrix."""
        return sparse_matrix(
            self.dynamics.jacobian_structure,
            self.dynamics.jacobian(Z),
            (self.constraint_count(), self.variable_count()),
        )

    def hessian_matrix(
        self, Z: Union[KnotTrajectory, ArrayLike], mu: ArrayLike
    ) -> sparse.csr_matrix:
        """Full symmetric Hessian of mu . F as a sparse matrix (repeated pairs summed)."""
        return symmetric_matrix(
            self.dynamics.hessian_structure,
            self.dynamics.hessian(Z, mu),
            self.variable_count(),
        )

    def scipy_constraint(self) -> NonlinearConstraint:
        """
        Equality constraint F(Z) = 0 for scipy.optimize.minimize.

        Intended for method="trust-constr", which uses the sparse Jacobian
        and the Hessian callback hess(Z, v). trust-constr requires all
        constraint Jacobians to be of one kind, so other constraints passed
        alongside this one must use sparse matrices too (e.g.
        LinearConstraint(scipy.sparse.csr_matrix(A), lb, ub)).
        """
        n = self.constraint_count()

        def fun(Z: NDArray) -> NDArray:
            return self.evaluate_constraints(Z)

        def jac(Z: NDArray) -> sparse.csr_matrix:
            return self.jacobian_matrix(Z)

        def hess(Z: NDArray, v: NDArray) -> sparse.csr_matrix:
            return self.hessian_matrix(Z, v)

        return NonlinearConstraint(fun, np.zeros(n), np.zeros(n), jac=jac, hess=hess)
