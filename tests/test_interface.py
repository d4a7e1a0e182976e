"""Tests for the NLP solver interface."""

import jax.numpy as jnp
import numpy as np
import scipy.sparse as sparse
from scipy.optimize import LinearConstraint, NonlinearConstraint, minimize

from trajnlp.core.trajectory import KnotTrajectory
from trajnlp.dynamics.builder import Dynamics
from trajnlp.dynamics.transitions import FunctionTransition, LinearTransition
from trajnlp.optimization.interface import DynamicsNLP


def _pendulum_nlp(T=4, seed=0):
    rng = np.random.default_rng(seed)
    traj = KnotTrajectory.from_components({
        "x": rng.standard_normal((T, 2)),
        "u": rng.standard_normal((T, 1)),
    })

    def f(z, zn):
        x, u = z[:2], z[2]
        return zn[:2] - x - 0.1 * jnp.array([x[1], -jnp.sin(x[0]) + u])

    return DynamicsNLP(Dynamics(FunctionTransition(f, dim=2), traj)), traj


def test_counts():
    """Test constraint and variable counts."""
    nlp, traj = _pendulum_nlp(T=5)

    assert nlp.constraint_count() == 8
    assert nlp.variable_count() == 15


def test_callbacks_with_flat_vector():
    """Test solver-style calls with a flat Z."""
    nlp, traj = _pendulum_nlp()
    Z = traj.flatten()
    mu = np.ones(nlp.constraint_count())

    assert nlp.evaluate_constraints(Z).shape == (nlp.constraint_count(),)
    assert len(nlp.evaluate_jacobian(Z)) == len(nlp.jacobian_structure())
    assert len(nlp.evaluate_hessian(Z, mu)) == len(nlp.hessian_structure())


def test_structure_lists_are_copies():
    """Test callers cannot mutate the cached structures."""
    nlp, _ = _pendulum_nlp()

    structure = nlp.jacobian_structure()
    structure.clear()

    assert len(nlp.jacobian_structure()) > 0


def test_sparse_matrices_match_value_arrays():
    """Test sparse matrices agree with structure + values."""
    nlp, traj = _pendulum_nlp()
    Z = traj.flatten()
    mu = np.random.default_rng(1).standard_normal(nlp.constraint_count())

    J = nlp.jacobian_matrix(Z).toarray()
    H = nlp.hessian_matrix(Z, mu).toarray()

    for (i, j), v in zip(nlp.jacobian_structure(), nlp.evaluate_jacobian(Z)):
        assert np.isclose(J[i, j], v)
    assert J.shape == (nlp.constraint_count(), nlp.variable_count())
    assert np.allclose(H, H.T)

    # Only the first component of each knot enters nonlinearly (sin)
    nonzero = set(zip(*np.nonzero(H)))
    assert nonzero <= {(t * 3, t * 3) for t in range(traj.T)}


def test_scipy_constraint():
    """Test the NonlinearConstraint adapter."""
    nlp, traj = _pendulum_nlp()
    con = nlp.scipy_constraint()
    Z = traj.flatten()

    assert isinstance(con, NonlinearConstraint)
    assert np.allclose(con.fun(Z), nlp.evaluate_constraints(Z))
    assert np.allclose(con.lb, 0.0) and np.allclose(con.ub, 0.0)


def test_trust_constr_minimum_energy():
    """Test a minimum-energy transfer x: 0 -> 1 in three steps of x+ = x + u."""
    T = 4
    traj = KnotTrajectory.from_components({"x": np.zeros(T), "u": np.zeros(T)})
    dynamics = Dynamics(
        LinearTransition("x", "u", [[1.0]], [[1.0]], traj), traj
    )
    nlp = DynamicsNLP(dynamics)
    n = nlp.variable_count()

    u_cols = np.arange(1, n, 2)

    def objective(Z):
        return 0.5 * np.sum(Z[u_cols] ** 2)

    def gradient(Z):
        g = np.zeros(n)
        g[u_cols] = Z[u_cols]
        return g

    def hessian(Z):
        H = np.zeros((n, n))
        H[u_cols, u_cols] = 1.0
        return H

    boundary = np.zeros((2, n))
    boundary[0, 0] = 1.0
    boundary[1, 2 * (T - 1)] = 1.0

    result = minimize(
        objective,
        np.full(n, 0.1),
        jac=gradient,
        hess=hessian,
        method="trust-constr",
        constraints=[
            nlp.scipy_constraint(),
            # trust-constr needs every constraint Jacobian sparse or every one dense
            LinearConstraint(sparse.csr_matrix(boundary), [0.0, 1.0], [0.0, 1.0]),
        ],
    )

    solution = traj.from_flat(result.x)
    assert np.allclose(solution.component("u")[:3, 0], 1.0 / 3.0, atol=1e-4)
    assert np.allclose(solution.component("x")[:, 0], [0.0, 1 / 3, 2 / 3, 1.0], atol=1e-4)
    assert np.allclose(nlp.evaluate_constraints(result.x), 0.0, atol=1e-6)
