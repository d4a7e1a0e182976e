"""Tests for differentiation providers."""

import jax.numpy as jnp
import numpy as np
import pytest

from trajnlp.core.errors import DifferentiationError
from trajnlp.derivatives import JaxProvider, FiniteDifferenceProvider


def vector_fn(w):
    return jnp.array([w[0] * w[1], jnp.sin(w[2]), w[0] ** 2 + w[2]])


def vector_fn_jacobian(w):
    return np.array([
        [w[1], w[0], 0.0],
        [0.0, 0.0, np.cos(w[2])],
        [2.0 * w[0], 0.0, 1.0],
    ])


def weighted_fn(w, mu):
    return jnp.dot(mu, vector_fn(w))


def weighted_fn_hessian(w, mu):
    # mu_0 * w0 w1 + mu_1 * sin(w2) + mu_2 * (w0^2 + w2)
    return np.array([
        [2.0 * mu[2], mu[0], 0.0],
        [mu[0], 0.0, 0.0],
        [0.0, 0.0, -mu[1] * np.sin(w[2])],
    ])


W = np.array([0.3, -1.2, 0.7])
MU = np.array([1.5, -0.5, 2.0])


@pytest.mark.parametrize("mode", ["forward", "reverse"])
def test_jax_jacobian(mode):
    """Test JAX Jacobian against the analytic one in both modes."""
    provider = JaxProvider(mode=mode)

    J = provider.jacobian(vector_fn, W)

    assert J.shape == (3, 3)
    assert np.allclose(J, vector_fn_jacobian(W))


def test_jax_hessian_with_constant_args():
    """Test JAX Hessian holds trailing arguments constant."""
    provider = JaxProvider()

    H = provider.hessian(weighted_fn, W, MU)

    assert H.shape == (3, 3)
    assert np.allclose(H, H.T)
    assert np.allclose(H, weighted_fn_hessian(W, MU))


def test_jax_reuses_compiled_derivative():
    """Test compiled derivatives are cached per function."""
    provider = JaxProvider()

    provider.jacobian(vector_fn, W)
    provider.jacobian(vector_fn, 2.0 * W)
    provider.hessian(weighted_fn, W, MU)

    assert len(provider._compiled) == 2


def test_jax_without_jit():
    """Test eager differentiation gives the same result."""
    provider = JaxProvider(jit=False)

    assert np.allclose(provider.jacobian(vector_fn, W), vector_fn_jacobian(W))


def test_jax_invalid_mode():
    """Test unknown Jacobian mode is rejected."""
    with pytest.raises(ValueError):
        JaxProvider(mode="sideways")


def test_jax_untraceable_function():
    """Test functions that force concrete values raise DifferentiationError."""
    provider = JaxProvider()

    def untraceable(w):
        return jnp.array([float(w[0])])

    with pytest.raises(DifferentiationError):
        provider.jacobian(untraceable, W)


def test_finite_difference_jacobian():
    """Test central-difference Jacobian against the analytic one."""
    provider = FiniteDifferenceProvider()

    J = provider.jacobian(vector_fn, W)

    assert J.shape == (3, 3)
    assert np.allclose(J, vector_fn_jacobian(W), atol=1e-7)


def test_finite_difference_hessian():
    """Test central-difference Hessian is symmetric and accurate."""
    provider = FiniteDifferenceProvider()

    H = provider.hessian(weighted_fn, W, MU)

    assert np.array_equal(H, H.T)
    assert np.allclose(H, weighted_fn_hessian(W, MU), atol=1e-6)


def test_finite_difference_numpy_function():
    """Test plain numpy functions are supported."""
    provider = FiniteDifferenceProvider()

    J = provider.jacobian(lambda w: np.array([np.exp(w[0])]), np.array([0.0]))

    assert np.allclose(J, [[1.0]], atol=1e-8)


def test_finite_difference_non_finite_function():
    """Test non-finite function values raise DifferentiationError."""
    provider = FiniteDifferenceProvider()

    with pytest.raises(DifferentiationError):
        provider.jacobian(lambda w: np.array([np.log(w[0])]), np.array([0.0]))


def test_finite_difference_invalid_step():
    """Test non-positive steps are rejected."""
    with pytest.raises(ValueError):
        FiniteDifferenceProvider(step=0.0)
