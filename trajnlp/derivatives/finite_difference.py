"""Central finite-difference differentiation provider."""

from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray

from trajnlp.core.errors import DifferentiationError


def _evaluate(fn: Callable[..., Any], w: NDArray, args) -> NDArray:
    value = np.asarray(fn(w, *args), dtype=float)
    if not np.all(np.isfinite(value)):
        raise DifferentiationError("function is not finite near the point")
    return value


class FiniteDifferenceProvider:
    """
    Derivatives by central differences.

    Works with any function of numpy arrays. Accuracy is O(h^2); the
    step is scaled by max(1, |w_i|) per coordinate.
    """

    def __init__(self, step: float = 1e-6, hessian_step: float = 1e-4):
        """
        Args:
            step: Relative step for Jacobians
            hessian_step: Relative step for Hessians
        """
        if step <= 0 or hessian_step <= 0:
            raise ValueError("finite-difference steps must be positive")
        self.step = step
        self.hessian_step = hessian_step

    def _steps(self, w: NDArray, h: float) -> NDArray:
        return h * np.maximum(1.0, np.abs(w))

    def jacobian(self, fn: Callable[..., Any], w: NDArray, *args: Any) -> NDArray:
        """
        Jacobian by central differences.

        Returns:
            Jacobian (m, k) with one column per coordinate of w
        """
        w = np.asarray(w, dtype=float)
        h = self._steps(w, self.step)
        m = np.atleast_1d(_evaluate(fn, w, args)).shape[0]

        J = np.zeros((m, w.size))
        for j in range(w.size):
            e = np.zeros_like(w)
            e[j] = h[j]
            f_plus = _evaluate(fn, w + e, args)
            f_minus = _evaluate(fn, w - e, args)
            J[:, j] = (f_plus - f_minus) / (2.0 * h[j])

        return J

    def hessian(self, fn: Callable[..., Any], w: NDArray, *args: Any) -> NDArray:
        """
        Hessian of a scalar function by central differences.

        Returns:
            Symmetric Hessian (k, k)
        """
        w = np.asarray(w, dtype=float)
        h = self._steps(w, self.hessian_step)
        k = w.size
        f0 = float(_evaluate(fn, w, args))

        H = np.zeros((k, k))
        for i in range(k):
            ei = np.zeros_like(w)
            ei[i] = h[i]
            f_plus = float(_evaluate(fn, w + ei, args))
            f_minus = float(_evaluate(fn, w - ei, args))
            H[i, i] = (f_plus - 2.0 * f0 + f_minus) / h[i] ** 2

            for j in range(i + 1, k):
                ej = np.zeros_like(w)
                ej[j] = h[j]
                f_pp = float(_evaluate(fn, w + ei + ej, args))
                f_pm = float(_evaluate(fn, w + ei - ej, args))
                f_mp = float(_evaluate(fn, w - ei + ej, args))
                f_mm = float(_evaluate(fn, w - ei - ej, args))
                H[i, j] = (f_pp - f_pm - f_mp + f_mm) / (4.0 * h[i] * h[j])
                H[j, i] = H[i, j]

        return H
