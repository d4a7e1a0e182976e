"""Automatic differentiation provider using JAX."""

import logging
import weakref
from typing import Any, Callable, Tuple

import jax
import numpy as np
from numpy.typing import NDArray

from trajnlp.core.errors import DifferentiationError

jax.config.update("jax_enable_x64", True)

logger = logging.getLogger(__name__)


class JaxProvider:
    """
    JAX implementation of the differentiation provider.

    Derivative functions are jit-compiled once per (function, kind) and
    reused while the function is alive, so callers should pass the same
    function object on every call. A provider may be shared between
    builders; it holds them only weakly.
    """

    _JACOBIANS = {
        "forward": jax.jacfwd,
        "reverse": jax.jacrev,
    }

    def __init__(self, mode: str = "forward", jit: bool = True):
        """
        Args:
            mode: "forward" (jacfwd) or "reverse" (jacrev) for Jacobians
            jit: Compile derivative functions with jax.jit
        """
        if mode not in self._JACOBIANS:
            raise ValueError(
                f"mode must be one of {sorted(self._JACOBIANS)}, got '{mode}'"
            )
        self.mode = mode
        self.jit = jit
        # owner -> {(function, kind): compiled}; entries die with their owner
        self._compiled: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()

    def _compile(self, fn: Callable, kind: str) -> Callable:
        if kind == "jacobian":
            compiled = self._JACOBIANS[self.mode](fn)
        else:
            compiled = jax.hessian(fn)
        if self.jit:
            compiled = jax.jit(compiled)
        return compiled

    def _derivative(self, fn: Callable, kind: str) -> Callable:
        """
        Compiled derivative of fn, cached while fn (or the object a bound
        method belongs to) is alive.

        The compiled function reaches fn only through a weak reference, so
        the cache never keeps its owner alive.
        """
        try:
            owner, func, ref = _weak_target(fn)
            table = self._compiled.setdefault(owner, {})
        except TypeError:
            logger.debug("Not caching %s for %r (no weak reference)", kind, fn)
            return self._compile(fn, kind)

        compiled = table.get((func, kind))
        if compiled is None:
            def call(w, *args):
                return ref()(w, *args)

            compiled = self._compile(call, kind)
            logger.debug("Compiled %s %s for %r", self.mode, kind, fn)
            table[(func, kind)] = compiled
        return compiled

    def jacobian(self, fn: Callable[..., Any], w: NDArray, *args: Any) -> NDArray:
        """Jacobian of fn with respect to its first argument, (m, k)."""
        try:
            J = self._derivative(fn, "jacobian")(w, *args)
        except TypeError as e:
            raise DifferentiationError(f"JAX could not differentiate: {e}") from e
        return np.asarray(J, dtype=float)

    def hessian(self, fn: Callable[..., Any], w: NDArray, *args: Any) -> NDArray:
        """Hessian of scalar fn with respect to its first argument, (k, k)."""
        try:
            H = self._derivative(fn, "hessian")(w, *args)
        except TypeError as e:
            raise DifferentiationError(f"JAX could not differentiate: {e}") from e
        return np.asarray(H, dtype=float)


def _weak_target(fn: Callable) -> Tuple[Any, Any, Callable[[], Callable]]:
    """(owner, function, weak reference) for a function or bound method."""
    if hasattr(fn, "__self__") and hasattr(fn, "__func__"):
        return fn.__self__, fn.__func__, weakref.WeakMethod(fn)
    return fn, None, weakref.ref(fn)
