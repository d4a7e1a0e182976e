"""Differentiation provider protocol."""

from typing import Protocol, Callable, Any
from numpy.typing import NDArray


class DifferentiationProvider(Protocol):
    """
    Protocol for derivative evaluation of opaque functions.
    Allows swapping between autodiff, finite differences, analytic forms.

    Functions take the differentiation point first; any trailing arguments
    are held constant.
    """

    def jacobian(
        self, fn: Callable[..., NDArray], w: NDArray, *args: Any
    ) -> NDArray:
        """
        Jacobian of a vector function.

        Args:
            fn: Function fn(w, *args) -> (m,)
            w: Point (k,)
            args: Constant arguments

        Returns:
            Jacobian (m, k)
        """
        ...

    def hessian(
        self, fn: Callable[..., Any], w: NDArray, *args: Any
    ) -> NDArray:
        """
        Hessian of a scalar function.

        Args:
            fn: Function fn(w, *args) -> scalar
            w: Point (k,)
            args: Constant arguments

        Returns:
            Symmetric Hessian (k, k)
        """
        ...
