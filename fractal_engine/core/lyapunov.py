"""
Lyapunov exponent of the alternating logistic map.
"""

import numpy as np
from typing import Union
import logging

from .exceptions import InvalidParameterError

logger = logging.getLogger(__name__)

# Iterations discarded before accumulating, so the orbit settles first
TRANSIENT_ITERATIONS = 100

PARAMETER_RANGE = (2.0, 4.0)


def lyapunov_exponent(a: Union[float, np.ndarray], b: Union[float, np.ndarray],
                      max_iter: int = 1000) -> np.ndarray:
    """
    Estimate the Lyapunov exponent of x <- r*x*(1-x) with r alternating a, b.

    The orbit starts at x = 0.5 with r = a on even steps and r = b on odd
    steps. After the first TRANSIENT_ITERATIONS steps, ln|r*(1-2x)| is
    accumulated and the sum is averaged over max_iter - TRANSIENT_ITERATIONS.
    A zero derivative contributes -inf, which yields an exponent of -inf.

    Args:
        a, b: Logistic growth rates, scalars or broadcastable arrays
        max_iter: Total number of map iterations

    Returns:
        Array of exponents with the broadcast shape of a and b
    """
    if max_iter <= TRANSIENT_ITERATIONS:
        raise InvalidParameterError(
            f"Lyapunov needs more than {TRANSIENT_ITERATIONS} iterations, got {max_iter}")

    a, b = np.broadcast_arrays(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64))
    x = np.full(a.shape, 0.5)
    total = np.zeros(a.shape)

    with np.errstate(divide='ignore'):
        for i in range(max_iter):
            r = a if i % 2 == 0 else b
            x = r * x * (1 - x)
            if i > TRANSIENT_ITERATIONS:
                total += np.log(np.abs(r * (1 - 2 * x)))

    return total / (max_iter - TRANSIENT_ITERATIONS)


def lyapunov_map(width: int, height: int, max_iter: int = 1000) -> np.ndarray:
    """
    Exponents for every pixel, with a spanning columns and b spanning rows.

    Returns:
        Array of shape (height, width)
    """
    low, high = PARAMETER_RANGE
    a = low + np.arange(width) * ((high - low) / width)
    b = low + np.arange(height) * ((high - low) / height)
    aa, bb = np.meshgrid(a, b)
    return lyapunov_exponent(aa, bb, max_iter)
