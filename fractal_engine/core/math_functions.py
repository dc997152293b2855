"""
Core mathematical functions for escape-time fractal iteration.

This module provides coordinate mapping from pixel space to the complex
plane and the vectorized iteration loops for the escape-time family
(Mandelbrot, Julia, Burning Ship, Newton and Tricorn).
"""

import numpy as np
from typing import Tuple, Union
import logging

from .exceptions import InvalidDimensionsError, InvalidParameterError

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]

# Cube roots of unity, the attractors of Newton's method on z^3 - 1
NEWTON_ROOTS = np.array([
    complex(1.0, 0.0),
    complex(-0.5, np.sqrt(3.0) / 2.0),
    complex(-0.5, -np.sqrt(3.0) / 2.0),
])


def map_range(value: ArrayLike, from_low: float, from_high: float,
              to_low: float, to_high: float) -> ArrayLike:
    """Linearly map value from [from_low, from_high] onto [to_low, to_high]."""
    return (value - from_low) * (to_high - to_low) / (from_high - from_low) + to_low


class ComplexPlane:
    """Represents a complex plane region with coordinate mapping utilities."""

    def __init__(self, xmin: float, xmax: float, ymin: float, ymax: float,
                 width: int, height: int, endpoint: bool = False):
        """
        Initialize complex plane bounds and resolution.

        Args:
            xmin, xmax: Real axis bounds
            ymin, ymax: Imaginary axis bounds
            width, height: Image resolution in pixels
            endpoint: Map the last pixel column/row exactly onto xmax/ymax
        """
        if width <= 0 or height <= 0:
            raise InvalidDimensionsError(width, height)
        if xmin >= xmax or ymin >= ymax:
            raise InvalidParameterError("Invalid bounds: min values must be less than max values")

        self.xmin = xmin
        self.xmax = xmax
        self.ymin = ymin
        self.ymax = ymax
        self.width = width
        self.height = height
        self.endpoint = endpoint

        # Pixel span used as the source range of the mapping
        if endpoint:
            self._x_span = max(width - 1, 1)
            self._y_span = max(height - 1, 1)
        else:
            self._x_span = width
            self._y_span = height

        self.x_scale = (xmax - xmin) / self._x_span
        self.y_scale = (ymax - ymin) / self._y_span

    def create_coordinate_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Create coordinate arrays for the complex plane.

        Returns:
            Tuple of (real_coords, imag_coords) arrays of shape (height, width)
        """
        x = map_range(np.arange(self.width, dtype=np.float64), 0, self._x_span, self.xmin, self.xmax)
        y = map_range(np.arange(self.height, dtype=np.float64), 0, self._y_span, self.ymin, self.ymax)
        return np.meshgrid(x, y)

    def create_complex_array(self) -> np.ndarray:
        """Create a complex coordinate array for the entire plane."""
        x, y = self.create_coordinate_arrays()
        return x + 1j * y

    def pixel_to_complex(self, px: int, py: int) -> complex:
        """Convert pixel coordinates to complex number."""
        real = map_range(float(px), 0, self._x_span, self.xmin, self.xmax)
        imag = map_range(float(py), 0, self._y_span, self.ymin, self.ymax)
        return complex(real, imag)


class IterationResult:
    """Container for escape-time iteration results."""

    def __init__(self, iterations: np.ndarray, escaped: np.ndarray, max_iter: int):
        """
        Initialize iteration result.

        Args:
            iterations: Array of iteration counts
            escaped: Boolean array, True where the point left the set
            max_iter: Iteration cap the counts were produced with
        """
        self.iterations = iterations
        self.escaped = escaped
        self.max_iter = max_iter
        self.shape = iterations.shape

    def normalized(self) -> np.ndarray:
        """Iteration counts divided by the iteration cap, in [0, 1]."""
        return self.iterations.astype(np.float64) / self.max_iter


class FractalIterator:
    """Vectorized iteration loops for the escape-time family."""

    def __init__(self, max_iter: int = 1000, escape_radius: float = 4.0):
        """
        Initialize fractal iterator.

        Args:
            max_iter: Maximum number of iterations
            escape_radius: Magnitude bound; iteration stops once |z| reaches it
        """
        if max_iter <= 0:
            raise InvalidParameterError("max_iter must be positive")
        if escape_radius <= 0:
            raise InvalidParameterError("escape_radius must be positive")

        self.max_iter = max_iter
        self.escape_radius = escape_radius

    def _escape_loop(self, z: np.ndarray, c, step) -> IterationResult:
        """
        Run z <- step(z, c) on every point while |z| < escape_radius.

        The magnitude is tested before each step, so the count is the number
        of steps taken while the point was still bounded.
        """
        iterations = np.zeros(z.shape, dtype=np.int32)
        active = np.ones(z.shape, dtype=bool)
        per_point_c = isinstance(c, np.ndarray)

        for _ in range(self.max_iter):
            active &= np.abs(z) < self.escape_radius
            if not np.any(active):
                break

            z[active] = step(z[active], c[active] if per_point_c else c)
            iterations[active] += 1

        escaped = iterations < self.max_iter
        return IterationResult(iterations, escaped, self.max_iter)

    def mandelbrot_iteration(self, c: np.ndarray) -> IterationResult:
        """
        Compute Mandelbrot set iterations: z = z^2 + c, z_0 = 0.

        Args:
            c: Complex parameter array

        Returns:
            IterationResult with iteration counts and escape information
        """
        z = np.zeros_like(c, dtype=np.complex128)
        return self._escape_loop(z, c, lambda zs, cs: zs * zs + cs)

    def julia_iteration(self, z: np.ndarray, c: complex) -> IterationResult:
        """
        Compute Julia set iterations: z = z^2 + c with c fixed.

        Args:
            z: Initial complex values array
            c: Julia set constant
        """
        z = z.astype(np.complex128)
        return self._escape_loop(z, complex(c), lambda zs, cs: zs * zs + cs)

    def burning_ship_iteration(self, c: np.ndarray) -> IterationResult:
        """Compute Burning Ship iterations: z = (|Re(z)| + i|Im(z)|)^2 + c."""
        z = np.zeros_like(c, dtype=np.complex128)

        def step(zs, cs):
            folded = np.abs(zs.real) + 1j * np.abs(zs.imag)
            return folded * folded + cs

        return self._escape_loop(z, c, step)

    def tricorn_iteration(self, c: np.ndarray) -> IterationResult:
        """
        Compute Tricorn iterations: z = conj(z)^2 + c.

        Unlike the other variants the escape test follows each step, and the
        reported count is the index of the step that escaped.
        """
        z = np.zeros_like(c, dtype=np.complex128)
        iterations = np.full(c.shape, self.max_iter, dtype=np.int32)
        active = np.ones(c.shape, dtype=bool)

        for i in range(self.max_iter):
            if not np.any(active):
                break

            conj = np.conj(z[active])
            z[active] = conj * conj + c[active]

            newly_escaped = active & (np.abs(z) > self.escape_radius)
            iterations[newly_escaped] = i
            active &= ~newly_escaped

        escaped = iterations < self.max_iter
        return IterationResult(iterations, escaped, self.max_iter)

    def newton_iteration(self, z: np.ndarray, tolerance: float = 1e-6) -> IterationResult:
        """
        Compute Newton's method iterations on f(z) = z^3 - 1.

        A point stops once it lies within tolerance of a cube root of unity;
        the count is the number of steps taken before that. Points whose
        derivative 3z^2 is exactly zero cannot be stepped and are reported as
        non-convergent.

        Args:
            z: Initial complex values array
            tolerance: Distance to a root that counts as converged
        """
        z = z.astype(np.complex128)
        iterations = np.zeros(z.shape, dtype=np.int32)
        active = np.ones(z.shape, dtype=bool)
        degenerate = np.zeros(z.shape, dtype=bool)

        # Orbits thrown far out by a tiny derivative may overflow to inf/nan;
        # such points simply never converge.
        with np.errstate(over='ignore', invalid='ignore'):
            for _ in range(self.max_iter):
                if not np.any(active):
                    break

                zs = z[active]
                derivative = 3 * zs * zs
                singular = derivative == 0
                if np.any(singular):
                    idx = np.flatnonzero(active)[singular]
                    degenerate.flat[idx] = True
                    active.flat[idx] = False
                    zs = zs[~singular]
                    derivative = derivative[~singular]

                zs = zs - (zs * zs * zs - 1) / derivative
                z[active] = zs

                distances = np.abs(zs[:, np.newaxis] - NEWTON_ROOTS[np.newaxis, :])
                converged = np.zeros(z.shape, dtype=bool)
                converged[active] = np.any(distances < tolerance, axis=1)

                active &= ~converged
                iterations[active] += 1

        iterations[degenerate] = self.max_iter
        if np.any(degenerate):
            logger.debug(f"Newton: {int(np.count_nonzero(degenerate))} points hit a zero derivative")

        escaped = iterations < self.max_iter
        return IterationResult(iterations, escaped, self.max_iter)
