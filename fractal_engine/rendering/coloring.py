"""
Color mapping for fractal rendering.

Pure functions turning scalar fields (normalized iteration counts, hues,
Lyapunov exponents) into 8-bit RGB. Every function accepts either a single
float or a NumPy array; array inputs of shape S produce uint8 arrays of
shape S + (3,).
"""

import numpy as np
from typing import NamedTuple, Union
import logging

logger = logging.getLogger(__name__)

Scalar = Union[float, np.ndarray]


class RGB(NamedTuple):
    """RGB color with 0-255 integer channels."""
    r: int
    g: int
    b: int


def _stack(r, g, b) -> np.ndarray:
    return np.stack([r, g, b], axis=-1).astype(np.uint8)


def color_from_hue(hue: float) -> RGB:
    """
    Map a hue in [0, 1] onto the six-sector color wheel.

    Each sixth of the wheel ramps one channel while the other two are held
    at 0 or 255, starting from yellow at hue 0 and returning to it at 1.
    """
    if hue < 1.0 / 6:
        return RGB(int(255 * (1 - 6 * hue)), 255, 0)
    elif hue < 1.0 / 3:
        return RGB(0, 255, int(255 * (6 * hue - 1)))
    elif hue < 1.0 / 2:
        return RGB(0, int(255 * (3 - 6 * hue)), 255)
    elif hue < 2.0 / 3:
        return RGB(int(255 * (6 * hue - 3)), 0, 255)
    elif hue < 5.0 / 6:
        return RGB(255, 0, int(255 * (5 - 6 * hue)))
    else:
        return RGB(255, int(255 * (6 * hue - 5)), 0)


def hue_to_rgb(hue: np.ndarray) -> np.ndarray:
    """Vectorized color_from_hue over an array of hues."""
    hue = np.asarray(hue, dtype=np.float64)
    sector = np.select(
        [hue < 1.0 / 6, hue < 1.0 / 3, hue < 1.0 / 2, hue < 2.0 / 3, hue < 5.0 / 6],
        [0, 1, 2, 3, 4],
        default=5,
    )

    # Ramp value of the one channel that varies inside each sector
    ramps = [
        255 * (1 - 6 * hue),
        255 * (6 * hue - 1),
        255 * (3 - 6 * hue),
        255 * (6 * hue - 3),
        255 * (5 - 6 * hue),
        255 * (6 * hue - 5),
    ]
    ramp = np.choose(sector, ramps).astype(np.int64)
    full = np.full(hue.shape, 255, dtype=np.int64)
    zero = np.zeros(hue.shape, dtype=np.int64)

    r = np.choose(sector, [ramp, zero, zero, ramp, full, full])
    g = np.choose(sector, [full, full, ramp, zero, zero, ramp])
    b = np.choose(sector, [zero, ramp, full, full, ramp, zero])
    return _stack(r, g, b)


def red_blue_gradient(value: Scalar) -> Union[RGB, np.ndarray]:
    """Blue at 0, red at 1: (255*v, 0, 255*(1-v))."""
    if np.isscalar(value):
        return RGB(int(value * 255), 0, int((1 - value) * 255))

    value = np.asarray(value, dtype=np.float64)
    r = (value * 255).astype(np.int64)
    b = ((1 - value) * 255).astype(np.int64)
    return _stack(r, np.zeros_like(r), b)


def grayscale(value: Scalar) -> Union[RGB, np.ndarray]:
    """Equal channels at 255*v."""
    if np.isscalar(value):
        level = int(255 * value)
        return RGB(level, level, level)

    level = (np.asarray(value, dtype=np.float64) * 255).astype(np.int64)
    return _stack(level, level, level)


def lyapunov_color(exponent: Scalar) -> Union[RGB, np.ndarray]:
    """
    Color a Lyapunov exponent: red for chaos (lambda >= 0), blue for order.

    The active channel is min(255, 5*|lambda|); the other two are zero.
    """
    if np.isscalar(exponent):
        if exponent >= 0:
            return RGB(int(min(255, 5 * exponent)), 0, 0)
        return RGB(0, 0, int(min(255, -5 * exponent)))

    exponent = np.asarray(exponent, dtype=np.float64)
    chaotic = exponent >= 0
    intensity = np.minimum(255.0, 5 * np.abs(exponent)).astype(np.int64)
    zero = np.zeros_like(intensity)
    r = np.where(chaotic, intensity, zero)
    b = np.where(chaotic, zero, intensity)
    return _stack(r, zero, b)
