"""
Stochastic iterated function systems: the chaos game for the Sierpinski
triangle and the Barnsley fern.

Both walks draw from a caller-supplied numpy Generator so a seeded request
always traces the same points.
"""

import numpy as np
from typing import Tuple
import logging

logger = logging.getLogger(__name__)

# Barnsley fern affine maps (a, b, c, d, e, f): x' = a*x + b*y + e, y' = c*x + d*y + f
FERN_TRANSFORMS = np.array([
    [0.0, 0.0, 0.0, 0.16, 0.0, 0.0],     # stem
    [0.85, 0.04, -0.04, 0.85, 0.0, 1.6],  # successively smaller leaflets
    [0.2, -0.26, 0.23, 0.22, 0.0, 1.6],   # largest left leaflet
    [-0.15, 0.28, 0.26, 0.24, 0.0, 0.44], # largest right leaflet
])

FERN_PROBABILITIES = (0.01, 0.85, 0.07, 0.07)

# Upper bounds of the cumulative probability bands; r < bound selects the map
FERN_THRESHOLDS = np.cumsum(FERN_PROBABILITIES)[:-1]


def sierpinski_points(width: int, height: int, count: int,
                      rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    """
    Play the chaos game on the triangle spanning the image.

    Starting from a uniformly random pixel, each step jumps halfway toward
    one of the vertices (width/2, 0), (0, height), (width, height) chosen
    uniformly at random.

    Returns:
        (xs, ys) float arrays holding the point after every step
    """
    vertices_x = np.array([width / 2.0, 0.0, float(width)])
    vertices_y = np.array([0.0, float(height), float(height)])

    x = float(rng.integers(width))
    y = float(rng.integers(height))
    choices = rng.integers(3, size=count)

    xs = np.empty(count, dtype=np.float64)
    ys = np.empty(count, dtype=np.float64)
    for i, vertex in enumerate(choices):
        x = (x + vertices_x[vertex]) / 2
        y = (y + vertices_y[vertex]) / 2
        xs[i] = x
        ys[i] = y

    return xs, ys


def barnsley_fern_points(count: int, rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    """
    Iterate the four Barnsley maps from the origin.

    Returns:
        (xs, ys) arrays of fern-space coordinates after every step
    """
    draws = rng.random(count)
    choices = np.searchsorted(FERN_THRESHOLDS, draws, side='right')

    xs = np.empty(count, dtype=np.float64)
    ys = np.empty(count, dtype=np.float64)
    x = y = 0.0
    for i, k in enumerate(choices):
        a, b, c, d, e, f = FERN_TRANSFORMS[k]
        x, y = a * x + b * y + e, c * x + d * y + f
        xs[i] = x
        ys[i] = y

    return xs, ys


def fern_to_pixels(xs: np.ndarray, ys: np.ndarray, width: int,
                   height: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Map fern-space coordinates onto pixels.

    The fern occupies roughly x in [-2.5, 3] and y in [0, 10]; it is scaled
    to the image width and stood on a baseline 20 pixels above the bottom.
    Coordinates are truncated toward zero.
    """
    px = np.trunc((xs + 2.5) * (width / 5.5)).astype(np.int64)
    py = np.trunc((height - 20) - ys * (height / 11)).astype(np.int64)
    return px, py
