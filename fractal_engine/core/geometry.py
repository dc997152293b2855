"""
Geometric fractal constructions: Koch curve, Hilbert curve and the Menger
sponge cross-section test.
"""

import math
import numpy as np
from typing import List, NamedTuple, Tuple
import logging

from .exceptions import InvalidParameterError

logger = logging.getLogger(__name__)


class Point2D(NamedTuple):
    x: float
    y: float


class LineSegment(NamedTuple):
    start: Point2D
    end: Point2D

    @property
    def length(self) -> float:
        return math.hypot(self.end.x - self.start.x, self.end.y - self.start.y)


# Rotation applied to the middle third to raise the spike
KOCH_ANGLE = -math.pi / 3


def koch_curve(start: Point2D, end: Point2D, depth: int) -> List[LineSegment]:
    """
    Subdivide the edge start->end into a Koch curve of the given depth.

    Each level replaces an edge by four: the outer thirds stay on the edge
    and the middle third is replaced by the two sides of an equilateral
    spike whose apex is the 2/3 point rotated by -60 degrees about the
    1/3 point.

    Args:
        start, end: Edge endpoints
        depth: Recursion depth; 0 returns the edge itself

    Returns:
        Segments ordered from start to end, each beginning where the
        previous one ended
    """
    if depth < 0:
        raise InvalidParameterError("Koch depth must be non-negative")

    start = Point2D(*start)
    end = Point2D(*end)

    if depth == 0:
        return [LineSegment(start, end)]

    b = Point2D((2 * start.x + end.x) / 3, (2 * start.y + end.y) / 3)
    d = Point2D((start.x + 2 * end.x) / 3, (start.y + 2 * end.y) / 3)

    dx = d.x - b.x
    dy = d.y - b.y
    apex = Point2D(
        b.x + dx * math.cos(KOCH_ANGLE) - dy * math.sin(KOCH_ANGLE),
        b.y + dx * math.sin(KOCH_ANGLE) + dy * math.cos(KOCH_ANGLE),
    )

    segments = koch_curve(start, b, depth - 1)
    segments.extend(koch_curve(b, apex, depth - 1))
    segments.extend(koch_curve(apex, d, depth - 1))
    segments.extend(koch_curve(d, end, depth - 1))
    return segments


def koch_snowflake(width: int, height: int, depth: int) -> List[LineSegment]:
    """
    Build the closed snowflake outline for an image of the given size.

    The base triangle spans the image: apex at the top center and the two
    bottom corners. Edges are traced top -> bottom-left -> bottom-right -> top.
    """
    top = Point2D(width / 2.0, 0.0)
    bottom_left = Point2D(0.0, float(height))
    bottom_right = Point2D(float(width), float(height))

    segments = koch_curve(top, bottom_left, depth)
    segments.extend(koch_curve(bottom_left, bottom_right, depth))
    segments.extend(koch_curve(bottom_right, top, depth))

    logger.debug(f"Koch snowflake depth {depth}: {len(segments)} segments")
    return segments


def hilbert_index_to_xy(index: int, order: int) -> Tuple[int, int]:
    """
    Decode a Hilbert curve index into lattice cell coordinates.

    The index is consumed two bits at a time from the finest scale upward.
    At each scale s the bit pair selects a quadrant (rx, ry); when ry is 0
    the coordinates built so far are reflected (if rx is 1) and transposed
    so the sub-curve is oriented correctly, then shifted into the quadrant.

    Args:
        index: Position along the curve, 0 <= index < 4**order
        order: Curve order; the lattice is 2**order cells on a side
    """
    n = 1 << order
    if not 0 <= index < n * n:
        raise InvalidParameterError(f"Hilbert index {index} out of range for order {order}")

    x = y = 0
    s = 1
    t = index
    while s < n:
        rx = 1 & (t >> 1)
        ry = 1 & (t ^ rx)
        if ry == 0:
            if rx == 1:
                x = s - 1 - x
                y = s - 1 - y
            x, y = y, x
        x += s * rx
        y += s * ry
        s <<= 1
        t >>= 2
    return x, y


def hilbert_curve_segments(width: int, order: int) -> List[LineSegment]:
    """
    Connect consecutive Hilbert cell centers with line segments.

    Cells are square with side width / 2**order; the curve starts in the
    center of cell 0.
    """
    n = 1 << order
    cell_size = width / n
    half = cell_size / 2

    previous = Point2D(half, half)
    segments = []
    for i in range(1, n * n):
        x, y = hilbert_index_to_xy(i, order)
        current = Point2D(x * cell_size + half, y * cell_size + half)
        segments.append(LineSegment(previous, current))
        previous = current
    return segments


def is_menger_pixel(x: int, y: int, depth: int) -> bool:
    """
    Test whether pixel (x, y) survives depth rounds of carpet removal.

    A pixel is removed as soon as both of its base-3 digits at some scale
    equal 1 (the center sub-square).
    """
    while depth > 0:
        if x % 3 == 1 and y % 3 == 1:
            return False
        x //= 3
        y //= 3
        depth -= 1
    return True


def menger_mask(width: int, height: int, depth: int) -> np.ndarray:
    """
    Vectorized is_menger_pixel over a whole grid.

    Returns:
        Boolean array of shape (height, width), True where the pixel is kept
    """
    ys, xs = np.indices((height, width), dtype=np.int64)
    kept = np.ones((height, width), dtype=bool)
    for _ in range(depth):
        kept &= ~((xs % 3 == 1) & (ys % 3 == 1))
        xs //= 3
        ys //= 3
    return kept
