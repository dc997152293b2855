"""
In-memory RGB pixel buffer filled by the fractal generators.
"""

import numpy as np
from typing import Iterable, Tuple, Sequence
import logging

from PIL import Image, ImageDraw

from .exceptions import InvalidDimensionsError

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

BLACK: Color = (0, 0, 0)
WHITE: Color = (255, 255, 255)
GREEN: Color = (0, 128, 0)


class PixelGrid:
    """
    A width x height grid of 8-bit RGB triples.

    The grid owns a pre-allocated (height, width, 3) uint8 array indexed as
    pixels[y, x]. Generators write into it in place; once generation is
    finished the grid is frozen and the array becomes read-only.
    """

    def __init__(self, width: int, height: int, background: Color = BLACK):
        """
        Allocate the grid.

        Args:
            width, height: Grid dimensions in pixels
            background: Initial color of every pixel
        """
        if width <= 0 or height <= 0:
            raise InvalidDimensionsError(width, height)

        self.width = width
        self.height = height
        self.pixels = np.empty((height, width, 3), dtype=np.uint8)
        self.pixels[:, :] = background

    @property
    def frozen(self) -> bool:
        return not self.pixels.flags.writeable

    def freeze(self) -> 'PixelGrid':
        """Mark generation as complete; further writes raise ValueError."""
        self.pixels.flags.writeable = False
        return self

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        self.pixels[y, x] = color

    def get_pixel(self, x: int, y: int) -> Color:
        r, g, b = self.pixels[y, x]
        return (int(r), int(g), int(b))

    def plot_points(self, xs: np.ndarray, ys: np.ndarray, color: Color) -> int:
        """
        Set every in-bounds (x, y) pair to color.

        Returns:
            Number of points that landed inside the grid
        """
        xs = np.asarray(xs, dtype=np.int64)
        ys = np.asarray(ys, dtype=np.int64)
        inside = (xs >= 0) & (xs < self.width) & (ys >= 0) & (ys < self.height)
        self.pixels[ys[inside], xs[inside]] = color
        return int(np.count_nonzero(inside))

    def draw_lines(self, segments: Iterable[Sequence[Sequence[float]]], color: Color,
                   line_width: int = 1) -> int:
        """
        Draw straight line segments onto the grid.

        Args:
            segments: Iterable of (start, end) point pairs in pixel coordinates
            color: Line color
            line_width: Stroke width in pixels

        Returns:
            Number of segments drawn
        """
        image = Image.fromarray(self.pixels)
        draw = ImageDraw.Draw(image)

        count = 0
        for start, end in segments:
            draw.line([(start[0], start[1]), (end[0], end[1])], fill=color, width=line_width)
            count += 1

        self.pixels[:, :] = np.asarray(image)
        return count

    def to_image(self) -> Image.Image:
        """Return a Pillow image holding a copy of the pixels."""
        return Image.fromarray(self.pixels.copy())

    def __eq__(self, other) -> bool:
        if not isinstance(other, PixelGrid):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and np.array_equal(self.pixels, other.pixels)

    def __repr__(self) -> str:
        state = "frozen" if self.frozen else "mutable"
        return f"PixelGrid({self.width}x{self.height}, {state})"
