import math

import numpy as np
import pytest

from fractal_engine.core.exceptions import InvalidParameterError
from fractal_engine.core.geometry import (
    LineSegment, Point2D, hilbert_curve_segments, hilbert_index_to_xy,
    is_menger_pixel, koch_curve, koch_snowflake, menger_mask,
)


def test_koch_depth_zero_is_the_edge():
    segments = koch_curve(Point2D(0, 0), Point2D(3, 0), 0)
    assert segments == [LineSegment(Point2D(0, 0), Point2D(3, 0))]


def test_koch_depth_one_spike():
    segments = koch_curve(Point2D(0, 0), Point2D(3, 0), 1)
    assert len(segments) == 4

    for current, following in zip(segments, segments[1:]):
        assert current.end == following.start
    assert segments[0].start == (0, 0)
    assert segments[-1].end == (3, 0)

    apex = segments[1].end
    assert apex.x == pytest.approx(1.5)
    assert apex.y == pytest.approx(-math.sqrt(3) / 2)

    total = sum(segment.length for segment in segments)
    assert total == pytest.approx(4.0)
    assert total > 3.0


def test_koch_length_grows_by_four_thirds():
    lengths = [sum(s.length for s in koch_curve((0, 0), (9, 0), depth)) for depth in range(4)]
    for shorter, longer in zip(lengths, lengths[1:]):
        assert longer == pytest.approx(shorter * 4 / 3)


def test_koch_rejects_negative_depth():
    with pytest.raises(InvalidParameterError):
        koch_curve((0, 0), (1, 0), -1)


def test_koch_snowflake_is_closed():
    segments = koch_snowflake(300, 200, 2)
    assert len(segments) == 3 * 4 ** 2
    assert segments[0].start == (150, 0)
    assert segments[-1].end == (150, 0)
    for current, following in zip(segments, segments[1:]):
        assert current.end.x == pytest.approx(following.start.x)
        assert current.end.y == pytest.approx(following.start.y)


def test_hilbert_order_one():
    cells = [hilbert_index_to_xy(i, 1) for i in range(4)]
    assert cells == [(0, 0), (0, 1), (1, 1), (1, 0)]


@pytest.mark.parametrize("order", [1, 2, 3, 4, 5])
def test_hilbert_is_bijection(order):
    n = 1 << order
    cells = {hilbert_index_to_xy(i, order) for i in range(n * n)}
    assert len(cells) == n * n
    assert cells == {(x, y) for x in range(n) for y in range(n)}


@pytest.mark.parametrize("order", [2, 4])
def test_hilbert_steps_to_neighbouring_cells(order):
    n = 1 << order
    cells = [hilbert_index_to_xy(i, order) for i in range(n * n)]
    for (x0, y0), (x1, y1) in zip(cells, cells[1:]):
        assert abs(x1 - x0) + abs(y1 - y0) == 1


def test_hilbert_index_out_of_range():
    with pytest.raises(InvalidParameterError):
        hilbert_index_to_xy(16, 2)


def test_hilbert_segments_connect_cell_centers():
    segments = hilbert_curve_segments(64, 3)
    assert len(segments) == 8 * 8 - 1
    assert segments[0].start == (4.0, 4.0)
    for current, following in zip(segments, segments[1:]):
        assert current.end == following.start


@pytest.mark.parametrize("depth", [1, 2, 4, 7])
def test_menger_center_removed(depth):
    assert is_menger_pixel(1, 1, depth) is False


@pytest.mark.parametrize("depth", [0, 1, 4, 10])
def test_menger_origin_kept(depth):
    assert is_menger_pixel(0, 0, depth) is True


def test_menger_deeper_scales():
    # (3, 3) sits in the center block only at the second scale
    assert is_menger_pixel(4, 4, 1) is False
    assert is_menger_pixel(3, 3, 1) is True
    assert is_menger_pixel(3, 3, 2) is False


def test_menger_mask_matches_scalar_test():
    mask = menger_mask(30, 20, 3)
    assert mask.shape == (20, 30)
    expected = np.array([[is_menger_pixel(x, y, 3) for x in range(30)] for y in range(20)])
    assert np.array_equal(mask, expected)
