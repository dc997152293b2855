import numpy as np
import pytest

from fractal_engine.core.ifs import (
    FERN_PROBABILITIES, FERN_THRESHOLDS, barnsley_fern_points, fern_to_pixels, sierpinski_points,
)


class FixedDraws:
    """Stands in for a numpy Generator, replaying a fixed list of uniform draws."""

    def __init__(self, draws):
        self.draws = np.asarray(draws, dtype=np.float64)

    def random(self, count):
        assert count == len(self.draws)
        return self.draws.copy()


# Second point of the walk, after the leaflet map takes the origin to (0, 1.6)
SECOND_STEP = [
    (0.0, 0.256),      # stem
    (0.064, 2.96),     # successively smaller leaflets
    (-0.416, 1.952),   # largest left leaflet
    (0.448, 0.824),    # largest right leaflet
]


def test_fern_probability_bands():
    assert sum(FERN_PROBABILITIES) == pytest.approx(1.0)
    assert FERN_THRESHOLDS == pytest.approx([0.01, 0.86, 0.93])


@pytest.mark.parametrize("draw, expected_map", [
    (0.0, 0),
    (0.005, 0),
    (float(FERN_THRESHOLDS[0]), 1),
    (0.5, 1),
    (float(FERN_THRESHOLDS[1]), 2),
    (0.9, 2),
    (float(FERN_THRESHOLDS[2]), 3),
    (0.999, 3),
])
def test_fern_map_selection(draw, expected_map):
    xs, ys = barnsley_fern_points(2, FixedDraws([0.5, draw]))

    assert (xs[0], ys[0]) == pytest.approx((0.0, 1.6))
    assert (xs[1], ys[1]) == pytest.approx(SECOND_STEP[expected_map])


def test_fern_stays_in_its_box():
    xs, ys = barnsley_fern_points(20000, np.random.default_rng(3))
    assert xs.min() > -2.5 and xs.max() < 3.0
    assert ys.min() > -0.01 and ys.max() < 10.1


def test_fern_to_pixels():
    xs = np.array([0.0, -2.5, 3.0, -2.525])
    ys = np.array([0.0, 10.0, 5.5, 10.025])

    px, py = fern_to_pixels(xs, ys, 110, 220)

    assert px.tolist() == [50, 0, 110, 0]
    assert py.tolist() == [200, 0, 90, 0]


def test_sierpinski_points_stay_in_image():
    xs, ys = sierpinski_points(50, 30, 5000, np.random.default_rng(11))

    assert xs.shape == ys.shape == (5000,)
    assert np.all((xs >= 0) & (xs < 50))
    assert np.all((ys >= 0) & (ys < 30))


def test_sierpinski_converges_onto_triangle():
    width, height = 64, 48
    xs, ys = sierpinski_points(width, height, 2000, np.random.default_rng(5))

    # Inside the triangle (w/2, 0), (0, h), (w, h): y >= h * |2x/w - 1|
    settled = slice(40, None)
    edge = height * np.abs(2 * xs[settled] / width - 1)
    assert np.all(ys[settled] >= edge - 1e-6)


def test_sierpinski_is_reproducible():
    first = sierpinski_points(20, 20, 100, np.random.default_rng(9))
    second = sierpinski_points(20, 20, 100, np.random.default_rng(9))
    assert np.array_equal(first[0], second[0])
    assert np.array_equal(first[1], second[1])
