import numpy as np
import pytest

from fractal_engine.rendering.coloring import (
    RGB, color_from_hue, grayscale, hue_to_rgb, lyapunov_color, red_blue_gradient,
)


@pytest.mark.parametrize("hue, expected", [
    (0.0, (255, 255, 0)),
    (1.0 / 12, (127, 255, 0)),
    (0.25, (0, 255, 127)),
    (5.0 / 12, (0, 127, 255)),
    (7.0 / 12, (127, 0, 255)),
    (0.75, (255, 0, 127)),
    (11.0 / 12, (255, 127, 0)),
    (1.0, (255, 255, 0)),
])
def test_color_wheel_sectors(hue, expected):
    assert tuple(color_from_hue(hue)) == expected


def test_hue_channels_stay_in_range():
    for hue in np.linspace(0, 1, 101):
        assert all(0 <= channel <= 255 for channel in color_from_hue(hue))


def test_vectorized_hue_matches_scalar():
    hues = np.linspace(0, 1, 97).reshape(1, 97)
    colors = hue_to_rgb(hues)
    assert colors.shape == (1, 97, 3)
    assert colors.dtype == np.uint8
    for i, hue in enumerate(hues[0]):
        assert tuple(colors[0, i]) == tuple(color_from_hue(hue))


def test_red_blue_gradient():
    assert red_blue_gradient(0.0) == RGB(0, 0, 255)
    assert red_blue_gradient(1.0) == RGB(255, 0, 0)
    assert red_blue_gradient(0.5) == RGB(127, 0, 127)

    colors = red_blue_gradient(np.array([0.0, 0.5, 1.0]))
    assert colors.tolist() == [[0, 0, 255], [127, 0, 127], [255, 0, 0]]


def test_grayscale():
    assert grayscale(0.0) == RGB(0, 0, 0)
    assert grayscale(1.0) == RGB(255, 255, 255)
    assert grayscale(np.array([[0.2]])).tolist() == [[[51, 51, 51]]]


def test_lyapunov_color():
    assert lyapunov_color(0.0) == RGB(0, 0, 0)
    assert lyapunov_color(10.0) == RGB(50, 0, 0)
    assert lyapunov_color(-10.0) == RGB(0, 0, 50)
    assert lyapunov_color(1000.0) == RGB(255, 0, 0)
    assert lyapunov_color(float('-inf')) == RGB(0, 0, 255)

    colors = lyapunov_color(np.array([10.0, -10.0, -np.inf]))
    assert colors.tolist() == [[50, 0, 0], [0, 0, 50], [0, 0, 255]]
