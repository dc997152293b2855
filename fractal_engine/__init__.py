"""
Fractal bitmap generation engine.

This library renders raster images of escape-time sets, iterated function
systems, space-filling curves and Lyapunov maps from per-image parameter
sets, writing one bitmap per entry.

Example usage:
    >>> from fractal_engine import FractalRequest, FractalVariant, FractalRenderer
    >>> request = FractalRequest(FractalVariant.MANDELBROT, width=800, height=800)
    >>> grid = FractalRenderer().render(request)
"""

__version__ = "1.0.0"
__author__ = "Fractal Engine Team"

from fractal_engine.core.exceptions import (
    FractalError, InvalidParameterError, InvalidDimensionsError, UnknownVariantError,
)
from fractal_engine.core.fractal_types import FractalRequest, FractalVariant, FractalRegistry
from fractal_engine.core.pixel_grid import PixelGrid
from fractal_engine.rendering.image_output import ImageExporter
from fractal_engine.io.config import ConfigManager

# Main API classes
from fractal_engine.api import FractalRenderer, BatchRenderer, RenderConfig, render_request

__all__ = [
    "FractalRenderer",
    "BatchRenderer",
    "RenderConfig",
    "render_request",
    "FractalRequest",
    "FractalVariant",
    "FractalRegistry",
    "PixelGrid",
    "ImageExporter",
    "ConfigManager",
    "FractalError",
    "InvalidParameterError",
    "InvalidDimensionsError",
    "UnknownVariantError",
]
