"""
Fractal variant definitions, render requests and the per-variant generators.

Each of the eleven variants has one generator function that fills a
PixelGrid for a FractalRequest. FractalRegistry maps variants to their
generators and performs the single dispatch used by the renderer.
"""

import numpy as np
from typing import Dict, Any, Callable, Mapping, Tuple
from dataclasses import dataclass, asdict
from enum import IntEnum
import collections.abc
import logging

from .exceptions import InvalidDimensionsError, InvalidParameterError, UnknownVariantError
from .math_functions import ComplexPlane, FractalIterator
from .pixel_grid import PixelGrid, BLACK, WHITE, GREEN
from .geometry import koch_snowflake, hilbert_curve_segments, menger_mask
from .ifs import sierpinski_points, barnsley_fern_points, fern_to_pixels
from .lyapunov import lyapunov_map
from ..rendering.coloring import hue_to_rgb, red_blue_gradient, grayscale, lyapunov_color

logger = logging.getLogger(__name__)


class FractalVariant(IntEnum):
    """Fractal variants with their configuration codes."""

    MANDELBROT = 0
    JULIA = 1
    BURNING_SHIP = 2
    NEWTON = 3
    SIERPINSKI_TRIANGLE = 4
    KOCH_SNOWFLAKE = 5
    BARNSLEY_FERN = 6
    LYAPUNOV = 7
    MENGER_SPONGE = 8
    HILBERT_CURVE = 9
    TRICORN = 10

    @property
    def slug(self) -> str:
        return self.name.lower()

    @classmethod
    def from_code(cls, code: Any) -> 'FractalVariant':
        try:
            value = int(code)
            # Integral floats such as 1.0 are accepted; 1.7 is not
            if not isinstance(code, str) and value != code:
                raise ValueError(code)
            return cls(value)
        except (TypeError, ValueError, OverflowError):
            raise UnknownVariantError(code) from None

    @classmethod
    def from_name(cls, name: str) -> 'FractalVariant':
        key = name.strip().upper().replace('-', '_')
        if key in cls.__members__:
            return cls[key]
        if key.isdigit():
            return cls.from_code(key)
        raise UnknownVariantError(name)


# Used when a request leaves max_iterations at 0. For the curve and
# sponge variants the value is a recursion depth, not an iteration count.
DEFAULT_ITERATIONS: Dict[FractalVariant, int] = {
    FractalVariant.MANDELBROT: 1000,
    FractalVariant.JULIA: 5000,
    FractalVariant.BURNING_SHIP: 1000,
    FractalVariant.NEWTON: 1000,
    FractalVariant.SIERPINSKI_TRIANGLE: 100000,
    FractalVariant.KOCH_SNOWFLAKE: 5,
    FractalVariant.BARNSLEY_FERN: 50000,
    FractalVariant.LYAPUNOV: 1000,
    FractalVariant.MENGER_SPONGE: 4,
    FractalVariant.HILBERT_CURVE: 5,
    FractalVariant.TRICORN: 1000,
}


@dataclass(frozen=True)
class FractalRequest:
    """Immutable description of one render."""

    variant: FractalVariant
    width: int
    height: int
    max_iterations: int = 0
    julia_real: float = 0.0
    julia_imag: float = 0.0
    seed: int = 0
    request_id: int = 0

    def __post_init__(self):
        """Validate request values."""
        if not isinstance(self.variant, FractalVariant):
            object.__setattr__(self, 'variant', FractalVariant.from_code(self.variant))
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensionsError(self.width, self.height)
        if self.max_iterations < 0:
            raise InvalidParameterError("max_iterations must not be negative")

    def resolved_iterations(self) -> int:
        """max_iterations, or the variant default when it is 0."""
        return self.max_iterations or DEFAULT_ITERATIONS[self.variant]

    @property
    def julia_c(self) -> complex:
        return complex(self.julia_real, self.julia_imag)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['variant'] = self.variant.slug
        return data

    @classmethod
    def from_record(cls, record: Mapping[str, Any], request_id: int = 0) -> 'FractalRequest':
        """
        Create a request from a configuration record.

        Keys (Seed, Width, Height, Fractal, JuliaReal, JuliaImag,
        MaxIterations) are matched case-insensitively; missing keys read as 0.

        Args:
            record: Mapping from one configuration entry
            request_id: Position of the record in its configuration list
        """
        if not isinstance(record, collections.abc.Mapping):
            raise InvalidParameterError(f"Configuration record must be a mapping, got {record!r}")

        values = {str(k).lower(): v for k, v in record.items()}

        def get(key, convert):
            value = values.get(key.lower())
            if value is None:
                return convert(0)
            try:
                return convert(value)
            except (TypeError, ValueError):
                raise InvalidParameterError(f"{key} must be numeric, got {value!r}") from None

        return cls(
            variant=FractalVariant.from_code(values.get('fractal', 0)),
            width=get('Width', int),
            height=get('Height', int),
            max_iterations=get('MaxIterations', int),
            julia_real=get('JuliaReal', float),
            julia_imag=get('JuliaImag', float),
            seed=get('Seed', int),
            request_id=request_id,
        )


Generator = Callable[[FractalRequest, np.random.Generator], PixelGrid]


def _write_escape_colors(request: FractalRequest, colors: np.ndarray) -> PixelGrid:
    grid = PixelGrid(request.width, request.height)
    grid.pixels[:, :] = colors
    return grid


def generate_mandelbrot(request: FractalRequest, rng: np.random.Generator) -> PixelGrid:
    """Mandelbrot set on [-2, 2] x [-2, 2], red/blue by iteration count."""
    max_iter = request.resolved_iterations()
    plane = ComplexPlane(-2.0, 2.0, -2.0, 2.0, request.width, request.height)
    result = FractalIterator(max_iter, escape_radius=4.0).mandelbrot_iteration(plane.create_complex_array())
    return _write_escape_colors(request, red_blue_gradient(result.normalized()))


def generate_julia(request: FractalRequest, rng: np.random.Generator) -> PixelGrid:
    """Julia set for c = julia_real + i*julia_imag, hue-wheel colored."""
    max_iter = request.resolved_iterations()
    plane = ComplexPlane(-2.0, 2.0, -2.0, 2.0, request.width, request.height, endpoint=True)
    result = FractalIterator(max_iter, escape_radius=2.0).julia_iteration(
        plane.create_complex_array(), request.julia_c)

    hue = np.where(result.escaped, result.normalized(), 0.0)
    return _write_escape_colors(request, hue_to_rgb(hue))


def generate_burning_ship(request: FractalRequest, rng: np.random.Generator) -> PixelGrid:
    max_iter = request.resolved_iterations()
    plane = ComplexPlane(-2.0, 2.0, -2.0, 2.0, request.width, request.height)
    result = FractalIterator(max_iter, escape_radius=4.0).burning_ship_iteration(plane.create_complex_array())
    return _write_escape_colors(request, red_blue_gradient(result.normalized()))


def generate_newton(request: FractalRequest, rng: np.random.Generator) -> PixelGrid:
    """Newton's method on z^3 - 1, colored by steps to convergence."""
    max_iter = request.resolved_iterations()
    plane = ComplexPlane(-2.0, 2.0, -2.0, 2.0, request.width, request.height)
    result = FractalIterator(max_iter).newton_iteration(plane.create_complex_array())
    return _write_escape_colors(request, red_blue_gradient(result.normalized()))


def generate_tricorn(request: FractalRequest, rng: np.random.Generator) -> PixelGrid:
    """Tricorn on [-2, 1] x [-1.5, 1.5]; grayscale outside, black inside."""
    max_iter = request.resolved_iterations()
    plane = ComplexPlane(-2.0, 1.0, -1.5, 1.5, request.width, request.height)
    result = FractalIterator(max_iter, escape_radius=2.0).tricorn_iteration(plane.create_complex_array())

    colors = grayscale(result.normalized())
    colors[~result.escaped] = BLACK
    return _write_escape_colors(request, colors)


def generate_sierpinski_triangle(request: FractalRequest, rng: np.random.Generator) -> PixelGrid:
    grid = PixelGrid(request.width, request.height, background=WHITE)
    xs, ys = sierpinski_points(request.width, request.height, request.resolved_iterations(), rng)
    grid.plot_points(np.trunc(xs), np.trunc(ys), BLACK)
    return grid


def generate_koch_snowflake(request: FractalRequest, rng: np.random.Generator) -> PixelGrid:
    grid = PixelGrid(request.width, request.height, background=WHITE)
    segments = koch_snowflake(request.width, request.height, request.resolved_iterations())
    grid.draw_lines(segments, BLACK)
    return grid


def generate_barnsley_fern(request: FractalRequest, rng: np.random.Generator) -> PixelGrid:
    grid = PixelGrid(request.width, request.height, background=BLACK)
    xs, ys = barnsley_fern_points(request.resolved_iterations(), rng)
    px, py = fern_to_pixels(xs, ys, request.width, request.height)
    plotted = grid.plot_points(px, py, GREEN)
    logger.debug(f"Barnsley fern: {plotted}/{len(px)} points inside the image")
    return grid


def generate_lyapunov(request: FractalRequest, rng: np.random.Generator) -> PixelGrid:
    """Lyapunov exponents of the a/b alternating logistic map over [2, 4]^2."""
    exponents = lyapunov_map(request.width, request.height, request.resolved_iterations())
    return _write_escape_colors(request, lyapunov_color(exponents))


def generate_menger_sponge(request: FractalRequest, rng: np.random.Generator) -> PixelGrid:
    grid = PixelGrid(request.width, request.height, background=WHITE)
    kept = menger_mask(request.width, request.height, request.resolved_iterations())
    grid.pixels[kept] = BLACK
    return grid


def generate_hilbert_curve(request: FractalRequest, rng: np.random.Generator) -> PixelGrid:
    grid = PixelGrid(request.width, request.height, background=WHITE)
    segments = hilbert_curve_segments(request.width, request.resolved_iterations())
    grid.draw_lines(segments, BLACK)
    return grid


class FractalRegistry:
    """Registry mapping each variant to its generator function."""

    _generators: Dict[FractalVariant, Generator] = {
        FractalVariant.MANDELBROT: generate_mandelbrot,
        FractalVariant.JULIA: generate_julia,
        FractalVariant.BURNING_SHIP: generate_burning_ship,
        FractalVariant.NEWTON: generate_newton,
        FractalVariant.SIERPINSKI_TRIANGLE: generate_sierpinski_triangle,
        FractalVariant.KOCH_SNOWFLAKE: generate_koch_snowflake,
        FractalVariant.BARNSLEY_FERN: generate_barnsley_fern,
        FractalVariant.LYAPUNOV: generate_lyapunov,
        FractalVariant.MENGER_SPONGE: generate_menger_sponge,
        FractalVariant.HILBERT_CURVE: generate_hilbert_curve,
        FractalVariant.TRICORN: generate_tricorn,
    }

    _descriptions: Dict[FractalVariant, str] = {
        FractalVariant.MANDELBROT: "z_{n+1} = z_n^2 + c, z_0 = 0, on [-2, 2]^2",
        FractalVariant.JULIA: "z_{n+1} = z_n^2 + c with c = JuliaReal + i*JuliaImag",
        FractalVariant.BURNING_SHIP: "z_{n+1} = (|Re(z_n)| + i|Im(z_n)|)^2 + c",
        FractalVariant.NEWTON: "Newton's method on z^3 - 1, steps to reach a root",
        FractalVariant.SIERPINSKI_TRIANGLE: "Chaos game halfway toward random triangle vertices",
        FractalVariant.KOCH_SNOWFLAKE: "Koch curve on each edge of a triangle (depth = MaxIterations)",
        FractalVariant.BARNSLEY_FERN: "Four weighted affine maps tracing a fern",
        FractalVariant.LYAPUNOV: "Lyapunov exponent of the logistic map alternating a/b in [2, 4]",
        FractalVariant.MENGER_SPONGE: "Carpet cross-section of the Menger sponge (depth = MaxIterations)",
        FractalVariant.HILBERT_CURVE: "Space-filling Hilbert curve (order = MaxIterations)",
        FractalVariant.TRICORN: "z_{n+1} = conj(z_n)^2 + c on [-2, 1] x [-1.5, 1.5]",
    }

    @classmethod
    def get(cls, variant: FractalVariant) -> Generator:
        """
        Get the generator for a variant.

        Args:
            variant: Fractal variant or its integer code

        Returns:
            Generator function
        """
        variant = FractalVariant.from_code(variant)
        return cls._generators[variant]

    @classmethod
    def list_fractals(cls) -> Dict[str, str]:
        """Get a dictionary of variant names and their descriptions."""
        return {variant.slug: cls._descriptions.get(variant, "") for variant in FractalVariant}

    @classmethod
    def generate(cls, request: FractalRequest, rng: np.random.Generator) -> PixelGrid:
        """Run the generator selected by request.variant."""
        generator = cls.get(request.variant)
        logger.debug(f"Generating {request.variant.slug} {request.width}x{request.height}, "
                     f"iterations={request.resolved_iterations()}")
        return generator(request, rng)


# Interesting Julia set constants as (real, imag)
JULIA_PRESETS: Dict[str, Tuple[float, float]] = {
    'dragon': (-0.75, 0.1),
    'spiral': (-0.4, 0.6),
    'dendrite': (-0.235125, 0.827215),
    'lightning': (-0.8, 0.156),
    'rabbit': (-0.123, 0.745),
    'airplane': (-1.25, 0.0),
    'san_marco': (-0.75, 0.0),
    'siegel_disk': (-0.391, -0.587),
}
