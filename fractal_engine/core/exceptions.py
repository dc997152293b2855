"""
Exception types raised by the fractal engine.

All errors are local to a single render request; batch rendering catches
them per job so one bad request never aborts its siblings.
"""


class FractalError(Exception):
    """Base class for fractal engine errors."""


class InvalidParameterError(FractalError, ValueError):
    """A request carries a value the selected algorithm cannot work with."""


class InvalidDimensionsError(InvalidParameterError):
    """Image width or height is not positive."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        super().__init__(f"Width and height must be positive, got {width}x{height}")

    def __reduce__(self):
        return (self.__class__, (self.width, self.height))


class UnknownVariantError(FractalError, ValueError):
    """A variant code does not name one of the known fractal variants."""

    def __init__(self, code):
        self.code = code
        super().__init__(f"Unknown fractal variant code {code!r} (expected 0-10)")

    def __reduce__(self):
        return (self.__class__, (self.code,))
