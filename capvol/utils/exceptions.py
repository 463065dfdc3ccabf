# -*- coding: utf-8 -*-


class CalibrationError(ValueError):
    """Base class for errors raised by the caplet volatility calibration."""


class InvalidInputShape(CalibrationError):
    """Market data grid dimensions are inconsistent, or no usable quote remains."""


class NonPositiveUncertainty(CalibrationError):
    """A usable quote carries an error (uncertainty) that is zero or negative."""


class SurfaceEvaluationError(CalibrationError):
    """The pricing formula cannot be evaluated, e.g. a log-normal convention with a non-positive shifted forward or strike."""


class CalibrationDidNotConverge(CalibrationError):

    def __init__(self, message: str, sse: float, chi_square: float, iterations: int, reason: str):
        super().__init__(message)
        self.sse = sse
        self.chi_square = chi_square
        self.iterations = iterations
        self.reason = reason
