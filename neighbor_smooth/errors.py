"""
Exceptions raised by the estimators in `neighbor_smooth`.

Both conditions are caller configuration errors: they are raised
synchronously and never retried or replaced with a degraded fit.
"""


class InvalidInput(ValueError):
    """
    Malformed arguments: dimensionality mismatch, non-positive span or
    neighbor count, unknown metric or kernel, malformed observation.
    """


class InsufficientData(ValueError):
    """
    Too few observations for the requested model: a neighborhood smaller
    than the number of polynomial coefficients, a singular local fit, or
    more neighbors requested than there are training points.
    """
