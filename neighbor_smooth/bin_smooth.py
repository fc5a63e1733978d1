from dataclasses import dataclass, field

import numpy as np

from .distance import as_points
from .errors import InvalidInput, InsufficientData
from .kernels import KERNELS


@dataclass
class BinSmoother:
    """
    Fixed-bandwidth kernel smoother.

    With the ``'box'`` kernel the estimate at `x0` is the plain mean of the
    responses whose predictor lies within ``bandwidth / 2`` of `x0` (the
    bin smoother). The ``'normal'`` kernel replaces the box by a Gaussian
    with quartiles at ``+/- bandwidth / 4``.

    Parameters
    ----------
    x : np.ndarray
        The predictor variable (1-d).
    bandwidth : float
        Width of the window, in units of `x`.
    kernel : str, optional
        ``'box'`` (default) or ``'normal'``.
    """

    x: np.ndarray
    bandwidth: float
    kernel: str = 'box'

    y: np.ndarray = field(init=False, default=None)

    def __post_init__(self):
        X = as_points(self.x)
        if X.shape[1] != 1:
            raise InvalidInput("The bin smoother needs a 1-d predictor.")
        self.x = X[:, 0]
        if not self.bandwidth > 0:
            raise InvalidInput(f"Bandwidth must be positive, got {self.bandwidth!r}.")
        if self.kernel not in KERNELS:
            raise InvalidInput(
                f"Unknown kernel {self.kernel!r}; choose one of {sorted(KERNELS)}.")

    def smooth(self, y):
        """
        Store the response.

        Returns
        -------
        self : BinSmoother
        """
        y = np.asarray(y, dtype=float)
        if y.shape != self.x.shape:
            raise InvalidInput(f"Expected {self.x.shape[0]} responses, got shape {y.shape}.")
        self.y = y
        return self

    def predict(self, x_new=None):
        """
        Kernel-weighted mean of the response around each point of `x_new`.
        """
        if self.y is None:
            raise ValueError("Model has not been fitted yet. Call smooth(y) first.")
        x_new = self.x if x_new is None else as_points(np.atleast_1d(x_new))
        if x_new.ndim == 2:
            if x_new.shape[1] != 1:
                raise InvalidInput("The bin smoother needs 1-d query points.")
            x_new = x_new[:, 0]

        weights = KERNELS[self.kernel](x_new[:, None] - self.x[None, :], self.bandwidth)
        totals = weights.sum(axis=1)
        empty = ~(totals > 0)
        if np.any(empty):
            raise InsufficientData(
                f"No observations within the window at x = {x_new[empty][0]}; "
                "increase the bandwidth.")
        return weights @ self.y / totals
