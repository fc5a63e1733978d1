import logging
import math
from dataclasses import dataclass, field

import numpy as np

from .distance import as_points, pairwise_distances
from .errors import InvalidInput, InsufficientData
from .kernels import bisquare_weights, tricube_weights

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoessConfig:
    """
    Settings for a local regression fit.

    Parameters
    ----------
    span : float, default=0.75
        Fraction of the observations used as the neighborhood of each
        query point, in (0, 1].
    degree : int, default=1
        Degree of the local polynomial: 0 (weighted mean), 1 or 2.
    iterations : int, default=0
        Number of robustness reweighting passes. 0 disables robustness.
    tolerance : float, default=1e-6
        Robustness passes stop early once the largest change in the fitted
        values is below ``tolerance`` times the range of the fitted values.
    metric : str, default='euclidean'
        Distance metric used to build neighborhoods.
    """

    span: float = 0.75
    degree: int = 1
    iterations: int = 0
    tolerance: float = 1e-6
    metric: str = 'euclidean'

    def __post_init__(self):
        neighborhood_size(self.span, 1)
        if isinstance(self.degree, bool) or self.degree not in [0, 1, 2]:
            raise InvalidInput(f"Degree must be 0, 1 or 2, got {self.degree!r}.")
        if isinstance(self.iterations, bool) or not isinstance(self.iterations, (int, np.integer)) \
           or self.iterations < 0:
            raise InvalidInput(f"Robustness iterations must be a non-negative integer, got {self.iterations!r}.")
        if not self.tolerance >= 0:
            raise InvalidInput(f"Tolerance must be non-negative, got {self.tolerance!r}.")


@dataclass
class LoessResult:
    """Output of `loess`."""

    fitted: np.ndarray
    residuals: np.ndarray
    robustness_weights: np.ndarray
    iterations_used: int


def neighborhood_size(span, n):
    """
    Number of observations in each local neighborhood, ``ceil(span * n)``.
    """
    if isinstance(span, bool) or not isinstance(span, (int, float, np.integer, np.floating)):
        raise InvalidInput(f"Span must be a number, got {span!r}.")
    if not 0 < span <= 1:
        raise InvalidInput(f"Span must be in (0, 1], got {span}.")
    # guard against 0.1 * 30 == 3.0000000000000004
    return max(int(math.ceil(span * n - 1e-10)), 1)


def _n_coefficients(degree, dim):
    n_coef = 1
    if degree >= 1:
        n_coef += dim
    if degree >= 2:
        n_coef += dim * (dim + 1) // 2
    return n_coef


def _design_matrix(diffs, degree):
    """
    Local polynomial design centred at the query point.

    Columns are 1, the coordinates, then all squares and cross products.
    For 1-d data this is ``np.vander(diffs, degree + 1, increasing=True)``.
    """
    k, d = diffs.shape
    columns = [np.ones((k, 1))]
    if degree >= 1:
        columns.append(diffs)
    if degree >= 2:
        for j in range(d):
            for l in range(j, d):
                columns.append((diffs[:, j] * diffs[:, l])[:, None])
    return np.hstack(columns)


@dataclass
class LoessSmoother:
    """
    Locally weighted polynomial regression (loess) with tri-cube weights.

    Every prediction uses the ``ceil(span * n)`` observations closest to
    the query point. Their tri-cube weights, times the observation weights
    `w` and the robustness weights, define a weighted least squares
    polynomial fit centred at the query point whose value there is the
    fitted value.

    Parameters
    ----------
    x : np.ndarray
        The predictor, shape ``(n,)`` or ``(n, d)``.
    w : np.ndarray, optional
        Non-negative observation weights.
    span : float, optional
        Fraction of points used as neighbors. Default is 0.75.
    degree : int, optional
        Degree of the local polynomial (0, 1 or 2). Default is 1.
    iterations : int, optional
        Robustness iterations. Default is 0.
    tolerance : float, optional
        Early stopping tolerance for the robustness iterations.
    metric : str, optional
        Distance metric. Default is 'euclidean'.
    """

    x: np.ndarray
    w: np.ndarray = None
    span: float = 0.75
    degree: int = 1
    iterations: int = 0
    tolerance: float = 1e-6
    metric: str = 'euclidean'

    y: np.ndarray = field(init=False, default=None)
    fitted_: np.ndarray = field(init=False, default=None, repr=False)
    residuals_: np.ndarray = field(init=False, default=None, repr=False)
    robustness_weights_: np.ndarray = field(init=False, default=None, repr=False)
    iterations_used_: int = field(init=False, default=0)

    def __post_init__(self):
        self.config = LoessConfig(span=self.span,
                                  degree=self.degree,
                                  iterations=self.iterations,
                                  tolerance=self.tolerance,
                                  metric=self.metric)
        self._X = as_points(self.x)
        n, dim = self._X.shape
        if n == 0:
            raise InsufficientData("No observations to smooth.")
        if self.w is not None:
            self.w = self._check_weights(self.w, n)

        self.n_local_ = neighborhood_size(self.span, n)
        n_coef = _n_coefficients(self.degree, dim)
        if self.n_local_ < n_coef:
            raise InsufficientData(
                f"A neighborhood of {self.n_local_} points cannot determine a degree "
                f"{self.degree} fit with {n_coef} coefficients; increase the span.")

    @classmethod
    def from_config(cls, x, config, w=None):
        return cls(x,
                   w=w,
                   span=config.span,
                   degree=config.degree,
                   iterations=config.iterations,
                   tolerance=config.tolerance,
                   metric=config.metric)

    @staticmethod
    def _check_weights(w, n):
        w = np.asarray(w, dtype=float)
        if w.shape != (n,):
            raise InvalidInput(f"Expected {n} observation weights, got shape {w.shape}.")
        if not np.all(np.isfinite(w)) or np.any(w < 0):
            raise InvalidInput("Observation weights must be finite and non-negative.")
        return w

    @property
    def dim(self):
        return self._X.shape[1]

    def smooth(self, y, sample_weight=None):
        """
        Fit the loess model at every observation.

        Parameters
        ----------
        y : np.ndarray
            Response variable.
        sample_weight : np.ndarray, optional
            Observation weights. If provided, updates the instance weights.

        Returns
        -------
        self : LoessSmoother
        """
        n = self._X.shape[0]
        y = np.asarray(y, dtype=float)
        if y.shape != (n,):
            raise InvalidInput(f"Expected {n} responses, got shape {y.shape}.")
        if not np.all(np.isfinite(y)):
            raise InvalidInput("Responses must be finite.")
        if sample_weight is not None:
            self.w = self._check_weights(sample_weight, n)
        self.y = y

        robustness = np.ones(n)
        fitted = self._fit_at(self._X, robustness)[:, 0]
        used = 0
        for _ in range(self.iterations):
            residuals = y - fitted
            if np.median(np.abs(residuals)) <= 1e-12 * np.max(np.abs(y)):
                logger.debug("median residual is negligible, skipping robustness iterations")
                break
            robustness = bisquare_weights(residuals)
            new_fitted = self._fit_at(self._X, robustness)[:, 0]
            used += 1
            change = np.max(np.abs(new_fitted - fitted))
            fitted = new_fitted
            logger.debug("robustness iteration %d: max change %.3g", used, change)
            if change <= self.tolerance * max(np.ptp(fitted), 1e-300):
                break

        self.fitted_ = fitted
        self.residuals_ = y - fitted
        self.robustness_weights_ = robustness
        self.iterations_used_ = used
        return self

    def _fit_at(self, queries, robustness):
        """
        Local coefficients at each query point, shape ``(m, n_coef)``.
        """
        obs_weights = self.w if self.w is not None else np.ones(self._X.shape[0])
        dists = pairwise_distances(queries, self._X, metric=self.metric)
        k = self.n_local_

        coefs = []
        for i, query in enumerate(queries):
            # 1. Neighborhood, ties broken by input order
            idx = np.argsort(dists[i], kind='stable')[:k]

            # 2. Tricube weights on the distance to the farthest neighbor
            weights = tricube_weights(dists[i, idx]) * obs_weights[idx] * robustness[idx]
            if not np.sum(weights) > 0:
                raise InsufficientData(
                    f"All neighborhood weights are zero at query point {query}; "
                    "increase the span.")

            # 3. Weighted least squares, centred at the query point
            design = _design_matrix(self._X[idx] - query, self.degree)
            sqrt_w = np.sqrt(weights)
            beta, _, rank, _ = np.linalg.lstsq(design * sqrt_w[:, None],
                                               self.y[idx] * sqrt_w,
                                               rcond=None)
            if rank < design.shape[1]:
                raise InsufficientData(
                    f"Local fit at query point {query} is singular: the weighted "
                    f"neighborhood does not determine a degree {self.degree} polynomial.")
            coefs.append(beta)
        return np.array(coefs).reshape((len(queries), -1))

    def _as_queries(self, x_new):
        q = np.asarray(x_new, dtype=float)
        if self.dim == 1:
            q = q.reshape((-1, 1))
        elif q.ndim == 1:
            q = q[None, :]
        if q.ndim != 2 or q.shape[1] != self.dim:
            raise InvalidInput(
                f"Query points must have {self.dim} coordinates, got shape {q.shape}.")
        return as_points(q)

    def predict(self, x_new=None, deriv=0):
        """
        Predict the response at new points.

        Parameters
        ----------
        x_new : np.ndarray, optional
            The query points. If None, returns the fit at the observations.
        deriv : int, optional
            The order of the derivative to compute (default is 0). Only
            available for 1-d predictors.

        Returns
        -------
        np.ndarray
            The predicted response or its derivative.
        """
        if self.y is None:
            raise ValueError("Model has not been fitted yet. Call smooth(y) first.")
        if deriv < 0:
            raise InvalidInput(f"Derivative order must be non-negative, got {deriv}.")
        if deriv > 0 and self.dim != 1:
            raise InvalidInput("Derivatives are only available for a 1-d predictor.")
        if x_new is None:
            if deriv == 0:
                return self.fitted_.copy()
            x_new = self._X

        queries = self._as_queries(x_new)
        if deriv > self.degree:
            return np.zeros(queries.shape[0])
        beta = self._fit_at(queries, self.robustness_weights_)
        # with x centred at the query the d-th derivative is d! * beta[d]
        return beta[:, deriv] * math.factorial(deriv)


def loess(x, y, x_new=None, config=None, w=None, **params):
    """
    Fit a loess curve and evaluate it.

    Parameters
    ----------
    x, y : np.ndarray
        Observations.
    x_new : np.ndarray, optional
        Query points. Defaults to the observations themselves.
    config : LoessConfig, optional
        Fit settings. Keyword arguments (`span`, `degree`, ...) build one
        when it is not given.
    w : np.ndarray, optional
        Observation weights.

    Returns
    -------
    LoessResult
        Fitted values at the query points, and the residuals and robustness
        weights at the observations.
    """
    if config is None:
        config = LoessConfig(**params)
    elif params:
        raise InvalidInput("Pass either a LoessConfig or keyword settings, not both.")
    smoother = LoessSmoother.from_config(x, config, w=w).smooth(y)
    fitted = smoother.predict(x_new) if x_new is not None else smoother.fitted_
    return LoessResult(fitted=fitted,
                       residuals=smoother.residuals_,
                       robustness_weights=smoother.robustness_weights_,
                       iterations_used=smoother.iterations_used_)
