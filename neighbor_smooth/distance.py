"""
Distances between observations and stable neighbor ranking.

Points are rows of a feature matrix. A 1-d array of length ``n`` passed as
a feature matrix is read as ``n`` one-dimensional points, which is the
time-ordered smoothing case; a scalar query is a single 1-d point.
"""
import numpy as np
from scipy.spatial.distance import cdist

from .errors import InvalidInput, InsufficientData


def as_points(X):
    """
    Coerce `X` to a float array of shape ``(n, d)``.
    """
    try:
        X = np.asarray(X, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Features must be numeric: {e}") from e
    if X.ndim == 1:
        X = X[:, None]
    elif X.ndim != 2:
        raise InvalidInput(f"Expected a 1-d or 2-d feature array, got {X.ndim} dimensions.")
    if not np.all(np.isfinite(X)):
        raise InvalidInput("Features must be finite.")
    return X


def as_point(a):
    """
    Coerce `a` to a single point, a float array of shape ``(d,)``.
    """
    try:
        a = np.atleast_1d(np.asarray(a, dtype=float))
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Point coordinates must be numeric: {e}") from e
    if a.ndim != 1 or a.size == 0:
        raise InvalidInput(f"A point must be a non-empty vector, got shape {a.shape}.")
    return a


def pairwise_distances(X, Y=None, metric='euclidean'):
    """
    Distance between every row of `X` and every row of `Y`.

    Parameters
    ----------
    X : np.ndarray
        Points of shape ``(n, d)`` (or ``(n,)`` for 1-d points).
    Y : np.ndarray, optional
        Points of shape ``(m, d)``. Defaults to `X`.
    metric : str, optional
        Any metric understood by `scipy.spatial.distance.cdist`.
        Default is ``'euclidean'``.

    Returns
    -------
    np.ndarray
        Distances of shape ``(n, m)``.
    """
    X = as_points(X)
    Y = X if Y is None else as_points(Y)
    if X.shape[1] != Y.shape[1]:
        raise InvalidInput(
            f"Dimensionality mismatch: {X.shape[1]} vs {Y.shape[1]} coordinates.")
    try:
        return cdist(X, Y, metric=metric)
    except ValueError as e:
        raise InvalidInput(f"Unknown or invalid metric {metric!r}: {e}") from e


def distance(a, b, metric='euclidean'):
    """
    Distance between two points of equal dimensionality.

    Returns
    -------
    float
        Non-negative, symmetric in `a` and `b`, and 0 when ``a == b``.
    """
    a = as_point(a)
    b = as_point(b)
    if a.shape != b.shape:
        raise InvalidInput(
            f"Dimensionality mismatch: {a.shape[0]} vs {b.shape[0]} coordinates.")
    return float(pairwise_distances(a[None, :], b[None, :], metric=metric)[0, 0])


def rank_neighbors(X, query, metric='euclidean'):
    """
    Rank all observations by ascending distance to `query`.

    Ties are broken by input order so the ranking is reproducible.

    Parameters
    ----------
    X : np.ndarray
        Observation features, shape ``(n, d)`` or ``(n,)``.
    query : np.ndarray
        A single point with ``d`` coordinates.
    metric : str, optional
        Distance metric, default ``'euclidean'``.

    Returns
    -------
    order : np.ndarray
        Indices into `X`, nearest first.
    dists : np.ndarray
        Distances in the same order as `order`.
    """
    X = as_points(X)
    query = as_point(query)
    if query.shape[0] != X.shape[1]:
        raise InvalidInput(
            f"Query has {query.shape[0]} coordinates but observations have {X.shape[1]}.")
    dists = pairwise_distances(X, query[None, :], metric=metric)[:, 0]
    order = np.argsort(dists, kind='stable')
    return order, dists[order]


def nearest_neighbors(X, query, k, metric='euclidean'):
    """
    The `k` observations closest to `query`, nearest first.

    Returns the same ``(order, dists)`` pair as `rank_neighbors`,
    truncated to `k` entries.
    """
    X = as_points(X)
    k = check_neighbor_count(k, X.shape[0])
    order, dists = rank_neighbors(X, query, metric=metric)
    return order[:k], dists[:k]


def check_neighbor_count(k, n):
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise InvalidInput(f"Neighbor count must be an integer, got {k!r}.")
    if k < 1:
        raise InvalidInput(f"Neighbor count must be positive, got {k}.")
    if k > n:
        raise InsufficientData(
            f"Requested {k} neighbors but only {n} observations are available.")
    return int(k)
