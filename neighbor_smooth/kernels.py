import numpy as np
from scipy.stats import norm

# ksmooth scaling: the kernel quartiles sit at +/- 0.25 * bandwidth
_NORMAL_SCALE = 0.25 / norm.ppf(0.75)


def tricube_weights(distances, maxdist=None):
    """
    Tri-cube weights for a neighborhood.

    Parameters
    ----------
    distances : np.ndarray
        Distances of the neighborhood members to the query point.
    maxdist : float, optional
        Neighborhood radius. Defaults to the largest distance.

    Returns
    -------
    np.ndarray
        ``(1 - (d / maxdist)**3)**3`` for ``d < maxdist`` and 0 otherwise.
        When ``maxdist`` is 0, or every member sits at the same distance,
        every member gets weight 1.
    """
    d = np.asarray(distances, dtype=float)
    if maxdist is None:
        if d.size == 0 or d.min() == d.max():
            return np.ones_like(d)
        maxdist = d.max()
    if maxdist <= 0:
        return np.ones_like(d)
    u = d / maxdist
    weights = np.clip(1 - u**3, 0, None)**3
    weights[u >= 1] = 0
    return weights


def bisquare_weights(residuals):
    """
    Robustness weights of Cleveland (1979).

    Residuals are scaled by six times their median absolute value and
    passed through ``(1 - u**2)**2`` on ``|u| < 1``.
    If the median absolute residual is 0 all weights are 1.
    """
    r = np.asarray(residuals, dtype=float)
    s = np.median(np.abs(r))
    if s <= 0:
        return np.ones_like(r)
    u = np.abs(r / (6.0 * s))
    weights = np.clip(1 - u**2, 0, None)**2
    weights[u >= 1] = 0
    return weights


def box_weights(distances, bandwidth):
    d = np.abs(np.asarray(distances, dtype=float))
    return (d <= 0.5 * bandwidth).astype(float)


def normal_weights(distances, bandwidth):
    d = np.asarray(distances, dtype=float)
    return norm.pdf(d, scale=_NORMAL_SCALE * bandwidth)


KERNELS = {
    'box': box_weights,
    'normal': normal_weights,
}
