from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.datasets import load_digits
from sklearn.model_selection import train_test_split

from .errors import InvalidInput

# load_digits pixels range over 0..16; a pixel counts as dark above this
DARK_THRESHOLD = 12


@dataclass(frozen=True)
class Observation:
    """
    A single observation: numeric feature coordinates and a response.

    The response may be a number (regression, smoothing) or a label
    (classification).
    """

    features: tuple
    response: object

    def __post_init__(self):
        try:
            features = tuple(float(v) for v in np.atleast_1d(self.features))
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"Malformed observation features {self.features!r}: {e}") from e
        if not features:
            raise InvalidInput("An observation needs at least one feature.")
        if not all(np.isfinite(features)):
            raise InvalidInput(f"Observation features must be finite, got {features}.")
        object.__setattr__(self, 'features', features)

    @property
    def dim(self):
        return len(self.features)


def observations_to_arrays(observations):
    """
    Stack observations into a feature matrix and a response vector.

    Returns
    -------
    X : np.ndarray
        Shape ``(n, d)``.
    y : np.ndarray
        Shape ``(n,)``.
    """
    observations = list(observations)
    if not observations:
        raise InvalidInput("No observations given.")
    dims = {obs.dim for obs in observations}
    if len(dims) > 1:
        raise InvalidInput(f"Observations have mixed dimensionality {sorted(dims)}.")
    X = np.array([obs.features for obs in observations], dtype=float)
    y = np.array([obs.response for obs in observations])
    return X, y


def load_observations(path_or_buffer, features, response):
    """
    Read observations from a CSV file.

    Parameters
    ----------
    path_or_buffer : str, path or file-like
        Anything `pandas.read_csv` accepts.
    features : str or list of str
        Feature column(s).
    response : str
        Response column.

    Returns
    -------
    list of Observation
    """
    if isinstance(features, str):
        features = [features]
    features = list(features)
    try:
        table = pd.read_csv(path_or_buffer)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise InvalidInput(f"Could not parse CSV input: {e}") from e
    missing = [c for c in features + [response] if c not in table.columns]
    if missing:
        raise InvalidInput(f"Columns {missing} not found; available: {list(table.columns)}.")

    try:
        X = table[features].apply(pd.to_numeric).to_numpy(dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Feature columns must be numeric: {e}") from e
    bad = ~np.isfinite(X).all(axis=1) | table[response].isna().to_numpy()
    if np.any(bad):
        rows = np.flatnonzero(bad)[:5].tolist()
        raise InvalidInput(f"Missing or non-finite values in rows {rows}.")

    return [Observation(tuple(row), value)
            for row, value in zip(X, table[response].tolist())]


@dataclass
class DigitsSplit:
    """Train / test halves of the 2-vs-7 digits data."""

    train: pd.DataFrame
    test: pd.DataFrame


def digit_quadrant_features(images, threshold=DARK_THRESHOLD):
    """
    Proportion of dark pixels in the upper-left and lower-right quadrants.

    Parameters
    ----------
    images : np.ndarray
        Shape ``(n, h, w)``.

    Returns
    -------
    np.ndarray
        Shape ``(n, 2)``: columns ``x_1`` (upper-left) and ``x_2``
        (lower-right).
    """
    images = np.asarray(images, dtype=float)
    if images.ndim != 3:
        raise InvalidInput(f"Expected images of shape (n, h, w), got {images.shape}.")
    h, w = images.shape[1] // 2, images.shape[2] // 2
    dark = images > threshold
    x_1 = dark[:, :h, :w].mean(axis=(1, 2))
    x_2 = dark[:, h:, w:].mean(axis=(1, 2))
    return np.column_stack([x_1, x_2])


def load_digits_27(test_size=0.5, random_state=0):
    """
    The 2-vs-7 digit classification data.

    Built from the 8x8 handwritten digits shipped with scikit-learn: the 2s
    and 7s are kept and each image is summarized by two predictors,
    ``x_1`` the proportion of dark pixels in the upper-left quadrant and
    ``x_2`` the proportion in the lower-right quadrant.

    Returns
    -------
    DigitsSplit
        DataFrames with columns ``y``, ``x_1`` and ``x_2``; ``y`` holds the
        digit as a string, ``'2'`` or ``'7'``.
    """
    digits = load_digits()
    keep = np.isin(digits.target, [2, 7])
    features = digit_quadrant_features(digits.images[keep])
    frame = pd.DataFrame({'y': digits.target[keep].astype(str),
                          'x_1': features[:, 0],
                          'x_2': features[:, 1]})
    train, test = train_test_split(frame,
                                   test_size=test_size,
                                   random_state=random_state,
                                   stratify=frame['y'])
    return DigitsSplit(train=train.reset_index(drop=True),
                       test=test.reset_index(drop=True))
