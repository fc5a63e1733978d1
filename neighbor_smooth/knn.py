import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, ClassifierMixin, RegressorMixin

from .distance import as_points, check_neighbor_count, pairwise_distances
from .errors import InvalidInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KNNConfig:
    """
    Settings for a k-nearest-neighbor estimator.

    Parameters
    ----------
    k : int, default=5
        Number of neighbors.
    metric : str, default='euclidean'
        Distance metric.
    """

    k: int = 5
    metric: str = 'euclidean'


class _NeighborsMixin:
    """
    Shared storage and neighbor search for the k-NN estimators.
    """

    def _store(self, X, y):
        X = as_points(X)
        y = np.asarray(y)
        if y.ndim != 1 or y.shape[0] != X.shape[0]:
            raise InvalidInput(
                f"Expected {X.shape[0]} labels for {X.shape[0]} observations, got shape {y.shape}.")
        check_neighbor_count(self.k, X.shape[0])
        self.X_ = X
        self.n_features_in_ = X.shape[1]
        logger.debug("%s stored %d observations with %d features (k=%d)",
                     type(self).__name__, X.shape[0], X.shape[1], self.k)
        return y

    def kneighbors(self, X):
        """
        Indices and distances of the `k` nearest training points.

        Ties in distance are broken by training order.

        Parameters
        ----------
        X : np.ndarray
            Query points of shape ``(m, d)``; a single point may be given
            as a vector of length ``d``.

        Returns
        -------
        dists : np.ndarray
            Shape ``(m, k)``, nearest first.
        idx : np.ndarray
            Shape ``(m, k)``, indices into the training set.
        """
        if getattr(self, 'X_', None) is None:
            raise ValueError("Model has not been fitted yet. Call fit(X, y) first.")
        # k may have been changed with set_params since fit
        k = check_neighbor_count(self.k, self.X_.shape[0])
        Q = np.atleast_1d(np.asarray(X, dtype=float))
        if Q.ndim == 1 and self.n_features_in_ > 1:
            Q = Q[None, :]
        Q = as_points(Q)
        if Q.shape[1] != self.n_features_in_:
            raise InvalidInput(
                f"Query points have {Q.shape[1]} features but the model was fit "
                f"with {self.n_features_in_}.")
        D = pairwise_distances(Q, self.X_, metric=self.metric)
        idx = np.argsort(D, axis=1, kind='stable')[:, :k]
        return np.take_along_axis(D, idx, axis=1), idx


@dataclass
class KNNClassifier(_NeighborsMixin, ClassifierMixin, BaseEstimator):
    """
    k-nearest-neighbor classifier.

    The class probabilities at a query point are the label proportions
    among its `k` nearest training points; the predicted class is the most
    frequent one, ties going to the class that comes first in `classes_`.

    Parameters
    ----------
    k : int, optional
        Number of neighbors. Default is 5.
    metric : str, optional
        Distance metric. Default is 'euclidean'.
    labels : sequence, optional
        Fixed label ordering. Defaults to the sorted unique training labels.
    """

    k: int = 5
    metric: str = 'euclidean'
    labels: list = None

    classes_: np.ndarray = field(init=False, default=None, repr=False)
    X_: np.ndarray = field(init=False, default=None, repr=False)
    codes_: np.ndarray = field(init=False, default=None, repr=False)

    @classmethod
    def from_config(cls, config, labels=None):
        return cls(k=config.k, metric=config.metric, labels=labels)

    def fit(self, X, y):
        """
        Store the labeled training set.

        Returns
        -------
        self : KNNClassifier
        """
        y = self._store(X, y)
        if self.labels is not None:
            classes = np.asarray(list(self.labels))
            if len(set(classes.tolist())) != len(classes):
                raise InvalidInput("The label ordering contains duplicates.")
        else:
            classes = np.unique(y)
        position = {c: i for i, c in enumerate(classes.tolist())}
        unknown = set(y.tolist()) - set(position)
        if unknown:
            raise InvalidInput(f"Training labels {sorted(map(str, unknown))} are not in the label ordering.")
        self.classes_ = classes
        self.codes_ = np.array([position[v] for v in y.tolist()], dtype=int)
        return self

    def _counts(self, X):
        _, idx = self.kneighbors(X)
        codes = self.codes_[idx]
        counts = np.zeros((idx.shape[0], len(self.classes_)), dtype=int)
        rows = np.repeat(np.arange(idx.shape[0]), idx.shape[1])
        np.add.at(counts, (rows, codes.ravel()), 1)
        return counts

    def predict_proba(self, X):
        """
        Proportion of each class among the `k` nearest neighbors.

        Returns
        -------
        np.ndarray
            Shape ``(m, n_classes)``, columns ordered as `classes_`.
        """
        counts = self._counts(X)
        return counts / counts.sum(axis=1, keepdims=True)

    def predict(self, X):
        """
        Majority class among the `k` nearest neighbors.
        """
        # argmax returns the first maximum, i.e. the lowest class index
        return self.classes_[np.argmax(self._counts(X), axis=1)]


@dataclass
class KNNRegressor(_NeighborsMixin, RegressorMixin, BaseEstimator):
    """
    k-nearest-neighbor regression: the average response of the `k`
    nearest training points.
    """

    k: int = 5
    metric: str = 'euclidean'

    X_: np.ndarray = field(init=False, default=None, repr=False)
    y_: np.ndarray = field(init=False, default=None, repr=False)

    @classmethod
    def from_config(cls, config):
        return cls(k=config.k, metric=config.metric)

    def fit(self, X, y):
        y = self._store(X, y)
        try:
            self.y_ = y.astype(float)
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"Regression responses must be numeric: {e}") from e
        return self

    def predict(self, X):
        _, idx = self.kneighbors(X)
        return self.y_[idx].mean(axis=1)


def accuracy_by_k(X_train, y_train, X_test, y_test, ks, metric='euclidean'):
    """
    Train and test accuracy of `KNNClassifier` for each neighbor count.

    Small `k` reproduces the training labels (over-training) while large
    `k` over-smooths; the test accuracy shows the trade-off.

    Returns
    -------
    pd.DataFrame
        Columns ``k``, ``train_accuracy`` and ``test_accuracy``, sorted by `k`.
    """
    ks = sorted(set(int(k) for k in ks))
    if not ks:
        raise InvalidInput("No neighbor counts to evaluate.")
    labels = np.unique(np.concatenate([np.asarray(y_train), np.asarray(y_test)]))
    rows = []
    for k in ks:
        clf = KNNClassifier(k=k, metric=metric, labels=labels).fit(X_train, y_train)
        rows.append({'k': k,
                     'train_accuracy': clf.score(X_train, y_train),
                     'test_accuracy': clf.score(X_test, y_test)})
        logger.debug("k=%d: %s", k, rows[-1])
    return pd.DataFrame(rows, columns=['k', 'train_accuracy', 'test_accuracy'])


def select_k(X_train, y_train, X_test, y_test, ks, metric='euclidean'):
    """
    Neighbor count with the best test accuracy; the smallest `k` wins ties.
    """
    table = accuracy_by_k(X_train, y_train, X_test, y_test, ks, metric=metric)
    return int(table.loc[table['test_accuracy'].idxmax(), 'k'])
