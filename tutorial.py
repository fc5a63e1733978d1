"""
Figures for the smoothing and k-nearest-neighbor tutorial.

The script smooths a time-ordered series with a bin smoother, a normal
kernel smoother and loess, and draws the k-NN estimate of the conditional
probability of a 7 over the 2-vs-7 digit features for a small and a tuned k.

Usage::

    python tutorial.py [--data polls.csv --x day --y margin] [--output-dir plots]

Without ``--data`` a simulated poll-margin series is smoothed.
The generated plots are saved in the output directory ('plots' by default).
"""
import argparse
import logging
import os

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from neighbor_smooth import (BinSmoother,
                             KNNClassifier,
                             LoessSmoother,
                             load_digits_27,
                             load_observations,
                             observations_to_arrays,
                             select_k)
from neighbor_smooth.config import settings
from neighbor_smooth.logging_config import setup_logging

logger = logging.getLogger(__name__)


def simulated_margin(n=150, seed=0):
    """
    A noisy, slowly varying series standing in for a daily poll margin.
    """
    rng = np.random.default_rng(seed)
    day = np.arange(-n, 0.0)
    trend = 3 * np.sin(day / 40) + 0.01 * day
    return day, trend + rng.normal(0, 2, n)


def plot_smoothers(x, y, output_dir, bandwidth=7.0, span=0.25):
    """
    Compares the box, normal kernel and loess fits on one scatter plot.

    Args:
        x (np.ndarray): The time-ordered predictor.
        y (np.ndarray): The response.
        output_dir (str): The directory to save the plot.

    Returns:
        str: Path of the saved figure.
    """
    grid = np.linspace(x.min(), x.max(), 200)
    box = BinSmoother(x, bandwidth=bandwidth, kernel='box').smooth(y)
    normal = BinSmoother(x, bandwidth=bandwidth, kernel='normal').smooth(y)
    local = LoessSmoother(x, span=span, degree=1).smooth(y)
    robust = LoessSmoother(x, span=span, degree=1,
                           iterations=settings.robust_iterations).smooth(y)

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.scatter(x, y, s=8, c='lightgray')
    ax.plot(grid, box.predict(grid), 'k-', lw=1, label=f"bin smoother ({bandwidth:g})")
    ax.plot(grid, normal.predict(grid), 'b-', lw=2, label="normal kernel")
    ax.plot(grid, local.predict(grid), 'r-', lw=2, label=f"loess (span {span:g})")
    ax.plot(grid, robust.predict(grid), 'r--', lw=2, label="robust loess")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.legend()

    path = os.path.join(output_dir, "smoothers.png")
    fig.savefig(path)
    plt.close(fig)
    return path


def plot_knn_probability(split, ks, output_dir, resolution=60):
    """
    Draws the k-NN estimate of p(x_1, x_2) = Pr(y = 7) for k = 1 and for
    the k with the best test accuracy.

    Returns:
        tuple: Path of the saved figure and the selected k.
    """
    features = ['x_1', 'x_2']
    X_train, y_train = split.train[features].to_numpy(), split.train['y'].to_numpy()
    X_test, y_test = split.test[features].to_numpy(), split.test['y'].to_numpy()
    best_k = select_k(X_train, y_train, X_test, y_test, ks)
    logger.info("selected k=%d", best_k)

    g1, g2 = np.meshgrid(np.linspace(0, 1, resolution), np.linspace(0, 1, resolution))
    grid = np.column_stack([g1.ravel(), g2.ravel()])

    fig, axes = plt.subplots(1, 2, figsize=(12, 6))
    for ax, k in zip(axes, [1, best_k]):
        clf = KNNClassifier(k=k, labels=['2', '7']).fit(X_train, y_train)
        p7 = clf.predict_proba(grid)[:, 1].reshape(g1.shape)
        ax.contourf(g1, g2, p7, levels=np.linspace(0, 1, 11), cmap='RdBu')
        ax.contour(g1, g2, p7, levels=[0.5], colors='k')
        ax.scatter(X_test[:, 0], X_test[:, 1], s=6,
                   c=np.where(y_test == '7', 'navy', 'darkred'))
        ax.set_title(f"k = {k}, test accuracy {clf.score(X_test, y_test):.3f}")
        ax.set_xlabel("x_1")
        ax.set_ylabel("x_2")

    path = os.path.join(output_dir, "knn_probability.png")
    fig.savefig(path)
    plt.close(fig)
    return path, best_k


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument('--data', default=None, help="CSV file with a time-ordered series.")
    parser.add_argument('--x', default='day')
    parser.add_argument('--y', default='margin')
    parser.add_argument('--output-dir', default='plots')
    args = parser.parse_args(argv)

    setup_logging()
    os.makedirs(args.output_dir, exist_ok=True)

    if args.data is None:
        x, y = simulated_margin(seed=settings.random_seed)
    else:
        X, y = observations_to_arrays(load_observations(args.data, args.x, args.y))
        x, y = X[:, 0], y.astype(float)

    logger.info("saved %s", plot_smoothers(x, y, args.output_dir))
    path, _ = plot_knn_probability(load_digits_27(random_state=settings.random_seed),
                                   range(1, 52, 2),
                                   args.output_dir)
    logger.info("saved %s", path)


if __name__ == "__main__":
    main()
