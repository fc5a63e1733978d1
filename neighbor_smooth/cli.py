"""
Command line entry point: ``neighbor-smooth {loess,knn,digits}``.

Results are written as CSV to ``--output`` or to standard output.
"""
import argparse
import logging
import sys

import numpy as np
import pandas as pd

from .config import settings
from .datasets import load_digits_27, load_observations, observations_to_arrays
from .errors import InvalidInput, InsufficientData
from .knn import KNNClassifier, accuracy_by_k
from .loess import LoessConfig, LoessSmoother
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def _write(frame, output):
    if output is None:
        frame.to_csv(sys.stdout, index=False)
    else:
        frame.to_csv(output, index=False)
        logger.info("wrote %d rows to %s", len(frame), output)


def run_loess(args):
    observations = load_observations(args.data, args.x, args.y)
    X, y = observations_to_arrays(observations)
    try:
        y = y.astype(float)
    except ValueError as e:
        raise InvalidInput(f"Column {args.y!r} must be numeric for smoothing: {e}") from e

    iterations = settings.robust_iterations if args.robust else args.iterations
    config = LoessConfig(span=args.span,
                         degree=args.degree,
                         iterations=iterations,
                         metric=args.metric)
    logger.info("loess on %d observations: %s", len(y), config)
    smoother = LoessSmoother.from_config(X if X.shape[1] > 1 else X[:, 0], config)
    smoother.smooth(y)
    if iterations:
        logger.info("robustness iterations used: %d", smoother.iterations_used_)

    frame = pd.DataFrame(X, columns=args.x)
    frame[args.y] = y
    frame['fitted'] = smoother.fitted_
    frame['residual'] = smoother.residuals_
    frame['robustness_weight'] = smoother.robustness_weights_
    _write(frame, args.output)


def run_knn(args):
    observations = load_observations(args.train, args.features, args.label)
    X, y = observations_to_arrays(observations)
    clf = KNNClassifier(k=args.k, metric=args.metric).fit(X, y)
    logger.info("k-NN with k=%d on %d observations, classes %s",
                args.k, len(y), list(clf.classes_))

    if args.query is None:
        query = pd.DataFrame(X, columns=args.features)
    else:
        query = pd.read_csv(args.query)
        missing = [c for c in args.features if c not in query.columns]
        if missing:
            raise InvalidInput(f"Query file lacks feature columns {missing}.")
        query = query[args.features]

    Q = query.to_numpy(dtype=float)
    frame = query.copy()
    frame['predicted'] = clf.predict(Q)
    proba = clf.predict_proba(Q)
    for j, label in enumerate(clf.classes_):
        frame[f'p_{label}'] = proba[:, j]
    if args.query is None:
        logger.info("training accuracy: %.3f", np.mean(frame['predicted'].to_numpy() == y))
    _write(frame, args.output)


def run_digits(args):
    split = load_digits_27(test_size=args.test_size, random_state=args.seed)
    features = ['x_1', 'x_2']
    logger.info("2-vs-7 digits: %d training and %d test images",
                len(split.train), len(split.test))
    table = accuracy_by_k(split.train[features].to_numpy(),
                          split.train['y'].to_numpy(),
                          split.test[features].to_numpy(),
                          split.test['y'].to_numpy(),
                          args.ks,
                          metric=args.metric)
    best = table.loc[table['test_accuracy'].idxmax()]
    logger.info("best k=%d with test accuracy %.3f", best['k'], best['test_accuracy'])
    _write(table, args.output)


def build_parser():
    parser = argparse.ArgumentParser(
        prog='neighbor-smooth',
        description="Local regression and k-nearest-neighbor estimates for tabular data.")
    parser.add_argument('--log-level', default=None,
                        help="Logging level (default from LOG_LEVEL, else INFO).")
    sub = parser.add_subparsers(dest='command', required=True)

    loess = sub.add_parser('loess', help="Smooth a response with local regression.")
    loess.add_argument('data', help="CSV file with the observations.")
    loess.add_argument('--x', nargs='+', required=True, help="Predictor column(s).")
    loess.add_argument('--y', required=True, help="Response column.")
    loess.add_argument('--span', type=float, default=settings.span)
    loess.add_argument('--degree', type=int, choices=[0, 1, 2], default=settings.degree)
    robust = loess.add_mutually_exclusive_group()
    robust.add_argument('--iterations', type=int, default=settings.iterations,
                        help="Robustness iterations (default 0).")
    robust.add_argument('--robust', action='store_true',
                        help="Use the standard number of robustness iterations.")
    loess.add_argument('--metric', default=settings.metric)
    loess.add_argument('--output', default=None)
    loess.set_defaults(func=run_loess)

    knn = sub.add_parser('knn', help="Classify points by their k nearest neighbors.")
    knn.add_argument('train', help="CSV file with the labeled training set.")
    knn.add_argument('--features', nargs='+', required=True)
    knn.add_argument('--label', required=True)
    knn.add_argument('--k', type=int, default=settings.k)
    knn.add_argument('--metric', default=settings.metric)
    knn.add_argument('--query', default=None,
                     help="CSV file with points to classify (default: the training set).")
    knn.add_argument('--output', default=None)
    knn.set_defaults(func=run_knn)

    digits = sub.add_parser('digits', help="Accuracy by k on the 2-vs-7 digits data.")
    digits.add_argument('--ks', type=int, nargs='+', default=list(range(1, 52, 2)))
    digits.add_argument('--metric', default=settings.metric)
    digits.add_argument('--test-size', type=float, default=0.5)
    digits.add_argument('--seed', type=int, default=settings.random_seed)
    digits.add_argument('--output', default=None)
    digits.set_defaults(func=run_digits)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    try:
        args.func(args)
    except (InvalidInput, InsufficientData, OSError,
            pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 2
    return 0


if __name__ == '__main__':
    sys.exit(main())
