import io

import numpy as np
import pytest
from sklearn.datasets import load_digits
from neighbor_smooth import InvalidInput, KNNClassifier
from neighbor_smooth.datasets import (Observation,
                                      observations_to_arrays,
                                      load_observations,
                                      digit_quadrant_features,
                                      load_digits_27)


def test_observation_record():
    obs = Observation((1, 2), 'a')
    assert obs.features == (1.0, 2.0)
    assert obs.dim == 2
    assert Observation(5, 1.0).features == (5.0,)

    for bad in [('a',), (), (np.nan, 1.0)]:
        with pytest.raises(InvalidInput):
            Observation(bad, 1.0)


def test_observations_to_arrays():
    X, y = observations_to_arrays([Observation((0, 1), 'A'), Observation((2, 3), 'B')])
    np.testing.assert_array_equal(X, [[0, 1], [2, 3]])
    np.testing.assert_array_equal(y, ['A', 'B'])

    with pytest.raises(InvalidInput):
        observations_to_arrays([Observation((0, 1), 'A'), Observation(2, 'B')])
    with pytest.raises(InvalidInput):
        observations_to_arrays([])


def test_load_observations():
    csv = io.StringIO("day,margin,pollster\n1,2.5,a\n2,3.0,b\n3,-1.0,a\n")
    observations = load_observations(csv, 'day', 'margin')
    assert len(observations) == 3
    assert observations[2] == Observation((3.0,), -1.0)

    csv = io.StringIO("x_1,x_2,y\n0.1,0.2,7\n0.3,0.4,2\n")
    X, y = observations_to_arrays(load_observations(csv, ['x_1', 'x_2'], 'y'))
    assert X.shape == (2, 2)
    np.testing.assert_array_equal(y, [7, 2])


@pytest.mark.parametrize("text", ["x,y\n1,2\nfoo,3\n",
                                  "x,y\n1,2\n,3\n",
                                  "x,y\n1,2\n2,\n",
                                  "a,y\n1,2\n"])
def test_load_observations_rejects_malformed(text):
    with pytest.raises(InvalidInput):
        load_observations(io.StringIO(text), 'x', 'y')


@pytest.mark.parametrize("text", ["", 'x,y\n1,2\n"3,4\n'])
def test_load_observations_rejects_unparsable(text):
    with pytest.raises(InvalidInput):
        load_observations(io.StringIO(text), 'x', 'y')


def test_quadrant_features():
    images = np.zeros((2, 8, 8))
    images[0, :4, :4] = 16
    images[1, 4:, 4:6] = 16
    features = digit_quadrant_features(images)
    np.testing.assert_allclose(features, [[1, 0], [0, 0.5]])
    with pytest.raises(InvalidInput):
        digit_quadrant_features(np.zeros((8, 8)))


def test_load_digits_27():
    split = load_digits_27(random_state=1)
    n_27 = np.isin(load_digits().target, [2, 7]).sum()

    assert len(split.train) + len(split.test) == n_27
    assert list(split.train.columns) == ['y', 'x_1', 'x_2']
    assert set(split.train['y']) == {'2', '7'}
    for frame in [split.train, split.test]:
        assert frame[['x_1', 'x_2']].to_numpy().min() >= 0
        assert frame[['x_1', 'x_2']].to_numpy().max() <= 1

    features = ['x_1', 'x_2']
    clf = KNNClassifier(k=5).fit(split.train[features], split.train['y'])
    # two coarse quadrant features separate 2s from 7s only partly
    majority = split.test['y'].value_counts(normalize=True).max()
    accuracy = clf.score(split.test[features], split.test['y'])
    assert accuracy > 0.6
    assert accuracy > majority + 0.05
