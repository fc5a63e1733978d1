import numpy as np
from neighbor_smooth.kernels import (tricube_weights,
                                     bisquare_weights,
                                     box_weights,
                                     normal_weights)


def test_tricube_shape():
    d = np.linspace(0, 2, 41)
    w = tricube_weights(d)
    assert w[0] == 1
    assert w[-1] == 0
    assert np.all(np.diff(w) <= 0)
    assert np.all((w >= 0) & (w <= 1))
    np.testing.assert_allclose(tricube_weights([0, 0.5, 1.0]), [1, (1 - 0.125)**3, 0])


def test_tricube_degenerate():
    np.testing.assert_array_equal(tricube_weights([0.0, 0.0, 0.0]), [1, 1, 1])
    np.testing.assert_array_equal(tricube_weights([2.0, 2.0]), [1, 1])
    np.testing.assert_array_equal(tricube_weights([0.3, 0.5], maxdist=0), [1, 1])


def test_tricube_explicit_radius():
    w = tricube_weights([0.5, 1.0, 3.0], maxdist=2.0)
    np.testing.assert_allclose(w, [(1 - 0.5**3 / 8)**3, (1 - 1 / 8)**3, 0])


def test_bisquare():
    r = np.array([0.0, 1.0, -1.0, 2.0, 100.0])
    s = np.median(np.abs(r))
    w = bisquare_weights(r)
    np.testing.assert_allclose(w[:4], (1 - (np.abs(r[:4]) / (6 * s))**2)**2)
    assert w[-1] == 0
    np.testing.assert_array_equal(bisquare_weights(np.zeros(4)), np.ones(4))


def test_box_and_normal():
    np.testing.assert_array_equal(box_weights([-0.6, -0.5, 0, 0.5, 0.6], 1.0), [0, 1, 1, 1, 0])
    w = normal_weights(np.linspace(-1, 1, 21), 1.0)
    np.testing.assert_allclose(w, w[::-1])
    assert np.argmax(w) == 10
