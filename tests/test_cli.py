import numpy as np
import pandas as pd
import pytest
from neighbor_smooth.cli import main


@pytest.fixture
def poll_csv(tmp_path):
    rng = np.random.default_rng(0)
    day = np.arange(-60.0, 0.0)
    margin = 3 + 0.05 * day + rng.normal(0, 1, day.shape[0])
    path = tmp_path / "polls.csv"
    pd.DataFrame({'day': day, 'margin': margin}).to_csv(path, index=False)
    return path


@pytest.fixture
def labeled_csv(tmp_path):
    path = tmp_path / "train.csv"
    pd.DataFrame({'x_1': [0.0, 1.0, 0.0, 5.0],
                  'x_2': [0.0, 0.0, 1.0, 5.0],
                  'label': ['A', 'A', 'B', 'B']}).to_csv(path, index=False)
    return path


def test_loess_command(poll_csv, tmp_path):
    out = tmp_path / "fit.csv"
    status = main(['loess', str(poll_csv), '--x', 'day', '--y', 'margin',
                   '--span', '0.5', '--degree', '1', '--robust', '--output', str(out)])
    assert status == 0

    fit = pd.read_csv(out)
    assert list(fit.columns) == ['day', 'margin', 'fitted', 'residual', 'robustness_weight']
    assert len(fit) == 60
    np.testing.assert_allclose(fit['margin'] - fit['fitted'], fit['residual'], atol=1e-12)


def test_loess_command_to_stdout(poll_csv, capsys):
    assert main(['loess', str(poll_csv), '--x', 'day', '--y', 'margin', '--degree', '0']) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0] == 'day,margin,fitted,residual,robustness_weight'
    assert len(lines) == 61


def test_loess_command_errors(poll_csv, tmp_path):
    assert main(['loess', str(poll_csv), '--x', 'day', '--y', 'margin', '--span', '2']) == 2
    assert main(['loess', str(poll_csv), '--x', 'nope', '--y', 'margin']) == 2
    assert main(['loess', str(tmp_path / "missing.csv"), '--x', 'day', '--y', 'margin']) == 2


def test_unparsable_csv(labeled_csv, tmp_path):
    empty = tmp_path / "empty.csv"
    empty.write_text("")
    assert main(['loess', str(empty), '--x', 'day', '--y', 'margin']) == 2

    broken = tmp_path / "broken.csv"
    broken.write_text('x_1,x_2\n0.1,0.2\n"0.3,0.4\n')
    assert main(['knn', str(labeled_csv), '--features', 'x_1', 'x_2', '--label', 'label',
                 '--k', '3', '--query', str(broken)]) == 2


def test_knn_command(labeled_csv, tmp_path):
    query = tmp_path / "query.csv"
    pd.DataFrame({'x_1': [0.1, 4.0], 'x_2': [0.1, 4.0]}).to_csv(query, index=False)
    out = tmp_path / "pred.csv"

    status = main(['knn', str(labeled_csv), '--features', 'x_1', 'x_2', '--label', 'label',
                   '--k', '3', '--query', str(query), '--output', str(out)])
    assert status == 0

    pred = pd.read_csv(out)
    assert list(pred['predicted']) == ['A', 'B']
    np.testing.assert_allclose(pred['p_A'], [2 / 3, 1 / 3])
    np.testing.assert_allclose(pred['p_A'] + pred['p_B'], 1)


def test_knn_command_too_many_neighbors(labeled_csv):
    assert main(['knn', str(labeled_csv), '--features', 'x_1', 'x_2', '--label', 'label',
                 '--k', '10']) == 2


def test_digits_command(tmp_path):
    out = tmp_path / "accuracy.csv"
    assert main(['digits', '--ks', '1', '9', '--output', str(out)]) == 0
    table = pd.read_csv(out)
    assert list(table['k']) == [1, 9]
    assert table.loc[0, 'train_accuracy'] <= 1
