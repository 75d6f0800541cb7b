"""Test the optimization curve
"""
import numpy as np
import pytest

from conftest import make_datum
from snprecal.recal.vqsr.optimization_curve import (
    OptimizationCurveGenerator, TiTvRatio, WriteCurveData, CURVE_HEADER)


def scored(quals, known=None, ti=None):
    data = []
    for i, q in enumerate(quals):
        d = make_datum({'QD': 1.0},
                       isKnown=known[i] if known else False,
                       isTransition=ti[i] if ti else False,
                       variantOrder='chr1:%d' % (i + 1))
        d.qual = q
        data.append(d)

    return data


def random_scored(n=200, seed=2):
    rng = np.random.RandomState(seed)
    return scored(list(np.round(rng.uniform(0, 500, n), 1)),
                  known=list(rng.rand(n) < 0.5),
                  ti=list(rng.rand(n) < 0.67))


def test_titv_ratio():
    assert TiTvRatio(4, 2) == 2.0
    assert TiTvRatio(3, 0) == 0.0
    assert TiTvRatio(0, 0) == 0.0


def test_rows():
    data = scored([30.0, 10.0, 20.0, 20.0],
                  known=[True, False, True, False],
                  ti=[True, True, False, True])

    rows = OptimizationCurveGenerator(data).Generate()
    assert [r[0] for r in rows] == [30.0, 20.0, 10.0]
    assert [r[1] for r in rows] == [1, 3, 4]

    threshold, count, knownFraction, tiTv, numKnown, numNovel, knownTiTv, novelTiTv = rows[1]
    assert knownFraction == pytest.approx(2.0 / 3)
    assert tiTv == 2.0
    assert (numKnown, numNovel) == (2, 1)
    assert knownTiTv == 1.0
    assert novelTiTv == 0.0


def test_curve_is_monotone():
    rows = OptimizationCurveGenerator(random_scored()).Generate()

    thresholds = [r[0] for r in rows]
    assert thresholds == sorted(thresholds, reverse=True)
    for a, b in zip(rows, rows[1:]):
        assert b[1] >= a[1]
        assert b[4] >= a[4] and b[5] >= a[5]
        assert b[4] + b[5] == b[1]


def test_desired_number_equal_to_population():
    data = random_scored()
    rows = OptimizationCurveGenerator(data).Generate(len(data))

    assert len(rows) == 1
    assert rows[0][1] == len(data)
    assert rows[0][0] <= min(d.qual for d in data)


def test_select_row_prefers_the_larger_count_on_a_tie():
    data = scored([40.0, 30.0, 20.0, 10.0])
    generator = OptimizationCurveGenerator(data)
    rows = generator.GenerateCurve()

    assert generator.SelectRow(rows, 2)[1] == 2
    assert generator.SelectRow(rows, 100)[1] == 4

    rows = [r for r in rows if r[1] != 2]
    assert generator.SelectRow(rows, 2)[1] == 3


def test_quality_step():
    data = scored([100.0, 75.0, 40.0, 12.5])
    rows = OptimizationCurveGenerator(data, qualStep=25.0).Generate()

    assert [r[0] for r in rows] == [100.0, 75.0, 50.0, 25.0, 12.5]
    assert [r[1] for r in rows] == [1, 2, 2, 3, 4]


def test_invalid_data():
    with pytest.raises(ValueError):
        OptimizationCurveGenerator([])

    with pytest.raises(ValueError):
        OptimizationCurveGenerator([make_datum({'QD': 1.0})])


def test_write_curve_data(tmp_path):
    rows = OptimizationCurveGenerator(random_scored(20)).Generate()
    fileName = WriteCurveData(rows, str(tmp_path / 'curve.dat'))

    with open(fileName) as I:
        lines = I.read().splitlines()

    assert lines[0] == ','.join(CURVE_HEADER)
    assert len(lines) == len(rows) + 1
    assert len(lines[1].split(',')) == len(CURVE_HEADER)
