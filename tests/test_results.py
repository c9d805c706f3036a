import logging
import os

import numpy as np
import pandas as pd
import pytest

from gpcv.cv.partition import make_seeds
from gpcv.cv.results import ResultTable, load_results, read_result, result_path

MODELS = ["GBLUP", "BRR", "LASSO", "BayesB"]


def _filled(models, m=3):
    table = ResultTable(models, make_seeds(m))
    for i, model in enumerate(models):
        for k in range(m):
            table.record(model, k, 0.1 * (i + 1) + 0.01 * k)
    return table


def test_result_path_naming(tmp_path):
    assert result_path(str(tmp_path), "BRR").endswith("/outCOR_BRR.tsv")
    assert result_path(str(tmp_path), "BRR", prefix="wheat").endswith("/wheat.outCOR_BRR.tsv")


def test_records_land_at_their_index():
    table = ResultTable(["GBLUP"], make_seeds(3))
    table.record("GBLUP", 2, 0.3)
    table.record("GBLUP", 0, 0.1)
    assert not table.is_complete("GBLUP")
    table.record("GBLUP", 1, 0.2)
    assert table.is_complete("GBLUP")
    assert np.allclose(table.values("GBLUP"), [0.1, 0.2, 0.3])


def test_record_rejects_bad_writes():
    table = ResultTable(["GBLUP"], make_seeds(2))
    table.record("GBLUP", 0, 0.5)
    with pytest.raises(ValueError):
        table.record("GBLUP", 0, 0.6)
    with pytest.raises(IndexError):
        table.record("GBLUP", 2, 0.6)
    with pytest.raises(KeyError):
        table.record("BRR", 0, 0.6)


def test_save_writes_replicate_seed_cor(tmp_path):
    table = _filled(["GBLUP"], m=3)
    (path,) = table.save(str(tmp_path))
    frame = pd.read_csv(path, sep="\t")
    assert list(frame.columns) == ["replicate", "seed", "cor"]
    assert frame["replicate"].tolist() == [1, 2, 3]
    assert frame["seed"].tolist() == [1000, 500500, 1000000]
    assert np.allclose(read_result(path), [0.1, 0.11, 0.12])


def test_incomplete_model_is_not_saved(tmp_path):
    table = ResultTable(["GBLUP"], make_seeds(2))
    table.record("GBLUP", 0, 0.5)
    with pytest.raises(ValueError):
        table.save(str(tmp_path))
    assert not os.path.exists(result_path(str(tmp_path), "GBLUP"))


def test_save_and_load_all_models(tmp_path):
    table = _filled(MODELS)
    table.save(str(tmp_path), prefix="run")
    loaded = load_results(str(tmp_path), MODELS, prefix="run")
    assert list(loaded) == MODELS
    for model in MODELS:
        assert np.allclose(loaded[model], table.values(model), atol=1e-6)


def test_missing_family_is_skipped_with_warning(tmp_path, caplog):
    _filled(["GBLUP", "BRR", "BayesB"]).save(str(tmp_path))
    with caplog.at_level(logging.WARNING, logger="gpcv.cv.results"):
        loaded = load_results(str(tmp_path), MODELS)
    assert list(loaded) == ["GBLUP", "BRR", "BayesB"]
    assert any("LASSO" in rec.getMessage() for rec in caplog.records)


def test_loading_twice_gives_same_values(tmp_path):
    _filled(MODELS).save(str(tmp_path))
    first = load_results(str(tmp_path), MODELS)
    second = load_results(str(tmp_path), MODELS)
    for model in MODELS:
        assert np.array_equal(first[model], second[model])
