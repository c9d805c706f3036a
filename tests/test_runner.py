import numpy as np
import pytest

from gpcv.cv import (
    CVConfig,
    ConfigError,
    DegeneratePartitionError,
    ReplicateError,
    generate_partitions,
    new_table,
    run_cv,
    run_replicate,
)
from gpcv.cv import runner
from gpcv.pyBLUP import KernelModel, model_spec

FAST = dict(n_iter=40, burnin=10, thin=1)


@pytest.mark.parametrize("kwargs", [
    dict(n_rep=0),
    dict(n_rep=2.5),
    dict(perc_tst=0.0),
    dict(perc_tst=1.0),
    dict(n_iter=0),
    dict(n_iter=100, burnin=100),
    dict(burnin=-1),
    dict(thin=0),
    dict(root_seed=-5),
])
def test_config_rejects_bad_values(kwargs):
    with pytest.raises(ConfigError):
        CVConfig(**kwargs).validate()


def test_config_error_is_a_value_error():
    assert issubclass(ConfigError, ValueError)


def test_gblup_cv_fills_table(small_data):
    _, M, y = small_data
    config = CVConfig(n_rep=4, perc_tst=0.3)
    table = new_table(["GBLUP"], config)
    seen = []
    cors = run_cv(y, model_spec("GBLUP", M), config, table=table, callback=lambda k, r: seen.append(k))
    assert cors.shape == (4,)
    assert np.all(np.isfinite(cors))
    assert np.all(np.abs(cors) <= 1)
    assert sorted(seen) == [0, 1, 2, 3]
    assert table.is_complete("GBLUP")
    assert np.array_equal(table.values("GBLUP"), cors)


def test_gblup_cv_is_reproducible(small_data):
    _, M, y = small_data
    spec = model_spec("GBLUP", M)
    config = CVConfig(n_rep=3)
    assert np.array_equal(run_cv(y, spec, config), run_cv(y, spec, config))


def test_parallel_matches_sequential(small_data):
    _, M, y = small_data
    spec = model_spec("GBLUP", M)
    config = CVConfig(n_rep=4)
    assert np.allclose(run_cv(y, spec, config, n_jobs=2), run_cv(y, spec, config))


def test_bayesian_cv_is_reproducible(small_data):
    _, M, y = small_data
    spec = model_spec("BRR", M)
    config = CVConfig(n_rep=2, **FAST)
    first = run_cv(y, spec, config)
    assert np.array_equal(first, run_cv(y, spec, config))
    assert np.all(np.isfinite(first))


def test_root_seed_changes_bayesian_draws_only(small_data):
    _, M, y = small_data
    spec = model_spec("LASSO", M)
    a = run_cv(y, spec, CVConfig(root_seed=1, n_rep=2, **FAST))
    b = run_cv(y, spec, CVConfig(root_seed=2, n_rep=2, **FAST))
    assert not np.array_equal(a, b)
    gspec = model_spec("GBLUP", M)
    assert np.array_equal(
        run_cv(y, gspec, CVConfig(root_seed=1, n_rep=2)),
        run_cv(y, gspec, CVConfig(root_seed=2, n_rep=2)),
    )


def test_engine_failure_names_the_replicate(small_data):
    _, M, y = small_data
    bad = KernelModel(np.eye(y.size - 1))
    with pytest.raises(ReplicateError) as info:
        run_cv(y, bad, CVConfig(n_rep=3))
    assert info.value.replicate == 1
    assert info.value.model == "GBLUP"
    assert isinstance(info.value.__cause__, ValueError)


def test_engine_failure_keeps_its_cause_across_workers(small_data):
    _, M, y = small_data
    bad = KernelModel(np.eye(y.size - 1))
    with pytest.raises(ReplicateError) as info:
        run_cv(y, bad, CVConfig(n_rep=3), n_jobs=2)
    assert info.value.replicate == 1
    assert info.value.model == "GBLUP"
    assert isinstance(info.value.__cause__, ValueError)
    assert "K must be (n, n)" in str(info.value.__cause__)


def test_single_testing_individual_is_degenerate(small_data):
    _, M, y = small_data
    y10, M10 = y[:10], M[:10]
    with pytest.raises(DegeneratePartitionError):
        run_cv(y10, model_spec("GBLUP", M10), CVConfig(n_rep=2, perc_tst=0.1))


def test_run_replicate_returns_index_and_correlation(small_data):
    _, M, y = small_data
    config = CVConfig(n_rep=1)
    rep = next(generate_partitions(config.root_seed, 1, y.size, config.perc_tst))
    k, cor = run_replicate(rep, y, model_spec("GBLUP", M), config)
    assert k == 0
    assert -1 <= cor <= 1


@pytest.mark.parametrize("family, extra", [("GBLUP", {}), ("BayesB", FAST)])
def test_held_out_phenotypes_do_not_reach_the_engine(monkeypatch, small_data, family, extra):
    _, M, y = small_data
    config = CVConfig(n_rep=1, **extra)
    rep = next(generate_partitions(config.root_seed, 1, y.size, config.perc_tst))
    spec = model_spec(family, M)
    shifted = y.copy()
    shifted[rep.partition.test] += 1000.0

    seen = []
    monkeypatch.setattr(runner, "pearson_accuracy", lambda yhat, y_true, test: seen.append(yhat) or 0.0)
    run_replicate(rep, y, spec, config)
    run_replicate(rep, shifted, spec, config)
    assert np.allclose(seen[0], seen[1])

    monkeypatch.undo()
    _, r_plain = run_replicate(rep, y, spec, config)
    _, r_shifted = run_replicate(rep, shifted, spec, config)
    assert r_plain == pytest.approx(r_shifted)


def test_phenotypes_must_be_complete(small_data):
    _, M, y = small_data
    y = y.copy()
    y[0] = np.nan
    with pytest.raises(ValueError):
        run_cv(y, model_spec("GBLUP", M), CVConfig(n_rep=1))
