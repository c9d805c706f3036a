import os

import numpy as np
import pandas as pd
import pytest

from gpcv.script import cv, sim, summary, varcomp

pytestmark = pytest.mark.usefixtures("restore_root_logger")

FAST = ["-niter", "30", "-burnin", "10"]


@pytest.fixture
def simulated(tmp_path):
    sim.main(["-n", "60", "-m", "80", "-nqtl", "10", "-h2", "0.6", "-o", str(tmp_path), "-prefix", "demo"])
    return tmp_path, str(tmp_path / "demo.geno.tsv"), str(tmp_path / "demo.pheno.txt")


def test_sim_writes_inputs(simulated):
    out, geno, pheno = simulated
    g = pd.read_csv(geno, sep="\t", index_col=0)
    p = pd.read_csv(pheno, sep="\t")
    assert g.shape == (60, 80)
    assert set(np.unique(g.to_numpy())) <= {0, 1, 2}
    assert list(p.columns) == ["IID", "PHENO"]
    assert g.index.tolist() == p["IID"].tolist()
    assert os.path.isfile(out / "demo.sim.log")


def test_cv_then_summary(simulated):
    out, geno, pheno = simulated
    cv.main(["-g", geno, "-p", pheno, "-o", str(out), "-m", "3", "--GBLUP", "--BRR", *FAST])
    for model in ("GBLUP", "BRR"):
        frame = pd.read_csv(out / f"outCOR_{model}.tsv", sep="\t")
        assert frame["replicate"].tolist() == [1, 2, 3]
        assert frame["seed"].tolist() == [1000, 500500, 1000000]
        assert frame["cor"].between(-1, 1).all()
    assert os.path.isfile(out / "gpcv.cv.log")

    summary.main(["-d", str(out)])
    table = pd.read_csv(out / "summary.tsv", sep="\t", index_col=0)
    assert list(table.columns) == ["GBLUP", "BRR"]
    assert list(table.index) == ["mean", "sd"]


def test_cv_prefix_names_outputs(simulated):
    out, geno, pheno = simulated
    cv.main(["-g", geno, "-p", pheno, "-o", str(out), "-prefix", "demo", "-m", "2", "--GBLUP"])
    assert os.path.isfile(out / "demo.outCOR_GBLUP.tsv")
    assert os.path.isfile(out / "demo.cv.log")


def test_cv_without_model_exits(simulated):
    out, geno, pheno = simulated
    with pytest.raises(SystemExit):
        cv.main(["-g", geno, "-p", pheno, "-o", str(out)])


@pytest.mark.parametrize("bad", [["-tst", "1.5"], ["-m", "0"], ["-niter", "10", "-burnin", "20"]])
def test_cv_rejects_bad_settings(simulated, bad):
    out, geno, pheno = simulated
    with pytest.raises(SystemExit):
        cv.main(["-g", geno, "-p", pheno, "-o", str(out), "--GBLUP", *bad])
    assert not os.path.exists(out / "outCOR_GBLUP.tsv")


def test_cv_missing_genotype_exits(simulated):
    out, _, pheno = simulated
    with pytest.raises(SystemExit):
        cv.main(["-g", str(out / "none.tsv"), "-p", pheno, "-o", str(out), "--GBLUP"])


def test_summary_without_files_exits(tmp_path):
    with pytest.raises(SystemExit):
        summary.main(["-d", str(tmp_path)])


def test_varcomp_leaves_inapplicable_blank(simulated):
    out, geno, pheno = simulated
    varcomp.main(["-g", geno, "-p", pheno, "-o", str(out), "--GBLUP", "--LASSO", *FAST])
    table = pd.read_csv(out / "varcomp.tsv", sep="\t", index_col=0)
    assert list(table.index) == ["varU", "varE", "lambda", "dfb", "Sb", "probIn", "H2"]
    assert list(table.columns) == ["GBLUP", "LASSO"]
    assert np.isnan(table.loc["lambda", "GBLUP"])
    assert np.isnan(table.loc["varU", "LASSO"])
    assert table.loc["varE", "GBLUP"] > 0
    assert table.loc["lambda", "LASSO"] > 0


def test_varcomp_table_from_components():
    from gpcv.pyBLUP import VarianceComponents

    table = varcomp.varcomp_table({"BayesB": VarianceComponents(var_e=1.0, df_b=5.0, s_b=0.1, prob_in=0.4, h2=0.3)})
    assert np.isnan(table.loc["varU", "BayesB"])
    assert table.loc["dfb", "BayesB"] == pytest.approx(5.0)


def test_summary_skips_missing_family(tmp_path):
    from gpcv.cv import ResultTable, make_seeds

    models = ["GBLUP", "BRR", "LASSO", "BayesB"]
    table = ResultTable(models, make_seeds(3))
    for i, model in enumerate(models):
        for k in range(3):
            table.record(model, k, 0.2 + 0.1 * i + 0.01 * k)
    table.save(str(tmp_path))
    os.remove(tmp_path / "outCOR_LASSO.tsv")

    summary.main(["-d", str(tmp_path)])
    out = pd.read_csv(tmp_path / "summary.tsv", sep="\t", index_col=0)
    assert list(out.columns) == ["GBLUP", "BRR", "BayesB"]
    assert out.loc["mean", "BRR"] == pytest.approx(0.31)
    log = (tmp_path / "gpcv.summary.log").read_text()
    assert "Warning: Result file for LASSO not found" in log

    summary.main(["-d", str(tmp_path)])
    again = pd.read_csv(tmp_path / "summary.tsv", sep="\t", index_col=0)
    assert again.equals(out)
