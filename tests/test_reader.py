import numpy as np
import pandas as pd
import pytest

from gpcv.gtools import genoreader, load_dataset, phenoreader


@pytest.fixture
def geno_tsv(tmp_path):
    path = tmp_path / "g.tsv"
    path.write_text(
        "sample\tm1\tm2\tm3\n"
        "a\t0\t2\t1\n"
        "b\t1\tNA\t1\n"
        "c\t2\t0\t1\n"
        "d\t0\t1\t1\n"
    )
    return path


@pytest.fixture
def pheno_txt(tmp_path):
    path = tmp_path / "p.txt"
    path.write_text(
        "IID\tyield\theight\n"
        "d\t4.0\t40\n"
        "a\t1.0\t10\n"
        "a\t3.0\t30\n"
        "c\tNA\t30\n"
        "x\t9.0\t90\n"
        "b\t2.0\t20\n"
    )
    return path


def test_genoreader_imputes_marker_mean(geno_tsv):
    ids, M, markers = genoreader(geno_tsv)
    assert ids.tolist() == ["a", "b", "c", "d"]
    assert markers.tolist() == ["m1", "m2", "m3"]
    assert M[1, 1] == pytest.approx(1.0)
    assert not np.isnan(M).any()


def test_genoreader_npy_needs_ids(tmp_path):
    path = tmp_path / "g.npy"
    np.save(path, np.array([[0, 1], [2, 1]], dtype=float))
    with pytest.raises(FileNotFoundError):
        genoreader(path)
    (tmp_path / "g.npy.id").write_text("s1\ns2\n")
    ids, M, markers = genoreader(path)
    assert ids.tolist() == ["s1", "s2"]
    assert M.shape == (2, 2)
    assert markers.tolist() == ["m1", "m2"]


def test_genoreader_rejects_duplicated_ids(tmp_path):
    path = tmp_path / "g.tsv"
    path.write_text("sample\tm1\na\t0\na\t1\n")
    with pytest.raises(ValueError):
        genoreader(path)


def test_phenoreader_averages_duplicates(pheno_txt):
    table = phenoreader(pheno_txt)
    assert isinstance(table, pd.DataFrame)
    assert table.loc["a", "yield"] == pytest.approx(2.0)
    assert list(table.columns) == ["yield", "height"]


def test_load_dataset_aligns_by_genotype_order(geno_tsv, pheno_txt):
    data = load_dataset(geno_tsv, pheno_txt)
    assert data.trait == "yield"
    assert data.ids.tolist() == ["a", "b", "d"]
    assert data.y.tolist() == [2.0, 2.0, 4.0]
    assert data.n == 3 and data.p == 3
    assert np.array_equal(data.M[2], [0.0, 1.0, 1.0])


def test_load_dataset_by_name_and_index(geno_tsv, pheno_txt):
    by_name = load_dataset(geno_tsv, pheno_txt, trait="height")
    by_index = load_dataset(geno_tsv, pheno_txt, trait=1)
    assert by_name.trait == by_index.trait == "height"
    assert by_name.ids.tolist() == ["a", "b", "c", "d"]
    assert np.array_equal(by_name.y, by_index.y)


def test_load_dataset_unknown_trait(geno_tsv, pheno_txt):
    with pytest.raises(KeyError):
        load_dataset(geno_tsv, pheno_txt, trait="protein")
    with pytest.raises(IndexError):
        load_dataset(geno_tsv, pheno_txt, trait=5)
