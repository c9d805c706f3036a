"""
Genotype and phenotype readers used across gpcv.

Genotype input
--------------
  - Tab-delimited text (``.tsv``/``.txt``, optionally ``.gz``): first column
    sample IDs, one column per marker coded 0/1/2. Missing calls (NA) are
    imputed with the marker mean.
  - ``.npy``: (n, p) float matrix with sample IDs in ``<file>.id``, one per line.

Phenotype input
---------------
  - Tab-delimited text, first column sample IDs, remaining columns traits.
  - Duplicated IDs are averaged.
"""

from pathlib import Path
from typing import NamedTuple, Optional, Union
import logging

import numpy as np
import pandas as pd

pathlike = Union[str, Path]
logger = logging.getLogger(__name__)
__all__ = [
    "Dataset",
    "genoreader",
    "phenoreader",
    "load_dataset",
]


class Dataset(NamedTuple):
    """Aligned individuals: ``M[i]`` and ``y[i]`` belong to ``ids[i]``."""
    ids: np.ndarray
    M: np.ndarray
    y: np.ndarray
    trait: str
    markers: np.ndarray

    @property
    def n(self) -> int:
        return int(self.M.shape[0])

    @property
    def p(self) -> int:
        return int(self.M.shape[1])


def _impute_mean(M: np.ndarray) -> np.ndarray:
    """Replace NaN calls by the marker mean; all-missing markers become 0."""
    miss = np.isnan(M)
    if not miss.any():
        return M
    mean = np.nanmean(np.where(miss.all(axis=0, keepdims=True), 0.0, M), axis=0)
    M = M.copy()
    rows, cols = np.nonzero(miss)
    M[rows, cols] = mean[cols]
    return M


def genoreader(path: pathlike) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Read a genotype matrix.

    Returns
    -------
    ids : np.ndarray of str, shape (n,)
    M : np.ndarray of float64, shape (n, p)
    markers : np.ndarray of str, shape (p,)
    """
    path = Path(path).expanduser()
    if path.suffix == ".npy":
        M = np.load(path).astype(np.float64, copy=False)
        id_path = Path(f"{path}.id")
        if not id_path.is_file():
            raise FileNotFoundError(f"Sample ID file not found: {id_path}")
        ids = np.loadtxt(id_path, dtype=str, ndmin=1)
        markers = np.array([f"m{j + 1}" for j in range(M.shape[1])], dtype=str)
    else:
        table = pd.read_csv(path, sep="\t", index_col=0)
        ids = table.index.astype(str).to_numpy()
        markers = table.columns.astype(str).to_numpy()
        M = table.to_numpy(dtype=np.float64)
    if M.ndim != 2:
        raise ValueError(f"Genotype matrix must be 2D, got shape {M.shape}.")
    if ids.shape[0] != M.shape[0]:
        raise ValueError(f"{ids.shape[0]} sample IDs for {M.shape[0]} genotype rows in {path}.")
    if len(set(ids)) != len(ids):
        raise ValueError(f"Duplicated sample IDs in {path}.")
    return ids, _impute_mean(M), markers


def phenoreader(path: pathlike) -> pd.DataFrame:
    """Read a phenotype table indexed by sample ID; duplicated IDs are averaged."""
    pheno = pd.read_csv(Path(path).expanduser(), sep="\t")
    if pheno.shape[1] < 2:
        raise ValueError(
            "No phenotype data found. Please check the phenotype file format.\n"
            f"{pheno.head()}"
        )
    pheno = pheno.groupby(pheno.columns[0]).mean(numeric_only=True)
    pheno.index = pheno.index.astype(str)
    return pheno


def load_dataset(
    geno: pathlike,
    pheno: pathlike,
    trait: Optional[Union[int, str]] = None,
) -> Dataset:
    """
    Load genotypes and one phenotype column and align them by sample ID.

    Parameters
    ----------
    geno, pheno : path
        Genotype and phenotype files.
    trait : int, str or None
        Zero-based column index or name of the trait; the first trait if None.

    Individuals without genotype or with a missing phenotype are dropped.
    """
    ids, M, markers = genoreader(geno)
    table = phenoreader(pheno)
    if trait is None:
        trait = 0
    if isinstance(trait, (int, np.integer)):
        if not (0 <= int(trait) < table.shape[1]):
            raise IndexError(f"Phenotype column index {trait} out of range [0, {table.shape[1]}).")
        name = str(table.columns[int(trait)])
    else:
        name = str(trait)
        if name not in table.columns:
            raise KeyError(f"Trait {name} not found in phenotype columns: {', '.join(map(str, table.columns))}")
    p = table[name].dropna()
    keep = np.isin(ids, p.index)
    if keep.sum() < len(ids):
        logger.info(f"{len(ids) - int(keep.sum())} genotyped individuals without phenotype for {name} dropped.")
    y = p.loc[ids[keep]].to_numpy(dtype=np.float64)
    return Dataset(ids=ids[keep], M=M[keep], y=y, trait=name, markers=markers)
