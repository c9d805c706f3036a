"""
Per-model replicate correlations and their files.

Each model family is stored as ``outCOR_<model>.tsv`` with the columns
``replicate``, ``seed`` and ``cor``, one row per replicate.
"""

import logging
import os
from collections import OrderedDict
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

RESULT_PREFIX = "outCOR_"
RESULT_EXT = ".tsv"


def result_path(out_dir: str, model: str, prefix: str = "") -> str:
    name = f"{prefix}.{RESULT_PREFIX}{model}{RESULT_EXT}" if prefix else f"{RESULT_PREFIX}{model}{RESULT_EXT}"
    return os.path.join(out_dir, name).replace("\\", "/")


class ResultTable:
    """
    Replicate correlations of several model families.

    Slot k of every model belongs to replicate k and is written once, so
    replicates may finish in any order.
    """

    def __init__(self, models: Iterable[str], seeds: Sequence[int]) -> None:
        self.seeds = np.asarray(seeds, dtype=np.int64)
        self.m = int(self.seeds.size)
        self._cor: "OrderedDict[str, np.ndarray]" = OrderedDict(
            (str(model), np.full(self.m, np.nan)) for model in models
        )

    @property
    def models(self) -> list[str]:
        return list(self._cor.keys())

    def record(self, model: str, k: int, value: float) -> None:
        if model not in self._cor:
            raise KeyError(f"Unknown model: {model}")
        if not (0 <= k < self.m):
            raise IndexError(f"Replicate index {k} out of range [0, {self.m}).")
        if not np.isnan(self._cor[model][k]):
            raise ValueError(f"Replicate {k} of {model} is already recorded.")
        self._cor[model][k] = float(value)

    def values(self, model: str) -> np.ndarray:
        return self._cor[model].copy()

    def is_complete(self, model: str) -> bool:
        return bool(np.all(~np.isnan(self._cor[model])))

    def to_frame(self, model: str) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "replicate": np.arange(1, self.m + 1),
                "seed": self.seeds,
                "cor": self._cor[model],
            }
        )

    def save(self, out_dir: str, prefix: str = "", models: Optional[Iterable[str]] = None) -> list[str]:
        """Write one file per complete model; incomplete models raise ValueError."""
        os.makedirs(out_dir, 0o755, exist_ok=True)
        paths = []
        for model in (self.models if models is None else list(models)):
            if not self.is_complete(model):
                raise ValueError(f"Results of {model} are incomplete; nothing written.")
            path = result_path(out_dir, model, prefix)
            self.to_frame(model).to_csv(path, sep="\t", index=False, float_format="%.6f")
            paths.append(path)
        return paths


def read_result(path: str) -> np.ndarray:
    table = pd.read_csv(path, sep="\t")
    if "cor" not in table.columns:
        raise ValueError(f"{path} has no 'cor' column.")
    if "replicate" in table.columns:
        table = table.sort_values("replicate")
    return table["cor"].to_numpy(dtype=np.float64)


def load_results(out_dir: str, models: Iterable[str], prefix: str = "") -> "OrderedDict[str, np.ndarray]":
    """
    Read the result file of each model that exists, in the given order.

    A missing file is logged as a warning and skipped so partial runs can still
    be summarized.
    """
    found: "OrderedDict[str, np.ndarray]" = OrderedDict()
    for model in models:
        path = result_path(out_dir, str(model), prefix)
        if not os.path.isfile(path):
            logger.warning(f"Result file for {model} not found, skipped: {path}")
            continue
        found[str(model)] = read_result(path)
    return found
