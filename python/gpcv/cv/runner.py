"""
Repeated random training/testing partitions for one model family.

For every replicate the testing phenotypes are replaced by NaN, the model is
fitted on the rest and the correlation between predictions and the held-out
phenotypes is recorded at the replicate's own index.
"""

import logging
from typing import Callable, NamedTuple, Optional

import numpy as np
from joblib import Parallel, delayed

from gpcv.cv.accuracy import pearson_accuracy
from gpcv.cv.errors import ConfigError, ReplicateError
from gpcv.cv.partition import Replicate, generate_partitions, make_seeds
from gpcv.cv.results import ResultTable
from gpcv.pyBLUP.evaluator import ModelSpec, SamplerControls, fit

logger = logging.getLogger(__name__)


class CVConfig(NamedTuple):
    root_seed: int = 123
    n_rep: int = 10
    perc_tst: float = 0.3
    n_iter: int = 1500
    burnin: int = 500
    thin: int = 1

    def validate(self) -> None:
        """Reject unusable settings before any partition is drawn."""
        if int(self.n_rep) != self.n_rep or int(self.n_rep) <= 0:
            raise ConfigError(f"Replicate count must be a positive integer, got {self.n_rep}.")
        if not (0.0 < float(self.perc_tst) < 1.0):
            raise ConfigError(f"Testing fraction must be in (0, 1), got {self.perc_tst}.")
        if int(self.n_iter) <= 0:
            raise ConfigError(f"Iteration count must be positive, got {self.n_iter}.")
        if int(self.burnin) < 0:
            raise ConfigError(f"Burn-in must be >= 0, got {self.burnin}.")
        if int(self.burnin) >= int(self.n_iter):
            raise ConfigError(
                f"Burn-in ({self.burnin}) must be smaller than the iteration count ({self.n_iter})."
            )
        if int(self.thin) < 1:
            raise ConfigError(f"Thinning must be >= 1, got {self.thin}.")
        if int(self.root_seed) < 0:
            raise ConfigError(f"Root seed must be >= 0, got {self.root_seed}.")

    def controls(self, seed=None) -> SamplerControls:
        return SamplerControls(n_iter=int(self.n_iter), burnin=int(self.burnin), thin=int(self.thin), seed=seed)


def run_replicate(
    rep: Replicate,
    y: np.ndarray,
    spec: ModelSpec,
    config: CVConfig,
) -> tuple[int, float]:
    """
    Fit one replicate and return ``(k, correlation)``.

    Engine failures are re-raised as ReplicateError; a degenerate testing set
    raises DegeneratePartitionError from the correlation.
    """
    y = np.asarray(y, dtype=np.float64).reshape(-1)
    masked = y.copy()
    masked[rep.partition.test] = np.nan
    model = spec.family.value
    try:
        yhat, _vc = fit(masked, spec, config.controls(seed=rep.sampler_seed))
    except Exception as e:
        raise ReplicateError(rep.k + 1, model, f"{type(e).__name__}: {e}") from e
    return rep.k, pearson_accuracy(yhat, y, rep.partition.test)


def _replicate_outcome(
    rep: Replicate,
    y: np.ndarray,
    spec: ModelSpec,
    config: CVConfig,
) -> tuple[int, float, Optional[ReplicateError]]:
    """``(k, cor, None)``, or ``(k, nan, error)`` when the engine failed."""
    try:
        k, cor = run_replicate(rep, y, spec, config)
    except ReplicateError as e:
        return rep.k, float("nan"), e
    return k, cor, None


def run_cv(
    y: np.ndarray,
    spec: ModelSpec,
    config: CVConfig,
    n_jobs: int = 1,
    table: Optional[ResultTable] = None,
    callback: Optional[Callable[[int, float], None]] = None,
) -> np.ndarray:
    """
    Run all replicates of one model family.

    Parameters
    ----------
    y : np.ndarray, shape (n,)
        Complete phenotype vector.
    spec : KernelModel or MarkerModel
        Model family and its kernel or design matrix.
    config : CVConfig
        Seeds, replicate count, testing fraction and sampler settings.
    n_jobs : int
        Parallel workers (joblib); 1 runs sequentially.
    table : ResultTable, optional
        If given, each correlation is recorded under ``spec.family.value``.
    callback : callable, optional
        Called as ``callback(k, cor)`` after each replicate.

    Returns
    -------
    np.ndarray, shape (n_rep,)
        Correlations in replicate order.
    """
    config.validate()
    y = np.asarray(y, dtype=np.float64).reshape(-1)
    if np.any(~np.isfinite(y)):
        raise ValueError("Phenotype vector contains NaN or Inf.")
    n = y.shape[0]
    model = spec.family.value
    out = np.full(int(config.n_rep), np.nan)
    reps = generate_partitions(int(config.root_seed), int(config.n_rep), n, float(config.perc_tst))

    if n_jobs == 1:
        results = (_replicate_outcome(rep, y, spec, config) for rep in reps)
    else:
        results = Parallel(n_jobs=n_jobs, return_as="generator")(
            delayed(_replicate_outcome)(rep, y, spec, config) for rep in reps
        )
    for k, cor, err in results:
        if err is not None:
            raise err
        out[k] = cor
        if table is not None:
            table.record(model, k, cor)
        logger.debug(f"{model} replicate {k + 1}: r = {cor:.4f}")
        if callback is not None:
            callback(k, cor)
    return out


def new_table(models, config: CVConfig) -> ResultTable:
    """Empty result table sized and seeded for ``config``."""
    return ResultTable(models, make_seeds(int(config.n_rep)))
