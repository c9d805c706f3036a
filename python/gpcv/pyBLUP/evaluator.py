"""
Single entry point to the prediction engines.

``fit`` takes a phenotype vector with NaN at the held-out individuals, a
model specification and sampler controls, and returns predictions for every
individual together with the variance components of the fitted model.
"""

from __future__ import annotations

import enum
from typing import NamedTuple, Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from gpcv.pyBLUP.bayes import BAYES
from gpcv.pyBLUP.gblup import GBLUP
from gpcv.pyBLUP.lmm import GRM


class ModelFamily(enum.Enum):
    GBLUP = "GBLUP"
    BRR = "BRR"
    LASSO = "LASSO"
    BayesB = "BayesB"

    @classmethod
    def parse(cls, tag: Union[str, "ModelFamily"]) -> "ModelFamily":
        if isinstance(tag, cls):
            return tag
        for member in cls:
            if member.value.lower() == str(tag).strip().lower():
                return member
        raise ValueError(
            f"Unknown model family: {tag}. Choose from {', '.join(m.value for m in cls)}."
        )

    @property
    def bayesian(self) -> bool:
        return self is not ModelFamily.GBLUP


class KernelModel(NamedTuple):
    """GBLUP on a precomputed relationship kernel (n, n)."""
    K: NDArray[np.floating]

    @property
    def family(self) -> ModelFamily:
        return ModelFamily.GBLUP


class MarkerModel(NamedTuple):
    """Bayesian marker regression on a design matrix (n, p)."""
    family: ModelFamily
    X: NDArray[np.floating]


ModelSpec = Union[KernelModel, MarkerModel]


class SamplerControls(NamedTuple):
    n_iter: int = 1500
    burnin: int = 500
    thin: int = 1
    seed: Union[int, Sequence[int], None] = None

    def validate(self) -> None:
        if int(self.n_iter) <= 0:
            raise ValueError(f"n_iter must be a positive integer, got {self.n_iter}.")
        if int(self.burnin) < 0:
            raise ValueError(f"burnin must be >= 0, got {self.burnin}.")
        if int(self.burnin) >= int(self.n_iter):
            raise ValueError(f"burnin ({self.burnin}) must be smaller than n_iter ({self.n_iter}).")
        if int(self.thin) < 1:
            raise ValueError(f"thin must be >= 1, got {self.thin}.")


class VarianceComponents(NamedTuple):
    """
    Variance parameters reported by a fitted model.

    A field is None when the parameter does not belong to the model
    (e.g. ``lambda_`` for GBLUP, ``var_u`` for LASSO and BayesB).
    """
    var_u: Optional[float] = None
    var_e: Optional[float] = None
    lambda_: Optional[float] = None
    df_b: Optional[float] = None
    s_b: Optional[float] = None
    prob_in: Optional[float] = None
    h2: Optional[float] = None

    def as_dict(self) -> dict[str, Optional[float]]:
        return {
            "varU": self.var_u,
            "varE": self.var_e,
            "lambda": self.lambda_,
            "dfb": self.df_b,
            "Sb": self.s_b,
            "probIn": self.prob_in,
            "H2": self.h2,
        }


def model_spec(
    family: Union[str, ModelFamily],
    M: NDArray[np.floating],
    K: Optional[NDArray[np.floating]] = None,
) -> ModelSpec:
    """Build the specification a model family needs; K is computed from M when omitted."""
    family = ModelFamily.parse(family)
    if family is ModelFamily.GBLUP:
        return KernelModel(GRM(M) if K is None else np.asarray(K, dtype=np.float64))
    return MarkerModel(family, np.asarray(M, dtype=np.float64))


def fit(
    y: NDArray[np.floating],
    spec: ModelSpec,
    controls: Optional[SamplerControls] = None,
) -> tuple[np.ndarray, VarianceComponents]:
    """
    Fit a model on the observed entries of y and predict all individuals.

    Parameters
    ----------
    y : np.ndarray, shape (n,)
        Phenotypes, NaN for held-out individuals.
    spec : KernelModel or MarkerModel
        Model family together with its kernel or design matrix.
    controls : SamplerControls, optional
        MCMC iterations, burn-in, thinning and seed; unused by GBLUP.

    Returns
    -------
    yhat : np.ndarray, shape (n,)
        Predicted values for every individual, including the masked ones.
    vc : VarianceComponents
        Estimated variance parameters.
    """
    controls = SamplerControls() if controls is None else controls
    family = spec.family
    if family is ModelFamily.GBLUP:
        model = GBLUP(y, spec.K)
        return model.yhat, VarianceComponents(
            var_u=model.var_u, var_e=model.var_e, h2=model.pve,
        )
    if family in (ModelFamily.BRR, ModelFamily.LASSO, ModelFamily.BayesB):
        controls.validate()
        model = BAYES(
            y,
            spec.X,
            method=family.value,
            n_iter=int(controls.n_iter),
            burnin=int(controls.burnin),
            thin=int(controls.thin),
            seed=controls.seed,
        )
        return model.yhat, VarianceComponents(
            var_u=model.var_u,
            var_e=model.var_e,
            lambda_=model.lambda_,
            df_b=model.df_b,
            s_b=model.s_b,
            prob_in=model.prob_in,
            h2=model.h2,
        )
    raise ValueError(f"Unsupported model family: {family}")
