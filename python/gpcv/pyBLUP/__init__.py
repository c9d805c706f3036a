from .lmm import GRM, LMM, standardize
from .gblup import GBLUP
from .bayes import BAYES
from .evaluator import (
    ModelFamily,
    KernelModel,
    MarkerModel,
    SamplerControls,
    VarianceComponents,
    model_spec,
    fit,
)

__all__ = [
    "GRM",
    "LMM",
    "standardize",
    "GBLUP",
    "BAYES",
    "ModelFamily",
    "KernelModel",
    "MarkerModel",
    "SamplerControls",
    "VarianceComponents",
    "model_spec",
    "fit",
]
