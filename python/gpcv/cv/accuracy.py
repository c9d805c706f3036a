from typing import Mapping, Sequence
import numpy as np
import pandas as pd
from scipy.stats import pearsonr

from gpcv.cv.errors import DegeneratePartitionError


def pearson_accuracy(yhat: np.ndarray, y: np.ndarray, test: np.ndarray) -> float:
    """
    Pearson correlation between predicted and observed values on the testing
    individuals.

    Raises
    ------
    DegeneratePartitionError
        Fewer than two testing individuals, or a constant sub-vector.
    ValueError
        Length mismatch or non-finite values in the testing entries.
    """
    yhat = np.asarray(yhat, dtype=np.float64).reshape(-1)
    y = np.asarray(y, dtype=np.float64).reshape(-1)
    if yhat.shape != y.shape:
        raise ValueError(f"yhat has {yhat.size} entries but y has {y.size}.")
    test = np.asarray(test, dtype=np.int64)
    if test.size < 2:
        raise DegeneratePartitionError(
            f"Testing set has {test.size} individual(s); at least 2 are needed for a correlation."
        )
    a, b = yhat[test], y[test]
    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
        raise ValueError("Non-finite values in the testing entries.")
    if np.ptp(a) == 0:
        raise DegeneratePartitionError("Predicted values are constant on the testing set.")
    if np.ptp(b) == 0:
        raise DegeneratePartitionError("Observed values are constant on the testing set.")
    return float(pearsonr(a, b).statistic)


def summarize(values: Sequence[float]) -> tuple[float, float]:
    """
    Mean and sample standard deviation (n-1 denominator).

    A single value gives ``sd = nan``: the spread of one replicate is undefined.
    """
    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    if arr.size == 0:
        raise ValueError("No replicate results to summarize.")
    if np.any(np.isnan(arr)):
        raise ValueError("Replicate results contain NaN; a replicate did not complete.")
    mean = float(arr.mean())
    sd = float(arr.std(ddof=1)) if arr.size > 1 else float("nan")
    return mean, sd


def summary_table(results: Mapping[str, Sequence[float]]) -> pd.DataFrame:
    """
    Side-by-side mean/sd of several model families.

    Returns a DataFrame with index ``['mean', 'sd']`` and one column per
    model, in the mapping's order.
    """
    cols = {}
    for model, values in results.items():
        mean, sd = summarize(values)
        cols[model] = [mean, sd]
    return pd.DataFrame(cols, index=["mean", "sd"], columns=list(results.keys()), dtype=float)
