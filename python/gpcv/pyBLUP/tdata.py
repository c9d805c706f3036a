import numpy as np
from numpy.typing import NDArray
from typing import Union


def _testX(
    X: Union[NDArray[np.floating], None],
    n: int,
    add_intercept: bool = True,
) -> Union[NDArray[np.float64], None]:
    """
    Ensure X is (n, p) and optionally add an intercept column.
    If any column of X is (approximately) all ones, treat it as intercept and do NOT add another.

    Parameters
    ----------
    X : np.ndarray | None
        Covariates without intercept.
    n : int
        Sample count.
    add_intercept : bool
        Whether to append an intercept if missing.
    """
    if X is None:
        return np.ones((n, 1), dtype=np.float64) if add_intercept else None

    X = np.asarray(X)
    if X.ndim == 1:
        if X.shape[0] != n:
            raise ValueError(f"X length {X.shape[0]} != n {n}")
        X = X.reshape(n, 1)
    elif X.ndim == 2:
        if X.shape[0] != n:
            raise ValueError(f"X.shape[0] {X.shape[0]} != n {n}")
    else:
        raise ValueError("X must be 1D or 2D.")

    X = X.astype(np.float64, copy=False)

    ones = np.ones((n,), dtype=X.dtype)
    has_intercept = np.any([np.allclose(X[:, j], ones, rtol=0.0, atol=1e-8) for j in range(X.shape[1])])

    if add_intercept and not has_intercept:
        return np.column_stack([ones.reshape(n, 1), X])
    return X


def _testY(y: NDArray[np.floating]) -> NDArray[np.float64]:
    """Flatten y to (n,) float64; NaN marks a masked entry, Inf is rejected."""
    y = np.asarray(y, dtype=np.float64)
    if y.ndim == 2:
        if y.shape[1] != 1:
            raise ValueError(f"Y must be (n,) or (n,1), got shape={y.shape}.")
        y = y.reshape(-1)
    elif y.ndim != 1:
        raise ValueError(f"Y must be 1D or 2D, got ndim={y.ndim}.")

    if y.size == 0:
        raise ValueError("Y is empty.")
    if np.any(np.isinf(y)):
        raise ValueError("Y contains Inf.")

    return y


def _observed(y: NDArray[np.float64]) -> NDArray[np.bool_]:
    """Boolean mask of non-missing phenotypes; at least two are required to fit."""
    obs = ~np.isnan(y)
    if int(obs.sum()) < 2:
        raise ValueError(f"Need at least 2 observed phenotypes, got {int(obs.sum())}.")
    return obs


def _testM(M: NDArray[np.floating], n: int, name: str = "M") -> NDArray[np.float64]:
    """Check a sample-major (n, p) marker matrix."""
    M = np.asarray(M, dtype=np.float64)
    if M.ndim != 2:
        raise ValueError(f"{name} must be a 2D array, got ndim={M.ndim}.")
    if M.shape[0] != n:
        raise ValueError(f"{name} must be (n, p) with n={n}. Got {name}.shape={M.shape}.")
    if np.any(~np.isfinite(M)):
        raise ValueError(f"{name} contains NaN or Inf; impute genotypes first.")
    return np.ascontiguousarray(M)
