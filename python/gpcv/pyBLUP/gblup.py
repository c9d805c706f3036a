from typing import Union
import numpy as np
import scipy.linalg as la
from numpy.typing import NDArray
from gpcv.pyBLUP.tdata import _testX, _testY, _observed
from gpcv.pyBLUP.lmm import LMM


class GBLUP:
    """
    Genomic BLUP on a precomputed relationship kernel.

    Individuals whose phenotype is NaN are left out of the REML fit but still
    receive a prediction through their relationship with the observed ones.

    Parameters
    ----------
    y : np.ndarray, shape (n,) or (n,1)
        Phenotype vector, NaN for masked individuals.
    K : np.ndarray, shape (n, n)
        Genomic relationship matrix for all n individuals.
    X : np.ndarray or None, shape (n, p)
        Covariates WITHOUT an intercept. Intercept is added internally.
    bounds : tuple
        Search interval for log10(varE/varU).
    """
    def __init__(self, y: NDArray[np.floating], K: NDArray[np.floating],
                 X: Union[NDArray[np.floating], None] = None, bounds: tuple = (-6, 6)) -> None:
        y = _testY(y)
        n = y.shape[0]
        K = np.asarray(K, dtype=np.float64)
        if K.shape != (n, n):
            raise ValueError(f"K must be (n, n). Got K.shape={K.shape}, n={n}.")
        X = _testX(X, n, add_intercept=True)
        obs = _observed(y)
        Koo = K[np.ix_(obs, obs)]
        model = LMM(y[obs], X[obs], grm=Koo, bounds=bounds)

        r = y[obs].reshape(-1, 1) - X[obs] @ model.beta
        Kreg = Koo.copy()
        np.fill_diagonal(Kreg, np.diag(Kreg) + model.lbd)
        c, low = la.cho_factor(Kreg, lower=True, check_finite=False)
        alpha = la.cho_solve((c, low), r, check_finite=False)

        self.u = (K[:, obs] @ alpha).ravel()
        self.yhat = (X @ model.beta).ravel() + self.u
        self.beta = model.beta
        self.var_u = model.var_u
        self.var_e = model.var_e
        self.pve = model.pve
        self.n_train = int(obs.sum())
        self.result = model
