from numpy.typing import NDArray
import numpy as np
import scipy.linalg as la
from scipy.optimize import minimize_scalar

from gpcv.pyBLUP.tdata import _testM


def standardize(M: NDArray[np.floating], ridge: float = 1e-8) -> NDArray[np.float64]:
    """
    Center each marker column and scale it to unit variance.

    Monomorphic markers end up as all-zero columns instead of NaN.
    """
    M = np.asarray(M, dtype=np.float64)
    sd = M.std(axis=0, keepdims=True)
    Z = (M - M.mean(axis=0, keepdims=True)) / (sd + ridge)
    Z[:, sd.ravel() == 0] = 0.0
    return Z


def GRM(M: NDArray[np.floating], ridge: float = 1e-8) -> NDArray[np.float64]:
    '''
    Genomic relationship matrix G = Z @ Z.T / p.

    :param M: (n, p) marker matrix, samples in rows, coded 0/1/2.
    :type M: NDArray[np.floating]
    '''
    M = _testM(M, np.asarray(M).shape[0])
    p = M.shape[1]
    if p == 0:
        raise ValueError("M has no markers.")
    Z = standardize(M, ridge=ridge)
    G = Z @ Z.T / p
    return (G + G.T) / 2


def logREML(
    loglbd: float,
    Uty: np.ndarray,
    Utx: np.ndarray,
    S: np.ndarray
) -> float:
    """
    Negative restricted log-likelihood with the genetic variance profiled out.

    Parameters
    ----------
    loglbd : float
        log10 of lambda = sigma_e^2 / sigma_g^2.
    Uty : np.ndarray
        Rotated response U.T @ y, shape (n, 1).
    Utx : np.ndarray
        Rotated fixed-effect design U.T @ X, shape (n, p).
    S : np.ndarray
        Eigenvalues of the kernel, shape (n,).

    Returns
    -------
    float
        REML objective value (lower is better for minimize).
    """
    lbd = np.power(10, loglbd)
    v = S + lbd
    v_inv = 1 / v
    n, p = Utx.shape
    XTV_invX = (Utx.T * v_inv) @ Utx
    XTV_invy = (Utx.T * v_inv) @ Uty

    beta = np.linalg.solve(XTV_invX, XTV_invy)
    r: np.ndarray = Uty - Utx @ beta

    rTV_invr = np.sum(v_inv * np.ravel(r) ** 2)
    log_detV = np.sum(np.log(v))
    sign, log_detXTV_invX = np.linalg.slogdet(XTV_invX)
    total_log = (n - p) * np.log(rTV_invr) + log_detV + log_detXTV_invX

    c = (n - p) * (np.log(n - p) - 1 - np.log(2 * np.pi)) / 2.0
    return total_log / 2.0 - c


class LMM:
    def __init__(self, y: NDArray[np.floating],
                 X: NDArray[np.floating],
                 grm: NDArray[np.floating],
                 bounds: tuple = (-6, 6)) -> None:
        """
        Null linear mixed model y = X b + g + e, g ~ N(0, varU K), e ~ N(0, varE I),
        solved by REML on the eigendecomposition of K.

        Parameters
        ----------
        y : NDArray[np.floating]
            Phenotype vector of shape ``(n,)`` or ``(n, 1)``, no missing values.
        X : NDArray[np.floating]
            Fixed-effect design of shape ``(n, p)`` including the intercept.
        grm : NDArray[np.floating]
            Relationship matrix ``K`` of shape ``(n, n)``.
        bounds : tuple
            Search interval for log10(lambda).

        Attributes (after fitting)
        --------------------------
        beta : NDArray[np.floating]
            Fixed effects, shape ``(p, 1)``.
        loglbd : float
            Estimated log10(lambda).
        var_u, var_e : float
            REML estimates of the genetic and residual variances.
        pve : float
            var_u / (var_u + var_e).
        """
        y = np.asarray(y, dtype=np.float64).reshape(-1, 1)
        n = y.shape[0]
        if X.shape[0] != n:
            raise ValueError(f"X.shape[0] {X.shape[0]} != n {n}")
        if grm.shape != (n, n):
            raise ValueError(f"grm must be ({n}, {n}). Got grm.shape={grm.shape}.")
        if n <= X.shape[1]:
            raise ValueError(f"Need more than {X.shape[1]} observations to fit, got {n}.")
        ss, self.u = la.eigh(grm, check_finite=False)
        self.ss = np.maximum(ss, 0.0)
        self.uty = self.u.T @ y
        self.utx = self.u.T @ X
        result = minimize_scalar(lambda loglbd: logREML(loglbd,
                                                        self.uty, self.utx,
                                                        self.ss),
                                 bounds=bounds, method='bounded')
        lbd = float(np.power(10, result.x))
        vinv = 1 / (self.ss + lbd)
        XTVinvX = (self.utx.T * vinv) @ self.utx
        XTVinvy = (self.utx.T * vinv) @ self.uty
        self.beta = np.linalg.solve(XTVinvX, XTVinvy)
        r = self.uty - self.utx @ self.beta
        n, p = self.utx.shape
        self.var_u = float(np.sum(vinv * np.ravel(r) ** 2) / (n - p))
        self.var_e = lbd * self.var_u
        self.loglbd = float(np.log10(lbd))
        self.lbd = lbd
        self.pve = self.var_u / (self.var_u + self.var_e)
        self.result = result
