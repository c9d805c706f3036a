from __future__ import annotations
from typing import Literal, Optional, Sequence, Union
import numpy as np
from scipy.special import expit

from gpcv.pyBLUP.tdata import _testY, _testM, _observed

SeedLike = Union[int, Sequence[int], None]
BayesMethod = Literal["BRR", "LASSO", "BayesB"]


def _check_controls(
    n_iter: int,
    burnin: int,
    thin: int,
    r2: float,
    df0: float,
    shape0: float,
    prob_in0: float,
    counts0: float,
    min_abs_beta: float,
) -> None:
    if n_iter <= 0:
        raise ValueError("n_iter must be > 0")
    if burnin < 0:
        raise ValueError("burnin must be >= 0")
    if n_iter <= burnin:
        raise ValueError("n_iter must be > burnin")
    if thin < 1:
        raise ValueError("thin must be >= 1")
    if not (0.0 < r2 < 1.0):
        raise ValueError("r2 must be in (0, 1)")
    if df0 <= 2.0:
        raise ValueError("df0 must be > 2")
    if shape0 <= 1.0:
        raise ValueError("shape0 must be > 1")
    if not (0.0 < prob_in0 < 1.0):
        raise ValueError("prob_in0 must be in (0, 1)")
    if counts0 <= 0.0:
        raise ValueError("counts0 must be > 0")
    if min_abs_beta <= 0.0:
        raise ValueError("min_abs_beta must be > 0")


class _Posterior:
    """Running sums of the kept MCMC samples."""

    def __init__(self) -> None:
        self.n = 0
        self.sums: dict[str, np.ndarray] = {}

    def add(self, **samples) -> None:
        self.n += 1
        for key, val in samples.items():
            val = np.asarray(val, dtype=np.float64)
            if key in self.sums:
                self.sums[key] = self.sums[key] + val
            else:
                self.sums[key] = val.copy()

    def mean(self, key: str):
        out = self.sums[key] / self.n
        return float(out) if out.ndim == 0 else out


class _Chain:
    """Shared state of a single-site Gibbs sampler on centered markers."""

    def __init__(self, yo: np.ndarray, Xo: np.ndarray, r2: float, df0: float, rng: np.random.Generator) -> None:
        self.n, self.p = Xo.shape
        self.Xo = Xo
        self.yo = yo
        self.rng = rng
        self.x2 = np.einsum("ij,ij->j", Xo, Xo)
        self.vary = float(np.var(yo, ddof=1))
        self.msx = float(np.sum(np.var(Xo, axis=0, ddof=1)))
        if self.vary <= 0:
            raise ValueError("Observed phenotypes have zero variance.")
        if self.msx <= 0:
            raise ValueError("No polymorphic markers among observed individuals.")
        self.dfe = df0
        self.Se = self.vary * (1 - r2) * (df0 + 2)
        self.var_e = self.vary * (1 - r2)
        self.mu = float(yo.mean())
        self.b = np.zeros(self.p)
        self.e = yo - self.mu

    def sample_mu(self) -> None:
        self.e += self.mu
        self.mu = float(self.rng.normal(self.e.mean(), np.sqrt(self.var_e / self.n)))
        self.e -= self.mu

    def sample_var_e(self, extra_ss: float = 0.0, extra_df: float = 0.0) -> None:
        ss = self.Se + float(self.e @ self.e) + extra_ss
        self.var_e = ss / self.rng.chisquare(self.dfe + self.n + extra_df)

    def rhs(self, j: int) -> float:
        return float(self.Xo[:, j] @ self.e + self.x2[j] * self.b[j])

    def set_beta(self, j: int, bj: float) -> None:
        delta = bj - self.b[j]
        if delta != 0.0:
            self.e -= self.Xo[:, j] * delta
            self.b[j] = bj

    def h2(self) -> float:
        g = self.yo - self.mu - self.e
        vg = float(np.var(g, ddof=1))
        return vg / (vg + self.var_e)


def _gibbs_brr(chain: _Chain, n_iter: int, burnin: int, thin: int, r2: float, df0: float) -> _Posterior:
    rng = chain.rng
    dfb = df0
    Sb = chain.vary * r2 / chain.msx * (dfb + 2)
    var_b = Sb / (dfb + 2)
    post = _Posterior()
    for it in range(n_iter):
        chain.sample_mu()
        lam = chain.var_e / var_b
        for j in range(chain.p):
            if chain.x2[j] == 0:
                continue
            c = chain.x2[j] + lam
            chain.set_beta(j, rng.normal(chain.rhs(j) / c, np.sqrt(chain.var_e / c)))
        var_b = (Sb + float(chain.b @ chain.b)) / rng.chisquare(dfb + chain.p)
        chain.sample_var_e()
        if it >= burnin and (it - burnin) % thin == 0:
            post.add(mu=chain.mu, b=chain.b, var_e=chain.var_e,
                     var_b=var_b, var_u=var_b * chain.msx, h2=chain.h2())
    return post


def _gibbs_lasso(chain: _Chain, n_iter: int, burnin: int, thin: int, r2: float,
                 shape0: float, min_abs_beta: float) -> _Posterior:
    rng = chain.rng
    lambda2 = 2 * (1 - r2) / r2 * chain.msx
    rate0 = (shape0 - 1) / lambda2
    tau2 = np.full(chain.p, 1.0 / lambda2)
    post = _Posterior()
    for it in range(n_iter):
        chain.sample_mu()
        for j in range(chain.p):
            if chain.x2[j] == 0:
                continue
            c = chain.x2[j] + 1.0 / tau2[j]
            chain.set_beta(j, rng.normal(chain.rhs(j) / c, np.sqrt(chain.var_e / c)))
        babs = np.maximum(np.abs(chain.b), min_abs_beta)
        nu = np.sqrt(lambda2 * chain.var_e) / babs
        tau2 = 1.0 / rng.wald(nu, lambda2)
        lambda2 = rng.gamma(shape0 + chain.p, 1.0 / (rate0 + tau2.sum() / 2))
        chain.sample_var_e(extra_ss=float(np.sum(chain.b ** 2 / tau2)), extra_df=chain.p)
        if it >= burnin and (it - burnin) % thin == 0:
            post.add(mu=chain.mu, b=chain.b, var_e=chain.var_e,
                     lambda_=np.sqrt(lambda2), h2=chain.h2())
    return post


def _gibbs_bayesb(chain: _Chain, n_iter: int, burnin: int, thin: int, r2: float, df0: float,
                  shape0: float, prob_in0: float, counts0: float) -> _Posterior:
    rng = chain.rng
    p = chain.p
    var_b0 = chain.vary * r2 / chain.msx / prob_in0
    S0 = var_b0 * (df0 - 2)
    rate0 = (shape0 - 1) / S0
    a0, b0 = prob_in0 * counts0, (1 - prob_in0) * counts0
    var_b = np.full(p, var_b0)
    d = np.ones(p, dtype=bool)
    prob_in = prob_in0
    post = _Posterior()
    for it in range(n_iter):
        chain.sample_mu()
        logit_p = np.log(prob_in / (1 - prob_in))
        for j in range(p):
            if chain.x2[j] == 0:
                d[j] = False
                continue
            rhs = chain.rhs(j)
            v = var_b[j]
            x2 = chain.x2[j]
            logodds = (logit_p
                       - 0.5 * np.log1p(x2 * v / chain.var_e)
                       + 0.5 * rhs * rhs * v / (chain.var_e * (chain.var_e + x2 * v)))
            d[j] = rng.random() < expit(logodds)
            if d[j]:
                c = x2 + chain.var_e / v
                chain.set_beta(j, rng.normal(rhs / c, np.sqrt(chain.var_e / c)))
            else:
                chain.set_beta(j, 0.0)
        var_b = np.where(d,
                         (S0 + chain.b ** 2) / rng.chisquare(df0 + 1, size=p),
                         S0 / rng.chisquare(df0, size=p))
        S0 = rng.gamma(shape0 + p * df0 / 2, 1.0 / (rate0 + np.sum(1.0 / var_b) / 2))
        n_in = int(d.sum())
        prob_in = float(np.clip(rng.beta(a0 + n_in, b0 + p - n_in), 1e-12, 1 - 1e-12))
        chain.sample_var_e()
        if it >= burnin and (it - burnin) % thin == 0:
            post.add(mu=chain.mu, b=chain.b, var_e=chain.var_e,
                     s_b=S0, prob_in=prob_in, h2=chain.h2())
    return post


class BAYES:
    def __init__(
        self,
        y: np.ndarray,
        M: np.ndarray,
        method: BayesMethod = "BRR",
        n_iter: int = 1500,
        burnin: int = 500,
        thin: int = 1,
        r2: float = 0.5,
        df0: float = 5.0,
        shape0: float = 1.1,
        prob_in0: float = 0.5,
        counts0: float = 10.0,
        min_abs_beta: float = 1e-9,
        seed: SeedLike = None,
    ) -> None:
        """
        Whole-genome Bayesian regression fitted by Gibbs sampling.

        Individuals whose phenotype is NaN do not enter the likelihood and are
        predicted from the posterior mean marker effects.

        Parameters
        ----------
        y : np.ndarray
            Phenotype vector of shape (n,) or (n, 1), NaN for masked entries.
        M : np.ndarray
            Marker matrix of shape (n, p), samples in rows.
        method : {'BRR', 'LASSO', 'BayesB'}
            Prior on marker effects: Gaussian (ridge), double-exponential
            (Bayesian LASSO) or point-mass-plus-scaled-t mixture (BayesB).
        n_iter : int
            Total MCMC iterations.
        burnin : int
            Burn-in iterations. Must be < n_iter.
        thin : int
            Keep every `thin`-th sample after burn-in.
        r2 : float
            Prior proportion of phenotypic variance explained by markers,
            used to set the prior scales.
        df0 : float
            Prior degrees of freedom of the residual and marker variances.
        shape0 : float
            Gamma prior shape for lambda^2 (LASSO) or the scale S_b (BayesB).
        prob_in0, counts0 : float
            Beta prior mean and total counts for the BayesB inclusion probability.
        min_abs_beta : float
            Lower bound on |b| in the LASSO tau^2 update.
        seed : int, sequence of int or None
            Seed for ``numpy.random.default_rng``.

        Attributes
        ----------
        yhat : np.ndarray, shape (n,)
            Posterior mean fitted values for all individuals.
        beta : np.ndarray, shape (p,)
            Posterior mean marker effects.
        mu : float
            Posterior mean intercept.
        var_e, h2 : float
            Posterior means of the residual variance and of
            var(g) / (var(g) + var_e).
        var_u, lambda_, s_b, prob_in, df_b : float or None
            Model specific hyper-parameters, None where they do not apply.
        """
        _check_controls(n_iter, burnin, thin, r2, df0, shape0, prob_in0, counts0, min_abs_beta)
        y = _testY(y)
        obs = _observed(y)
        M = _testM(M, y.shape[0])
        self.xbar = M[obs].mean(axis=0)
        X = M - self.xbar
        rng = np.random.default_rng(seed)
        chain = _Chain(y[obs], X[obs], r2=r2, df0=df0, rng=rng)

        if method == "BRR":
            post = _gibbs_brr(chain, n_iter, burnin, thin, r2, df0)
        elif method == "LASSO":
            post = _gibbs_lasso(chain, n_iter, burnin, thin, r2, shape0, min_abs_beta)
        elif method == "BayesB":
            post = _gibbs_bayesb(chain, n_iter, burnin, thin, r2, df0, shape0, prob_in0, counts0)
        else:
            raise ValueError(f"Unsupported Bayesian method: {method}")

        self.method = method
        self.n_samples = post.n
        self.mu = post.mean("mu")
        self.beta = post.mean("b")
        self.var_e = post.mean("var_e")
        self.h2 = post.mean("h2")
        self.var_u: Optional[float] = post.mean("var_u") if "var_u" in post.sums else None
        self.lambda_: Optional[float] = post.mean("lambda_") if "lambda_" in post.sums else None
        self.s_b: Optional[float] = post.mean("s_b") if "s_b" in post.sums else None
        self.prob_in: Optional[float] = post.mean("prob_in") if "prob_in" in post.sums else None
        self.df_b: Optional[float] = float(df0) if method == "BayesB" else None
        self.yhat = self.mu + X @ self.beta

    def predict(self, M: np.ndarray) -> np.ndarray:
        """
        Predict phenotypes for new samples.

        Parameters
        ----------
        M : np.ndarray
            Marker matrix of shape (n_new, p) coded like the training markers.
        """
        M = _testM(M, np.asarray(M).shape[0])
        if M.shape[1] != self.beta.shape[0]:
            raise ValueError(f"M must have {self.beta.shape[0]} marker columns. Got M.shape={M.shape}.")
        return self.mu + (M - self.xbar) @ self.beta
