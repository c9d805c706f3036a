# -*- coding: utf-8 -*-
"""
gpcv: Demo Dataset Simulator

Simulates biallelic markers and a polygenic trait so the cross-validation
workflow can be run without external data.

Model
-----
  - Allele frequencies ~ Uniform(0.05, 0.5); genotypes ~ Binomial(2, freq).
  - nqtl markers chosen at random carry effects beta ~ N(0, 1); the genetic
    value g = Z beta is rescaled so that var(g) / (var(g) + var(e)) = h2.
  - y = 10 + g + e, e ~ N(0, 1 - h2) after scaling var(g) to h2.

Outputs
-------
  - {out}/{prefix}.geno.tsv  : sample ID column then markers (0/1/2)
  - {out}/{prefix}.pheno.txt : IID and PHENO columns
"""

import os
import socket
import argparse
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from gpcv.pyBLUP.lmm import standardize
from ._common.log import setup_logging
from ._common.config_render import emit_cli_configuration
from ._common.status import print_success


def simulate_dataset(
    n: int = 300,
    p: int = 1000,
    nqtl: int = 50,
    h2: float = 0.5,
    seed: int = 1,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Simulate genotypes and one phenotype.

    Returns
    -------
    ids : np.ndarray of str, shape (n,)
    M : np.ndarray of int8, shape (n, p)
    y : np.ndarray of float64, shape (n,)
    """
    if n < 2 or p < 1:
        raise ValueError(f"Need n >= 2 and p >= 1, got n={n}, p={p}.")
    if not (0 < nqtl <= p):
        raise ValueError(f"nqtl must be in [1, {p}], got {nqtl}.")
    if not (0.0 < h2 < 1.0):
        raise ValueError(f"h2 must be in (0, 1), got {h2}.")
    rng = np.random.default_rng(seed)
    freq = rng.uniform(0.05, 0.5, size=p)
    M = rng.binomial(2, freq, size=(n, p)).astype(np.int8)

    Z = standardize(M)
    qtl = rng.choice(p, size=nqtl, replace=False)
    g = Z[:, qtl] @ rng.normal(0.0, 1.0, size=nqtl)
    vg = float(np.var(g))
    if vg > 0:
        g = g * np.sqrt(h2 / vg)
    e = rng.normal(0.0, np.sqrt(1.0 - h2), size=n)
    y = 10.0 + g + e
    ids = np.array([f"ind{i + 1}" for i in range(n)], dtype=str)
    return ids, M, y


def write_dataset(outprefix: str, ids: np.ndarray, M: np.ndarray, y: np.ndarray) -> tuple[str, str]:
    geno_path = f"{outprefix}.geno.tsv"
    pheno_path = f"{outprefix}.pheno.txt"
    geno = pd.DataFrame(M, index=pd.Index(ids, name="sample"),
                        columns=[f"m{j + 1}" for j in range(M.shape[1])])
    geno.to_csv(geno_path, sep="\t")
    pd.DataFrame({"IID": ids, "PHENO": y}).to_csv(pheno_path, sep="\t", index=False, float_format="%.6f")
    return geno_path, pheno_path


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    optional_group = parser.add_argument_group("Optional Arguments")
    optional_group.add_argument("-n", "--n", type=int, default=300,
                                help="Number of individuals (default: %(default)s).")
    optional_group.add_argument("-m", "--markers", type=int, default=1000,
                                help="Number of markers (default: %(default)s).")
    optional_group.add_argument("-nqtl", "--nqtl", type=int, default=50,
                                help="Number of causal markers (default: %(default)s).")
    optional_group.add_argument("-h2", "--h2", type=float, default=0.5,
                                help="Heritability of the simulated trait (default: %(default)s).")
    optional_group.add_argument("-seed", "--seed", type=int, default=1,
                                help="Random seed (default: %(default)s).")
    optional_group.add_argument("-o", "--out", type=str, default=".",
                                help="Output directory (default: current directory).")
    optional_group.add_argument("-prefix", "--prefix", type=str, default="sim",
                                help="Prefix of output files (default: %(default)s).")
    args = parser.parse_args(argv)

    os.makedirs(args.out, 0o755, exist_ok=True)
    outprefix = f"{args.out}/{args.prefix}".replace("//", "/")
    logger = setup_logging(f"{outprefix}.sim.log")
    emit_cli_configuration(
        logger,
        app_title="gpcv - SIM",
        config_title="SIM CONFIG",
        host=socket.gethostname(),
        sections=[("General", [
            ("Individuals", args.n),
            ("Markers", args.markers),
            ("QTL", args.nqtl),
            ("h2", args.h2),
            ("Seed", args.seed),
        ])],
        footer_rows=[("Output prefix", outprefix)],
    )
    ids, M, y = simulate_dataset(n=args.n, p=args.markers, nqtl=args.nqtl, h2=args.h2, seed=args.seed)
    geno_path, pheno_path = write_dataset(outprefix, ids, M, y)
    print_success("Simulation ...Finished")
    logger.info(f"Saved genotypes to {geno_path}")
    logger.info(f"Saved phenotypes to {pheno_path}")


if __name__ == "__main__":
    main()
