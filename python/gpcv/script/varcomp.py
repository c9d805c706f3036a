# -*- coding: utf-8 -*-
"""
gpcv: Variance Components on the Full Data

Fits every selected model on all phenotyped individuals and reports the
variance parameters each model estimates. Parameters a model does not have
are left blank rather than reported as zero.

Output
------
  - {out}/[prefix.]varcomp.tsv : rows varU, varE, lambda, dfb, Sb, probIn, H2;
                                 one column per model
"""

import os
import socket
import argparse
import time
from typing import Optional, Sequence

import pandas as pd

from gpcv.cv import ConfigError, CVConfig
from gpcv.gtools import load_dataset
from gpcv.pyBLUP import GRM, ModelFamily, VarianceComponents, fit, model_spec
from ._common.log import setup_logging
from ._common.config_render import emit_cli_configuration
from ._common.pathcheck import ensure_inputs_exist
from ._common.status import CliStatus
from .cv import add_input_arguments, add_model_arguments, add_sampler_arguments, selected_models, log_path


def varcomp_table(components: "dict[str, VarianceComponents]") -> pd.DataFrame:
    """Parameters in rows, models in columns; inapplicable parameters are NaN."""
    labels = list(VarianceComponents().as_dict().keys())
    return pd.DataFrame(
        {model: list(vc) for model, vc in components.items()},
        index=labels,
        columns=list(components.keys()),
        dtype=float,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    optional_group = add_input_arguments(parser)
    add_model_arguments(parser)
    optional_group.add_argument(
        "-seed", "--seed",
        type=int,
        default=123,
        help="Seed of the MCMC samplers (default: %(default)s).",
    )
    add_sampler_arguments(optional_group)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    methods = selected_models(args)
    os.makedirs(args.out, 0o755, exist_ok=True)
    logger = setup_logging(log_path(args.out, args.prefix, "varcomp"))
    emit_cli_configuration(
        logger,
        app_title="gpcv - VARCOMP",
        config_title="VARCOMP CONFIG",
        host=socket.gethostname(),
        sections=[(
            "General",
            [("Genotype file", args.geno), ("Phenotype file", args.pheno), ("Analysis Pcol", args.ncol)]
            + [(f"Used model{i}", m.value) for i, m in enumerate(methods, start=1)]
            + [("MCMC iter/burnin", f"{args.niter}/{args.burnin}"), ("Seed", args.seed)],
        )],
        footer_rows=[("Output", f"{args.out}/{args.prefix or ''}")],
    )
    if len(methods) == 0:
        logger.error("No model selected. Use --GBLUP/--BRR/--LASSO/--BayesB.")
        raise SystemExit(1)
    cfg = CVConfig(root_seed=args.seed, n_iter=args.niter, burnin=args.burnin, thin=args.thin)
    try:
        cfg.validate()
    except ConfigError as e:
        logger.error(str(e))
        raise SystemExit(1)
    if not ensure_inputs_exist(logger, args.geno, args.pheno):
        raise SystemExit(1)

    data = load_dataset(args.geno, args.pheno, trait=args.ncol)
    logger.info(f"Trait: {data.trait}, individuals: {data.n}, markers: {data.p}")
    K = GRM(data.M) if ModelFamily.GBLUP in methods else None

    components: dict[str, VarianceComponents] = {}
    for family in methods:
        t0 = time.time()
        with CliStatus(f"Fitting {family.value}...") as task:
            try:
                _yhat, vc = fit(data.y, model_spec(family, data.M, K=K), cfg.controls(seed=cfg.root_seed))
            except Exception:
                task.fail(f"Fitting {family.value} ...Failed")
                raise
            task.complete(f"Fitting {family.value} ...Finished")
        components[family.value] = vc
        logger.info(f"{family.value} finished in {time.time() - t0:.2f} secs")

    table = varcomp_table(components)
    logger.info("Variance components\n" + table.to_string(float_format=lambda v: f"{v:.4f}", na_rep=""))
    name = f"{args.prefix}.varcomp.tsv" if args.prefix else "varcomp.tsv"
    out_tsv = f"{args.out}/{name}".replace("//", "/")
    table.to_csv(out_tsv, sep="\t", float_format="%.4f", na_rep="")
    logger.info(f"Saved variance components to {out_tsv}")


if __name__ == "__main__":
    main()
