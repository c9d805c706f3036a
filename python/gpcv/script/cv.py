# -*- coding: utf-8 -*-
"""
gpcv: Repeated Training/Testing Cross-Validation

Supported models
----------------
  - GBLUP  : Genomic BLUP on the relationship matrix G = ZZ'/p (REML)
  - BRR    : Bayesian Ridge Regression (Gaussian marker-effect prior)
  - LASSO  : Bayesian LASSO (double-exponential marker-effect prior)
  - BayesB : point mass at zero plus scaled-t marker-effect prior

Input
-----
  - Genotype : tab-delimited table (sample IDs in the first column, markers
               coded 0/1/2) or .npy matrix with a .npy.id sample list
  - Phenotype: tab-delimited table, sample IDs in the first column

Procedure
---------
  1. Derive m sub-seeds by rounding linspace(1000, 1e6, m).
  2. For replicate k, draw round(percTST * n) testing individuals without
     replacement from a generator seeded with sub-seed k.
  3. Mask the testing phenotypes, fit the model on the rest and correlate
     predictions with the held-out phenotypes.
  4. Write {out}/[prefix.]outCOR_{model}.tsv and log mean/sd per model.
"""

import os
import socket
import argparse
import time
from typing import Optional, Sequence

from gpcv.cv import (
    CVConfig,
    ConfigError,
    DegeneratePartitionError,
    ReplicateError,
    n_test,
    new_table,
    run_cv,
    summarize,
    summary_table,
)
from gpcv.gtools import load_dataset
from gpcv.pyBLUP import GRM, ModelFamily, model_spec
from ._common.log import setup_logging
from ._common.config_render import emit_cli_configuration
from ._common.pathcheck import ensure_inputs_exist
from ._common.progress import ProgressAdapter
from ._common.status import CliStatus, print_success, print_failure, format_elapsed


def add_model_arguments(parser: argparse.ArgumentParser) -> None:
    model_group = parser.add_argument_group("Model Arguments")
    for family, desc in (
        (ModelFamily.GBLUP, "GBLUP on the genomic relationship matrix"),
        (ModelFamily.BRR, "Bayesian Ridge Regression"),
        (ModelFamily.LASSO, "Bayesian LASSO"),
        (ModelFamily.BayesB, "BayesB"),
    ):
        model_group.add_argument(
            f"-{family.value}", f"--{family.value}",
            action="store_true",
            default=False,
            help=f"Use {desc} (default: %(default)s).",
        )


def selected_models(args: argparse.Namespace) -> list[ModelFamily]:
    return [family for family in ModelFamily if getattr(args, family.value)]


def add_sampler_arguments(group) -> None:
    group.add_argument(
        "-niter", "--niter",
        type=int,
        default=1500,
        help="MCMC iterations of the Bayesian models (default: %(default)s).",
    )
    group.add_argument(
        "-burnin", "--burnin",
        type=int,
        default=500,
        help="MCMC burn-in, must be smaller than --niter (default: %(default)s).",
    )
    group.add_argument(
        "-thin", "--thin",
        type=int,
        default=1,
        help="Keep every n-th MCMC sample after burn-in (default: %(default)s).",
    )


def add_input_arguments(parser: argparse.ArgumentParser):
    required_group = parser.add_argument_group("Required Arguments")
    required_group.add_argument(
        "-g", "--geno",
        type=str,
        required=True,
        help="Genotype file: tab-delimited table or .npy matrix.",
    )
    required_group.add_argument(
        "-p", "--pheno",
        type=str,
        required=True,
        help="Phenotype file (tab-delimited, sample IDs in the first column).",
    )
    optional_group = parser.add_argument_group("Optional Arguments")
    optional_group.add_argument(
        "-n", "--ncol",
        type=int,
        default=0,
        help="Zero-based phenotype column index to analyze (default: %(default)s).",
    )
    optional_group.add_argument(
        "-o", "--out",
        type=str,
        default=".",
        help="Output directory for results (default: current directory).",
    )
    optional_group.add_argument(
        "-prefix", "--prefix",
        type=str,
        default=None,
        help="Prefix of output files (default: none).",
    )
    return optional_group


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    optional_group = add_input_arguments(parser)
    add_model_arguments(parser)
    optional_group.add_argument(
        "-m", "--nrep",
        type=int,
        default=10,
        help="Number of random training/testing partitions (default: %(default)s).",
    )
    optional_group.add_argument(
        "-tst", "--test-frac",
        dest="test_frac",
        type=float,
        default=0.3,
        help="Fraction of individuals held out for testing, in (0, 1) "
             "(default: %(default)s).",
    )
    optional_group.add_argument(
        "-seed", "--seed",
        type=int,
        default=123,
        help="Root seed of the run (default: %(default)s).",
    )
    add_sampler_arguments(optional_group)
    optional_group.add_argument(
        "-t", "--thread",
        type=int,
        default=1,
        help="Replicates run in parallel; -1 uses all cores (default: %(default)s).",
    )
    return parser


def log_path(out: str, prefix: Optional[str], module: str) -> str:
    name = f"{prefix}.{module}.log" if prefix else f"gpcv.{module}.log"
    return f"{out}/{name}".replace("\\", "/").replace("//", "/")


def main(argv: Optional[Sequence[str]] = None) -> None:
    t_start = time.time()
    parser = build_parser()
    args = parser.parse_args(argv)
    methods = selected_models(args)

    os.makedirs(args.out, 0o755, exist_ok=True)
    logger = setup_logging(log_path(args.out, args.prefix, "cv"))

    cfg = CVConfig(
        root_seed=args.seed,
        n_rep=args.nrep,
        perc_tst=args.test_frac,
        n_iter=args.niter,
        burnin=args.burnin,
        thin=args.thin,
    )
    cfg_rows: list[tuple[str, object]] = [
        ("Genotype file", args.geno),
        ("Phenotype file", args.pheno),
        ("Analysis Pcol", args.ncol),
    ]
    cfg_rows.extend((f"Used model{i}", m.value) for i, m in enumerate(methods, start=1))
    cfg_rows.extend(
        [
            ("Replicates", cfg.n_rep),
            ("Testing fraction", cfg.perc_tst),
            ("Root seed", cfg.root_seed),
            ("MCMC iter/burnin", f"{cfg.n_iter}/{cfg.burnin}"),
            ("Threads", args.thread),
        ]
    )
    emit_cli_configuration(
        logger,
        app_title="gpcv - CV",
        config_title="CV CONFIG",
        host=socket.gethostname(),
        sections=[("General", cfg_rows)],
        footer_rows=[("Output", f"{args.out}/{args.prefix or ''}")],
    )

    if len(methods) == 0:
        logger.error("No model selected. Use --GBLUP/--BRR/--LASSO/--BayesB.")
        raise SystemExit(1)
    try:
        cfg.validate()
    except ConfigError as e:
        logger.error(str(e))
        raise SystemExit(1)
    if not ensure_inputs_exist(logger, args.geno, args.pheno):
        raise SystemExit(1)

    # ------------------------------------------------------------------
    # Load data
    # ------------------------------------------------------------------
    with CliStatus("Loading genotype and phenotype...") as task:
        try:
            data = load_dataset(args.geno, args.pheno, trait=args.ncol)
        except Exception:
            task.fail("Loading genotype and phenotype ...Failed")
            raise
        task.complete("Loading genotype and phenotype ...Finished")
    ntst = n_test(data.n, cfg.perc_tst)
    logger.info(f"Trait: {data.trait}, individuals: {data.n}, markers: {data.p}")
    logger.info(f"Testing size: {ntst}, training size: {data.n - ntst}")
    if ntst < 2:
        logger.warning(f"Testing fraction {cfg.perc_tst} leaves {ntst} testing individual(s); correlations will fail.")

    K = None
    if ModelFamily.GBLUP in methods:
        with CliStatus("Building GRM...") as task:
            K = GRM(data.M)
            task.complete("Building GRM ...Finished")

    # ------------------------------------------------------------------
    # Replicates per model
    # ------------------------------------------------------------------
    table = new_table([m.value for m in methods], cfg)
    for family in methods:
        t_model = time.monotonic()
        spec = model_spec(family, data.M, K=K)
        bar = ProgressAdapter(cfg.n_rep, f"Model: {family.value}")
        try:
            cors = run_cv(
                data.y,
                spec,
                cfg,
                n_jobs=args.thread,
                table=table,
                callback=lambda k, r: bar.update(1, r=f"{r:.3f}"),
            )
        except (ReplicateError, DegeneratePartitionError) as e:
            bar.close()
            print_failure(f"Model: {family.value} ...Failed [{format_elapsed(time.monotonic() - t_model)}]")
            logger.error(str(e))
            raise
        bar.close()
        paths = table.save(args.out, prefix=args.prefix or "", models=[family.value])
        mean, sd = summarize(cors)
        print_success(f"Model: {family.value} ...Finished [{format_elapsed(time.monotonic() - t_model)}]")
        logger.info("-" * 60)
        logger.info("Model Replicate Seed Pearsonr")
        for k, (seed, r) in enumerate(zip(table.seeds, cors), start=1):
            logger.info(f"{family.value} {k} {seed} {r:.4f}")
        logger.info(f"{family.value} mean: {mean:.4f}, sd: {sd:.4f}")
        logger.info(f"Saved correlations to {paths[0]}")

    logger.info("*" * 60)
    summary = summary_table({m: table.values(m) for m in table.models})
    logger.info("Accuracy summary\n" + summary.to_string(float_format=lambda v: f"{v:.4f}"))

    lt = time.localtime()
    logger.info(
        f"\nFinished, total time: {round(time.time() - t_start, 2)} secs\n"
        f"{lt.tm_year}-{lt.tm_mon}-{lt.tm_mday} "
        f"{lt.tm_hour}:{lt.tm_min}:{lt.tm_sec}"
    )


if __name__ == "__main__":
    main()
