# -*- coding: utf-8 -*-
"""
gpcv: Accuracy Summary Across Models

Reads {dir}/[prefix.]outCOR_{model}.tsv written by `gpcv cv` for the selected
models (all four if none is selected), skips models whose file is missing
with a warning, and reports the mean and sample standard deviation of the
replicate correlations side by side.

Output
------
  - {out}/[prefix.]summary.tsv : rows mean/sd, one column per model found
"""

import os
import socket
import argparse
from typing import Optional, Sequence

from gpcv.cv import load_results, summary_table
from gpcv.pyBLUP import ModelFamily
from ._common.log import setup_logging
from ._common.config_render import emit_cli_configuration
from ._common.pathcheck import ensure_dir_exists
from .cv import add_model_arguments, selected_models, log_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    add_model_arguments(parser)
    optional_group = parser.add_argument_group("Optional Arguments")
    optional_group.add_argument(
        "-d", "--dir",
        type=str,
        default=".",
        help="Directory holding the outCOR files (default: current directory).",
    )
    optional_group.add_argument(
        "-o", "--out",
        type=str,
        default=None,
        help="Output directory for the summary (default: same as --dir).",
    )
    optional_group.add_argument(
        "-prefix", "--prefix",
        type=str,
        default=None,
        help="Prefix used when the outCOR files were written (default: none).",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    args.out = args.dir if args.out is None else args.out
    models = selected_models(args) or list(ModelFamily)

    os.makedirs(args.out, 0o755, exist_ok=True)
    logger = setup_logging(log_path(args.out, args.prefix, "summary"))
    emit_cli_configuration(
        logger,
        app_title="gpcv - SUMMARY",
        config_title="SUMMARY CONFIG",
        host=socket.gethostname(),
        sections=[("General", [("Result dir", args.dir), ("Models", " ".join(m.value for m in models))])],
        footer_rows=[("Output", args.out)],
    )
    if not ensure_dir_exists(logger, args.dir, "Result directory"):
        raise SystemExit(1)

    results = load_results(args.dir, [m.value for m in models], prefix=args.prefix or "")
    if len(results) == 0:
        logger.error(f"No outCOR files found in {args.dir}.")
        raise SystemExit(1)
    summary = summary_table(results)
    logger.info("Accuracy summary\n" + summary.to_string(float_format=lambda v: f"{v:.4f}"))

    name = f"{args.prefix}.summary.tsv" if args.prefix else "summary.tsv"
    out_tsv = f"{args.out}/{name}".replace("//", "/")
    summary.to_csv(out_tsv, sep="\t", float_format="%.4f")
    logger.info(f"Saved summary to {out_tsv}")


if __name__ == "__main__":
    main()
