#!/usr/bin/env python
# -*- coding: utf-8 -*-
import sys

from gpcv import __version__ as v
from gpcv.script import cv, summary, varcomp, sim

__logo__ = r'''
   __ _ _ __   _____   __
  / _` | '_ \ / __\ \ / /
 | (_| | |_) | (__ \ V /
  \__, | .__/ \___| \_/   Genomic prediction cross-validation
  |___/|_|
'''
_banner_line = "*" * 60
__version__ = (
    f"{_banner_line}\n"
    f">gpcv v{v}\n"
    f"{_banner_line}"
)

MODULES = {
    'cv': cv,
    'summary': summary,
    'varcomp': varcomp,
    'sim': sim,
}


def _usage(prog: str) -> None:
    print(f"Usage: {prog} <module> [options]")
    print(f"Available modules: {' '.join(MODULES.keys())}")


def main():
    if len(sys.argv) > 1:
        if sys.argv[1] == '-h' or sys.argv[1] == '--help':
            print(__logo__)
            _usage("gpcv")
        elif sys.argv[1] == '-v' or sys.argv[1] == '--version':
            print(__logo__)
            print(__version__)
        elif sys.argv[1] in MODULES:
            module_name = sys.argv[1]
            # Keep argparse usage as "gpcv <module> ..."
            sys.argv[0] = f"gpcv {module_name}"
            del sys.argv[1]
            MODULES[module_name].main()
        else:
            print(f"Unknown module: {sys.argv[1]}")
            _usage(sys.argv[0])
            raise SystemExit(1)
    else:
        _usage(sys.argv[0])


if __name__ == "__main__":
    main()
