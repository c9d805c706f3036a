from __future__ import annotations

from pathlib import Path


def _shown(p: Path) -> str:
    return str(p).replace("\\", "/")


def ensure_dir_exists(logger, path: str, label: str) -> bool:
    p = Path(path).expanduser()
    if not p.is_dir():
        logger.error(f"{label} not found: {_shown(p)}")
        return False
    return True


def ensure_inputs_exist(logger, geno: str, pheno: str) -> bool:
    """
    Genotype table (or .npy matrix with its .npy.id sample list) and phenotype
    table must all be present; every missing file is logged.
    """
    gp = Path(geno).expanduser()
    required = [("Genotype file", gp), ("Phenotype file", Path(pheno).expanduser())]
    if gp.suffix == ".npy":
        required.append(("Genotype sample IDs", Path(f"{gp}.id")))
    missing = [(label, p) for label, p in required if not p.is_file()]
    for label, p in missing:
        logger.error(f"{label} not found: {_shown(p)}")
    return len(missing) == 0
