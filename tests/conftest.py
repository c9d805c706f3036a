import logging

import numpy as np
import pytest

from gpcv.script.sim import simulate_dataset, write_dataset


@pytest.fixture(scope="module")
def small_data():
    """80 individuals, 120 markers, h2 = 0.7."""
    ids, M, y = simulate_dataset(n=80, p=120, nqtl=20, h2=0.7, seed=7)
    return ids, M.astype(np.float64), y


@pytest.fixture
def dataset_files(tmp_path, small_data):
    ids, M, y = small_data
    geno, pheno = write_dataset(str(tmp_path / "demo"), ids, M.astype(np.int8), y)
    return geno, pheno


@pytest.fixture
def restore_root_logger():
    """CLI entry points replace the root handlers; put them back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
