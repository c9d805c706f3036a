from typing import Iterator, NamedTuple
import numpy as np


class Partition(NamedTuple):
    """Sorted 0-based training and testing indices of one replicate."""
    train: np.ndarray
    test: np.ndarray


class Replicate(NamedTuple):
    k: int
    seed: int
    sampler_seed: tuple[int, int]
    partition: Partition


def make_seeds(m: int, low: int = 1000, high: int = 1_000_000) -> np.ndarray:
    """
    Sub-seeds of the m replicates: ``linspace(low, high, m)`` rounded to the
    nearest integer (ties to even).
    """
    return np.round(np.linspace(low, high, int(m))).astype(np.int64)


def n_test(n: int, perc_tst: float) -> int:
    """Number of testing individuals, ``round(perc_tst * n)``."""
    return int(np.round(perc_tst * n))


def make_partition(n: int, perc_tst: float, rng: np.random.Generator) -> Partition:
    """
    Draw ``n_test(n, perc_tst)`` testing indices without replacement from
    ``range(n)``; the training set is the complement.

    A size that rounds to 0 or n is not guarded and leaves one side empty.
    """
    test = np.sort(rng.choice(n, size=n_test(n, perc_tst), replace=False))
    train = np.setdiff1d(np.arange(n), test, assume_unique=True)
    return Partition(train=train, test=test)


def generate_partitions(root_seed: int, m: int, n: int, perc_tst: float) -> Iterator[Replicate]:
    """
    Yield one ``Replicate`` per k in range(m).

    Each replicate draws from its own ``default_rng(seed_k)``, so any single
    partition can be regenerated without the others. The sub-seeds are a fixed
    spacing and do not depend on ``root_seed``, which only seeds the samplers
    through ``replicate_seed``.
    """
    for k, seed in enumerate(make_seeds(m)):
        seed = int(seed)
        yield Replicate(
            k=k,
            seed=seed,
            sampler_seed=replicate_seed(root_seed, seed),
            partition=make_partition(n, perc_tst, np.random.default_rng(seed)),
        )


def replicate_seed(root_seed: int, sub_seed: int) -> tuple[int, int]:
    """Seed for the sampler of one replicate, a function of the root seed and its sub-seed."""
    return (int(root_seed), int(sub_seed))
