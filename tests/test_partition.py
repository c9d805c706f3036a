import numpy as np
import pytest

from gpcv.cv.partition import (
    Partition,
    generate_partitions,
    make_partition,
    make_seeds,
    n_test,
    replicate_seed,
)


def test_seeds_are_rounded_linear_spacing():
    seeds = make_seeds(10)
    expected = [1000, 112000, 223000, 334000, 445000, 556000, 667000, 778000, 889000, 1000000]
    assert seeds.tolist() == expected
    assert seeds.dtype == np.int64


def test_single_seed_is_lower_bound():
    assert make_seeds(1).tolist() == [1000]


@pytest.mark.parametrize("n, perc, expected", [(100, 0.3, 30), (599, 0.2, 120), (10, 0.25, 2), (7, 0.5, 4)])
def test_n_test_rounds(n, perc, expected):
    assert n_test(n, perc) == expected


def test_partition_sizes_and_complement():
    for rep in generate_partitions(123, 10, 100, 0.3):
        train, test = rep.partition
        assert len(test) == 30
        assert len(train) == 70
        assert len(np.unique(test)) == len(test)
        assert np.intersect1d(train, test).size == 0
        assert np.array_equal(np.union1d(train, test), np.arange(100))


def test_partitions_are_reproducible():
    first = [rep.partition for rep in generate_partitions(123, 5, 60, 0.25)]
    second = [rep.partition for rep in generate_partitions(123, 5, 60, 0.25)]
    for a, b in zip(first, second):
        assert a.test.tobytes() == b.test.tobytes()
        assert a.train.tobytes() == b.train.tobytes()


def test_partition_only_depends_on_its_sub_seed():
    reps = list(generate_partitions(123, 4, 50, 0.2))
    k = 2
    again = make_partition(50, 0.2, np.random.default_rng(reps[k].seed))
    assert np.array_equal(again.test, reps[k].partition.test)


def test_replicates_differ():
    reps = list(generate_partitions(123, 3, 100, 0.3))
    assert not np.array_equal(reps[0].partition.test, reps[1].partition.test)


def test_root_seed_only_changes_sampler_seed():
    a = list(generate_partitions(1, 3, 40, 0.3))
    b = list(generate_partitions(2, 3, 40, 0.3))
    for ra, rb in zip(a, b):
        assert np.array_equal(ra.partition.test, rb.partition.test)
        assert ra.sampler_seed != rb.sampler_seed
    assert a[0].sampler_seed == replicate_seed(1, 1000)


def test_degenerate_size_still_runs():
    part = make_partition(5, 0.05, np.random.default_rng(1))
    assert isinstance(part, Partition)
    assert part.test.size == 0
    assert part.train.size == 5
