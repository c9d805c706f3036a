from .errors import ConfigError, DegeneratePartitionError, ReplicateError
from .partition import Partition, Replicate, make_seeds, n_test, make_partition, generate_partitions
from .accuracy import pearson_accuracy, summarize, summary_table
from .results import ResultTable, result_path, load_results
from .runner import CVConfig, run_replicate, run_cv, new_table

__all__ = [
    "ConfigError",
    "DegeneratePartitionError",
    "ReplicateError",
    "Partition",
    "Replicate",
    "make_seeds",
    "n_test",
    "make_partition",
    "generate_partitions",
    "pearson_accuracy",
    "summarize",
    "summary_table",
    "ResultTable",
    "result_path",
    "load_results",
    "CVConfig",
    "run_replicate",
    "run_cv",
    "new_table",
]
