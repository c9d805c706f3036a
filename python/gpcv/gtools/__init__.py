from .reader import (
    Dataset,
    genoreader,
    phenoreader,
    load_dataset,
)

__all__ = [
    "Dataset",
    "genoreader",
    "phenoreader",
    "load_dataset",
]
