class ConfigError(ValueError):
    """Invalid cross-validation settings, raised before any partition is drawn."""


class DegeneratePartitionError(ValueError):
    """The testing set cannot support a correlation (too small or constant)."""


class ReplicateError(RuntimeError):
    """A replicate failed inside the model engine; the original error is chained."""

    def __init__(self, replicate: int, model: str, message: str) -> None:
        super().__init__(f"Replicate {replicate} ({model}) failed: {message}")
        self.replicate = replicate
        self.model = model
        self.message = message

    def __reduce__(self):
        # keep the engine error when sent back from a joblib worker
        return (type(self), (self.replicate, self.model, self.message), {"__cause__": self.__cause__})
