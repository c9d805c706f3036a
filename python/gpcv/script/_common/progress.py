import sys

from rich.progress import (
    Progress,
    SpinnerColumn,
    BarColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from tqdm.auto import tqdm

from .status import get_rich_spinner_name


class ProgressAdapter:
    """
    Replicate progress: rich on terminals, tqdm otherwise, nothing if disabled.
    """
    def __init__(self, total: int, desc: str, *, enabled: bool = True) -> None:
        self.total = int(max(0, total))
        self.desc = str(desc)
        self.done = 0
        self._backend = "none"
        self._progress = None
        self._task_id = None
        self._tqdm = None
        if not enabled:
            return

        if sys.stdout.isatty():
            self._progress = Progress(
                SpinnerColumn(
                    spinner_name=get_rich_spinner_name(),
                    style="cyan",
                ),
                TextColumn("[bold green]{task.description}"),
                BarColumn(),
                TextColumn("{task.completed}/{task.total}"),
                TimeElapsedColumn(),
                TimeRemainingColumn(),
                TextColumn("{task.fields[postfix]}"),
                transient=True,
            )
            self._progress.start()
            self._task_id = self._progress.add_task(self.desc, total=self.total, postfix="")
            self._backend = "rich"
        else:
            self._tqdm = tqdm(total=self.total, desc=self.desc, ascii=True, leave=False)
            self._backend = "tqdm"

    def update(self, n: int = 1, **postfix: object) -> None:
        step = int(max(0, n))
        self.done += step
        text = " ".join([f"{k}={v}" for k, v in postfix.items()])
        if self._backend == "rich":
            self._progress.update(self._task_id, advance=step, postfix=text)
        elif self._backend == "tqdm":
            self._tqdm.update(step)
            if postfix:
                self._tqdm.set_postfix(postfix)

    def close(self) -> None:
        if self._backend == "rich":
            self._progress.stop()
        elif self._backend == "tqdm":
            self._tqdm.close()
        self._backend = "none"
