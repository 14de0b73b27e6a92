import math
import time
from dataclasses import asdict, dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class ProgressSnapshot:
    """Global progress as seen by a presentation layer."""
    completed_items: int = 0
    total_items: int = 0
    completed_files: int = 0
    total_files: int = 0
    throughput: float = 0.0       # items per minute
    eta: Optional[int] = None     # minutes, None while throughput is zero

    @property
    def percent(self) -> int:
        if self.total_items <= 0:
            return 0
        return round(self.completed_items / self.total_items * 100)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["percent"] = self.percent
        return data


class ProgressTracker:
    """
    Running totals for one translation run.
    Only the pipeline's own control flow mutates it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._start: Optional[float] = None
        self.completed_items = 0
        self.total_items = 0
        self.completed_files = 0
        self.total_files = 0

    def reset(self, total_items: int, total_files: int):
        self.completed_items = 0
        self.completed_files = 0
        self.total_items = total_items
        self.total_files = total_files
        self._start = None

    def start(self):
        self._start = self._clock()

    def add_items(self, count: int):
        self.completed_items += count

    def complete_file(self):
        self.completed_files += 1

    def snapshot(self) -> ProgressSnapshot:
        throughput = 0.0
        if self._start is not None:
            elapsed_minutes = (self._clock() - self._start) / 60.0
            if elapsed_minutes > 0:
                throughput = self.completed_items / elapsed_minutes

        eta = None
        if throughput > 0:
            remaining = max(0, self.total_items - self.completed_items)
            eta = math.ceil(remaining / throughput)

        return ProgressSnapshot(
            completed_items=self.completed_items,
            total_items=self.total_items,
            completed_files=self.completed_files,
            total_files=self.total_files,
            throughput=throughput,
            eta=eta,
        )
