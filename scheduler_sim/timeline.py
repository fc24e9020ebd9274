from __future__ import annotations

from typing import Iterator, List, Optional

from .errors import SchedulerInvariantError
from .models import Segment


class Timeline:
    """
    Ordered, merged sequence of Gantt segments shared by every engine.

    Consecutive grants to the same owner collapse into one segment, so a
    process that runs tick by tick is reported as a single stretch.
    """

    def __init__(self) -> None:
        self._segments: List[Segment] = []

    def add_segment(self, owner: Optional[int], start: int, end: int) -> None:
        if start == end:
            return
        if start > end:
            raise SchedulerInvariantError(f"Segment ends before it starts: [{start}, {end})")

        if self._segments:
            last = self._segments[-1]
            if last.owner == owner and last.end == start:
                last.end = end
                return

        self._segments.append(Segment(owner=owner, start=start, end=end))

    @property
    def segments(self) -> List[Segment]:
        return list(self._segments)

    @property
    def makespan(self) -> int:
        return self._segments[-1].end if self._segments else 0

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)
