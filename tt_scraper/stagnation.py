from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque


@dataclass
class StallGuard:
    """
    Detects pagination that keeps returning pages without new posts.

    A stall is reported once the last `window_pages` pages together yielded
    zero previously-unseen records.
    """

    window_pages: int = 1
    _values: Deque[int] = field(default_factory=deque)

    def __post_init__(self) -> None:
        if self.window_pages <= 0:
            raise ValueError("window_pages must be positive")

    def push(self, new_records: int) -> bool:
        """Record one page's count of new records and return True on stall."""
        self._values.append(max(0, int(new_records)))
        while len(self._values) > self.window_pages:
            self._values.popleft()

        if len(self._values) < self.window_pages:
            return False

        return sum(self._values) == 0
