"""
Index cycling over a list of catalog ids.

Used by presentation surfaces to page through alternatives one at a time
(step size 1) or companions two at a time (step size 2). Holds no session
state.
"""

from __future__ import annotations
from dataclasses import dataclass, field


@dataclass
class SelectionCycler:
    items: list[str] = field(default_factory=list)
    step_size: int = 1
    index: int = 0

    def __post_init__(self):
        if self.step_size < 1:
            raise ValueError(f"step_size must be >= 1, got {self.step_size}")
        self.items = list(self.items)
        self.index = min(max(self.index, 0), max(len(self.items) - 1, 0))

    @classmethod
    def starting_at(cls, items: list[str], item_id: str, step_size: int = 1) -> SelectionCycler:
        """Cycler positioned on ``item_id``, aligned down to a multiple of ``step_size``."""
        index = items.index(item_id) if item_id in items else 0
        return cls(items=items, step_size=step_size, index=index - index % step_size)

    @property
    def has_prev(self) -> bool:
        return self.index > 0

    @property
    def has_next(self) -> bool:
        return self.index + self.step_size < len(self.items)

    def window(self) -> list[str]:
        """Ids currently on display."""
        return self.items[self.index:self.index + self.step_size]

    def next(self) -> bool:
        if not self.has_next:
            return False
        self.index += self.step_size
        return True

    def prev(self) -> bool:
        if not self.has_prev:
            return False
        self.index = max(0, self.index - self.step_size)
        return True
