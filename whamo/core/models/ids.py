from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional


def parse_numeric_id(uid: str) -> Optional[int]:
    """Integer value of a uid like '12', or None when the uid is not numeric."""
    try:
        return int(str(uid).strip())
    except ValueError:
        return None


@dataclass(slots=True)
class IdAllocator:
    """
    Session-scoped id allocator for the editor.

    Ids are decimal strings, never reused within a session. One allocator
    belongs to one editing session; nothing is shared between instances.
    """
    next_value: int = 1

    def next_id(self) -> str:
        uid = str(self.next_value)
        self.next_value += 1
        return uid

    def peek(self) -> str:
        return str(self.next_value)

    def reset(self) -> None:
        self.next_value = 1

    def observe(self, uids: Iterable[str]) -> None:
        """Moves the counter past every numeric uid in `uids`."""
        highest = max((v for v in (parse_numeric_id(u) for u in uids) if v is not None), default=0)
        if highest + 1 > self.next_value:
            self.next_value = highest + 1

    @staticmethod
    def after(uids: Iterable[str]) -> "IdAllocator":
        """Allocator starting at max(existing numeric ids) + 1."""
        alloc = IdAllocator()
        alloc.observe(uids)
        return alloc
