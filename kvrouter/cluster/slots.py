"""
Slot Table Module

Holds the slot -> owning node map. Each of the 16384 slots maps to at
most one node; unmapped slots are None.
"""

from typing import Dict, List, Optional

from ..config.settings import settings
from .nodes import Node


class SlotTable:
    """
    Fixed-size table of slot owners.

    Usage:
        table = SlotTable()
        table.assign_range(0, 5460, node_a)
        table[5000] = node_b      # patch after a MOVED reply
        owner = table[5000]       # -> node_b
    """

    def __init__(self, size: int = None):
        self.size = size if size is not None else settings.HASH_SLOTS
        self._owners: List[Optional[Node]] = [None] * self.size

    def _check(self, slot: int) -> int:
        if not isinstance(slot, int) or not 0 <= slot < self.size:
            raise ValueError(f"slot out of range: {slot!r}")
        return slot

    def __getitem__(self, slot: int) -> Optional[Node]:
        return self._owners[self._check(slot)]

    def __setitem__(self, slot: int, node: Optional[Node]) -> None:
        self._owners[self._check(slot)] = node

    def get(self, slot: int) -> Optional[Node]:
        return self[slot]

    def assign_range(self, start: int, end: int, node: Node) -> None:
        """
        Assign every slot in [start, end] (both inclusive) to node.

        Raises:
            ValueError: If either bound is out of range or start > end
        """
        self._check(start)
        self._check(end)
        if start > end:
            raise ValueError(f"empty slot range: {start}-{end}")
        for slot in range(start, end + 1):
            self._owners[slot] = node

    def mapped_count(self) -> int:
        """Number of slots that currently have an owner."""
        return sum(1 for owner in self._owners if owner is not None)

    def is_complete(self) -> bool:
        return self.mapped_count() == self.size

    def owners(self) -> Dict[str, int]:
        """Number of slots owned per node name."""
        counts: Dict[str, int] = {}
        for owner in self._owners:
            if owner is not None:
                counts[owner.name] = counts.get(owner.name, 0) + 1
        return counts

    def clear(self) -> None:
        self._owners = [None] * self.size

    def __len__(self) -> int:
        return self.size
