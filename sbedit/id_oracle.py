"""Fresh identifier generation for the codec.

Ids are identity only: nothing reads meaning into them. An ``IdOracle`` hands
out ids that are unique among the ids it was seeded with and the ids it has
already issued, and it does so deterministically, so encoding the same project
twice yields the same output.
"""

from itertools import count
from typing import Iterable, Optional, Set


class IdOracle:
    def __init__(self, reserved: Iterable[Optional[str]] = (), prefix: str = "id") -> None:
        self.prefix = prefix
        self._taken: Set[str] = set()
        self._counter = count(1)
        self.reserve(*reserved)

    def reserve(self, *ids: Optional[str]) -> None:
        """Mark ids as in use so they are never issued."""
        self._taken.update(i for i in ids if i)

    def fresh(self, prefix: Optional[str] = None) -> str:
        """Return an id not reserved and not previously issued."""
        prefix = prefix or self.prefix
        while True:
            candidate = f"{prefix}_{next(self._counter)}"
            if candidate not in self._taken:
                self._taken.add(candidate)
                return candidate

    def __contains__(self, item: str) -> bool:
        return item in self._taken

    def __len__(self) -> int:
        return len(self._taken)
