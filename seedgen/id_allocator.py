"""Stable numeric ids for logical entities across repeated runs.

Every table owns one :class:`IdSequence` (seeded above the larger of the highest
id already written and a fixed floor) and one :class:`IdRegistry` mapping the
entity's natural key to the id it was given. Seeding the registry from the
previous output makes ``get_or_create`` return the old id for a key that was
already written, so re-runs only ever mint ids for genuinely new entities.
"""

from __future__ import annotations

import hashlib
import threading
from typing import Dict, Iterable, Iterator, Optional, Tuple

KEY_SEPARATOR = "|"


def compose_key(*parts: object) -> str:
    """Join natural attributes into a registry key; ``None`` becomes an empty field."""
    return KEY_SEPARATOR.join("" if part is None else str(part).strip() for part in parts)


def stable_hash(text: str) -> int:
    """Integer digest of ``text`` that is the same in every process."""
    return int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")


class IdSequence:
    def __init__(self, floor: int = 1499):
        self._current = floor

    @classmethod
    def above(cls, existing_ids: Iterable[int], floor: int) -> "IdSequence":
        return cls(max([floor, *existing_ids]))

    @property
    def current(self) -> int:
        return self._current

    def bump(self, observed: int) -> None:
        if observed > self._current:
            self._current = observed

    def next(self) -> int:
        self._current += 1
        return self._current


class IdRegistry:
    """Key -> id map backed by an :class:`IdSequence`.

    ``get_or_create`` is a check-then-insert; the lock keeps it safe if a
    caller ever shares one registry between threads.
    """

    def __init__(self, floor: int = 1499, sequence: Optional[IdSequence] = None):
        self.sequence = sequence or IdSequence(floor)
        self._ids: Dict[str, int] = {}
        self._lock = threading.Lock()

    def __contains__(self, key: str) -> bool:
        return key in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[Tuple[str, int]]:
        return iter(list(self._ids.items()))

    def get(self, key: str) -> Optional[int]:
        return self._ids.get(key)

    def seed(self, key: str, existing_id: int) -> None:
        """Register an id read back from earlier output; the first id seen for a key wins."""
        with self._lock:
            self._ids.setdefault(key, existing_id)
            self.sequence.bump(existing_id)

    def get_or_create(self, key: str) -> int:
        with self._lock:
            existing = self._ids.get(key)
            if existing is not None:
                return existing
            new_id = self.sequence.next()
            self._ids[key] = new_id
            return new_id
