"""Append-only, key-indexed output tables."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from seedgen.id_allocator import IdRegistry
from seedgen.tables import Table, TableSchema, load_table, now_stamp, parse_int, stamp_common, write_rows

RowFactory = Callable[[int], Dict[str, str]]


class AppendOnlyTable:
    """One output table opened for a run.

    Existing rows are indexed by their natural key and seed the id registry;
    rows for new keys are buffered and written by :meth:`flush`, which creates
    the file (header included) when it does not exist yet and appends otherwise.
    Existing rows are never rewritten.
    """

    def __init__(self, path: Path, schema: TableSchema, *, created_at: Optional[str] = None):
        self.path = path
        self.schema = schema
        self.created_at = created_at or now_stamp()
        self.registry = IdRegistry(schema.id_floor)
        self.existing: Dict[str, Dict[str, str]] = {}
        self.new_rows: List[Dict[str, str]] = []
        self._new_keys: Dict[str, Dict[str, str]] = {}
        self._table: Table = load_table(path, schema)
        self._index_existing()

    @classmethod
    def open(cls, output_dir: Path, schema: TableSchema, **kwargs) -> "AppendOnlyTable":
        return cls(output_dir / schema.file_name, schema, **kwargs)

    def _index_existing(self) -> None:
        skipped = 0
        for row in self._table.rows:
            row_id = parse_int(row.get(self.schema.id_column))
            if row_id is None or row_id <= 0:
                skipped += 1
                continue
            key = self.schema.row_key(row)
            if key in self.existing:
                continue
            self.existing[key] = row
            self.registry.seed(key, row_id)
        if skipped:
            print(f"[{self.schema.file_name}] skipped {skipped} rows without a numeric id", file=sys.stderr)

    @property
    def rows(self) -> List[Dict[str, str]]:
        return self._table.rows + self.new_rows

    def __contains__(self, key: str) -> bool:
        return key in self.existing or key in self._new_keys

    def get_row(self, key: str) -> Optional[Dict[str, str]]:
        return self.existing.get(key) or self._new_keys.get(key)

    def ensure(self, key: str, build_row: RowFactory) -> int:
        """Return the id for ``key``; a missing key gets a new id and a buffered row."""
        existing = self.get_row(key)
        if existing is not None:
            found = parse_int(existing.get(self.schema.id_column))
            if found is not None:
                return found
        new_id = self.registry.get_or_create(key)
        row = build_row(new_id)
        row.setdefault(self.schema.id_column, str(new_id))
        stamp_common(row, self.schema, self.created_at)
        self.new_rows.append(row)
        self._new_keys[key] = row
        return new_id

    def add_keyed_row(self, row: Dict[str, str]) -> bool:
        """Buffer a row whose id is supplied by the caller; returns False if its key exists."""
        key = self.schema.row_key(row)
        if key in self:
            return False
        stamp_common(row, self.schema, self.created_at)
        self.new_rows.append(row)
        self._new_keys[key] = row
        return True

    def flush(self) -> int:
        """Write buffered rows and return how many were appended."""
        created = not self._table.exists or not self._table.header
        if created:
            write_rows(self.path, self.schema, self.new_rows, append=False)
        elif self.new_rows:
            write_rows(self.path, self.schema, self.new_rows, append=True)
        appended = len(self.new_rows)
        if created:
            print(f"Created {self.schema.file_name} with {appended} rows.")
        elif appended:
            print(f"Appended {appended} rows to {self.schema.file_name}.")
        else:
            print(f"No new {self.schema.name} rows to append.")
        self._table.rows.extend(self.new_rows)
        self._table.header = list(self.schema.columns)
        self.existing.update(self._new_keys)
        self.new_rows = []
        self._new_keys.clear()
        return appended
