"""Delimited table layouts and the plain read/write helpers shared by every stage."""

from __future__ import annotations

import csv
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
NULL_MARKER = "\\N"
STAMP_COLUMNS: Tuple[str, ...] = ("created_at", "updated_at", "is_deleted", "deleted_at", "deleted_by")


@dataclass(frozen=True)
class TableSchema:
    name: str
    columns: Tuple[str, ...]
    key_columns: Tuple[str, ...]
    delimiter: str = ";"
    id_floor: int = 1499
    id_column: str = "id"
    null_deleted_by: bool = False
    key_case_insensitive: bool = False

    @property
    def file_name(self) -> str:
        return f"{self.name}.csv"

    def row_key(self, row: Dict[str, str]) -> str:
        key = "|".join((row.get(col) or "").strip() for col in self.key_columns)
        return key.lower() if self.key_case_insensitive else key


def _cols(*head: str, tail: Sequence[str] = ()) -> Tuple[str, ...]:
    return tuple(head) + STAMP_COLUMNS + tuple(tail)


ADMIN_COMMON = ("name", "name_en", "full_name", "full_name_en", "code_name", "administrative_unit_id")

PROVINCE = TableSchema(
    "province",
    _cols("id", "province_code", *ADMIN_COMMON, "administrative_region_id"),
    key_columns=("province_code",),
    null_deleted_by=True,
)
DISTRICT = TableSchema(
    "district",
    _cols("id", "district_code", *ADMIN_COMMON, tail=("province_id",)),
    key_columns=("district_code",),
    null_deleted_by=True,
)
WARD = TableSchema(
    "ward",
    _cols("id", "ward_code", *ADMIN_COMMON, tail=("district_id",)),
    key_columns=("ward_code",),
    null_deleted_by=True,
)
ADDRESS = TableSchema(
    "address",
    _cols("id", "street_address", "latitude", "longitude", tail=("ward_id",)),
    key_columns=("street_address",),
    null_deleted_by=True,
)
STATION = TableSchema(
    "station",
    _cols("id", "name", "phone_number", "description", "active", tail=("address_id", "station_img_id")),
    key_columns=("name", "description"),
    null_deleted_by=True,
)
ROUTE = TableSchema(
    "route",
    _cols("id", "route_code", "distance_km", tail=("origin_id", "destination_id")),
    key_columns=("origin_id", "destination_id"),
    id_floor=999,
    null_deleted_by=True,
)
TRIP = TableSchema(
    "trip",
    _cols(
        "id", "route_id", "vehicle_id", "driver_id", "attendant_id",
        "trip_code", "departure_time", "arrival_time", "base_fare",
    ),
    key_columns=("route_id", "trip_code", "departure_time"),
    delimiter=",",
)
STAFF = TableSchema(
    "staff",
    _cols("id", "name", "age", "gender", "phone_number", "status"),
    key_columns=("name", "phone_number"),
    delimiter=",",
)
DRIVER = TableSchema(
    "driver",
    _cols("id", "staff_id", "license_class", "years_experience"),
    key_columns=("staff_id",),
    delimiter=",",
)
ATTENDANT = TableSchema(
    "attendant",
    _cols("id", "staff_id"),
    key_columns=("staff_id",),
    delimiter=",",
)
VEHICLE = TableSchema(
    "vehicle",
    _cols("id", "seat_map_id", "type", "type_factor", "plate_number", "brand", "description", "status"),
    key_columns=("plate_number", "brand"),
    delimiter=",",
)
SEAT_MAP = TableSchema(
    "seat_map",
    _cols("id", "name"),
    key_columns=("id",),
    delimiter=",",
    key_case_insensitive=True,
)
FLOOR = TableSchema(
    "floor",
    _cols("id", "seat_map_id", "floor_no", "price_factor_floor"),
    key_columns=("seat_map_id", "floor_no"),
    delimiter=",",
    key_case_insensitive=True,
)
SEAT = TableSchema(
    "seat",
    _cols("id", "floor_id", "seat_no", "row_no", "col_no", "price_factor", "seat_type"),
    key_columns=("floor_id", "seat_no"),
    delimiter=",",
    key_case_insensitive=True,
)


def ensure_file(path: Path) -> None:
    if not path.exists():
        raise FileNotFoundError(f"Missing required input file: {path}")


def now_stamp() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def stamp_common(row: Dict[str, str], schema: TableSchema, created_at: Optional[str] = None) -> Dict[str, str]:
    row["created_at"] = created_at or now_stamp()
    row["updated_at"] = ""
    row["is_deleted"] = "false"
    row["deleted_at"] = ""
    row["deleted_by"] = NULL_MARKER if schema.null_deleted_by else ""
    return row


def parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    value = value.strip()
    if not value or not value.lstrip("-").isdigit():
        return None
    return int(value)


def read_header(path: Path, delimiter: str) -> List[str]:
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.reader(handle, delimiter=delimiter)
        return next(reader, [])


def iter_rows(path: Path, delimiter: str, *, label: Optional[str] = None) -> Iterator[Dict[str, str]]:
    """Yield rows keyed by header name; rows with the wrong field count are skipped."""
    skipped = 0
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle, delimiter=delimiter)
        for row in reader:
            if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
                continue
            if None in row or any(value is None for value in row.values()):
                skipped += 1
                continue
            yield row
    if skipped:
        print(f"[{label or path.name}] skipped {skipped} malformed rows", file=sys.stderr)


def write_rows(path: Path, schema: TableSchema, rows: Sequence[Dict[str, str]], *, append: bool) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = "a" if append else "w"
    with path.open(mode, encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, delimiter=schema.delimiter, lineterminator="\n")
        if not append:
            writer.writerow(schema.columns)
        for row in rows:
            writer.writerow([row.get(col, "") for col in schema.columns])


@dataclass
class Table:
    """Rows of one table as read from disk, with the header that was found."""

    schema: TableSchema
    path: Path
    header: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)

    @property
    def exists(self) -> bool:
        return self.path.exists()


def load_table(path: Path, schema: TableSchema) -> Table:
    table = Table(schema=schema, path=path)
    if not path.exists():
        return table
    table.header = read_header(path, schema.delimiter)
    if table.header and tuple(table.header) != schema.columns:
        raise ValueError(
            f"{path} has an unexpected header for table '{schema.name}': "
            f"expected {list(schema.columns)}, found {table.header}"
        )
    table.rows = list(iter_rows(path, schema.delimiter, label=schema.file_name))
    return table
