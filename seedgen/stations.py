"""Resolve scraped station addresses to wards and seed address/station tables."""

from __future__ import annotations

import random
import sys
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from seedgen.appender import AppendOnlyTable
from seedgen.config import data_path
from seedgen.reference_index import STATION_DESCRIPTION_PREFIX, ReferenceIndex
from seedgen.tables import ADDRESS, NULL_MARKER, STATION, ensure_file, iter_rows, now_stamp
from seedgen.ward_resolver import (
    TIER_DIRECT_WARD,
    TIER_DISTRICT_RANDOM_WARD,
    TIER_PROVINCE_RANDOM_WARD,
    WardMatch,
    WardResolver,
)

AUDIT_COLUMNS = [
    "station_slug",
    "station_name",
    "address",
    "province",
    "ward_id",
    "matched_ward",
    "matched_district",
    "match_tier",
]


@dataclass
class StationRecord:
    station_slug: str
    station_name: str
    address: str
    province: str
    match: Optional[WardMatch] = None

    def audit_row(self) -> Dict[str, Any]:
        return {
            "station_slug": self.station_slug,
            "station_name": self.station_name,
            "address": self.address,
            "province": self.province,
            "ward_id": self.match.ward_id if self.match else "",
            "matched_ward": self.match.ward_name if self.match else "",
            "matched_district": self.match.district_name if self.match else "",
            "match_tier": self.match.tier if self.match else "",
        }


def load_station_records(path: Path) -> List[StationRecord]:
    ensure_file(path)
    records: List[StationRecord] = []
    for row in iter_rows(path, ",", label=path.name):
        name = (row.get("station_name") or "").strip()
        if not name:
            continue
        records.append(
            StationRecord(
                station_slug=(row.get("station_slug") or "").strip(),
                station_name=name,
                address=(row.get("address") or "").strip(),
                province=(row.get("province") or "").strip(),
            )
        )
    return records


def resolve_records(records: List[StationRecord], resolver: WardResolver) -> Counter:
    stats: Counter = Counter()
    for record in records:
        record.match = resolver.resolve(record.address, record.province)
        stats["total"] += 1
        if record.match is None:
            stats["unresolved"] += 1
            print(f"No ward found for: {record.station_name} ({record.province})", file=sys.stderr)
        else:
            stats[record.match.tier] += 1
    return stats


def write_audit(records: List[StationRecord], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame([record.audit_row() for record in records], columns=AUDIT_COLUMNS)
    df.to_csv(path, index=False, encoding="utf-8")
    print(f"Audit rows: {len(df)} -> {path}")


def seed_stations(records: List[StationRecord], output_dir: Path) -> Counter:
    stamp = now_stamp()
    address_table = AppendOnlyTable.open(output_dir, ADDRESS, created_at=stamp)
    station_table = AppendOnlyTable.open(output_dir, STATION, created_at=stamp)
    stats: Counter = Counter()

    for record in records:
        address_id: Optional[int] = None
        if record.address:
            ward_id = str(record.match.ward_id) if record.match else NULL_MARKER
            address_key = ADDRESS.row_key({"street_address": record.address})
            address_id = address_table.ensure(
                address_key,
                lambda _id: {
                    "street_address": record.address,
                    "latitude": "",
                    "longitude": "",
                    "ward_id": ward_id,
                },
            )

        description = f"{STATION_DESCRIPTION_PREFIX}{record.province}"
        station_key = STATION.row_key({"name": record.station_name, "description": description})
        station_table.ensure(
            station_key,
            lambda _id: {
                "name": record.station_name,
                "phone_number": "",
                "description": description,
                "active": "true",
                "address_id": str(address_id) if address_id is not None else NULL_MARKER,
                "station_img_id": NULL_MARKER,
            },
        )
        stats["stations"] += 1

    stats["appended_addresses"] = address_table.flush()
    stats["appended_stations"] = station_table.flush()
    return stats


def generate_stations(config: Dict[str, Any], rng: Optional[random.Random] = None) -> Counter:
    output_dir = Path(config["output_dir"])
    index = ReferenceIndex.from_directory(output_dir)
    resolver = WardResolver(index, rng, verbose=bool(config.get("verbose")))

    records = load_station_records(data_path(config, "station_addresses_file"))
    stats = resolve_records(records, resolver)
    write_audit(records, output_dir / config["address_audit_file"])
    stats.update(seed_stations(records, output_dir))

    print("=== STATIONS SUMMARY ===")
    print(f"Total records: {stats['total']}")
    print(f"Direct ward matches: {stats[TIER_DIRECT_WARD]}")
    print(f"District -> random ward: {stats[TIER_DISTRICT_RANDOM_WARD]}")
    print(f"Province -> random ward: {stats[TIER_PROVINCE_RANDOM_WARD]}")
    print(f"Unresolved (kept with null ward): {stats['unresolved']}")
    print(f"Appended addresses: {stats['appended_addresses']}")
    print(f"Appended stations: {stats['appended_stations']}")
    return stats
