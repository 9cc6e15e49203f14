"""Seed staff, driver, attendant and vehicle tables from a roster JSON.

Roster shape::

    {
      "staff": [
        {"name": "Do Van G", "age": 41, "gender": "MALE", "phone_number": "0945678901",
         "status": "ACTIVE", "role": "driver", "license_class": "D", "years_experience": 12},
        {"name": "Bui Thi H", "age": 27, "gender": "FEMALE", "phone_number": "0956789012",
         "role": "attendant"}
      ],
      "vehicles": [
        {"type": "LIMOUSINE", "type_factor": 1.5, "plate_number": "35A-55555",
         "brand": "Mercedes", "description": "Luxury bus route 7", "status": "ACTIVE"}
      ]
    }
"""

from __future__ import annotations

import json
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional

from seedgen.appender import AppendOnlyTable
from seedgen.config import data_path
from seedgen.id_allocator import IdSequence
from seedgen.tables import ATTENDANT, DRIVER, STAFF, VEHICLE, ensure_file, now_stamp, parse_int

ROLE_DRIVER = "driver"
ROLE_ATTENDANT = "attendant"
DEFAULT_STATUS = "ACTIVE"
SEAT_MAP_FLOOR = 1499


def _text(entry: Dict[str, Any], key: str, default: str = "") -> str:
    value = entry.get(key)
    if value is None:
        return default
    return str(value).strip()


def load_roster(path: Path) -> Dict[str, List[Dict[str, Any]]]:
    ensure_file(path)
    with path.open("r", encoding="utf-8") as f:
        roster = json.load(f)
    if not isinstance(roster, dict):
        raise TypeError(f"{path} must contain a JSON object with 'staff' and 'vehicles' lists")
    for section in ("staff", "vehicles"):
        value = roster.setdefault(section, [])
        if not isinstance(value, list):
            raise TypeError(f"'{section}' in {path} must be a list")
    return roster


def seed_people(entries: List[Dict[str, Any]], output_dir: Path, created_at: str) -> Counter:
    staff_table = AppendOnlyTable.open(output_dir, STAFF, created_at=created_at)
    driver_table = AppendOnlyTable.open(output_dir, DRIVER, created_at=created_at)
    attendant_table = AppendOnlyTable.open(output_dir, ATTENDANT, created_at=created_at)
    stats: Counter = Counter()

    for entry in entries:
        name = _text(entry, "name")
        phone = _text(entry, "phone_number")
        if not name or not phone:
            stats["skipped"] += 1
            print(f"[WARN] staff entry without name/phone skipped: {entry}", file=sys.stderr)
            continue
        staff_key = STAFF.row_key({"name": name, "phone_number": phone})
        staff_id = staff_table.ensure(
            staff_key,
            lambda _id: {
                "name": name,
                "age": _text(entry, "age"),
                "gender": _text(entry, "gender"),
                "phone_number": phone,
                "status": _text(entry, "status", DEFAULT_STATUS),
            },
        )
        stats["staff"] += 1

        role = _text(entry, "role").lower()
        if role == ROLE_DRIVER:
            driver_table.ensure(
                DRIVER.row_key({"staff_id": str(staff_id)}),
                lambda _id: {
                    "staff_id": str(staff_id),
                    "license_class": _text(entry, "license_class"),
                    "years_experience": _text(entry, "years_experience"),
                },
            )
            stats["drivers"] += 1
        elif role == ROLE_ATTENDANT:
            attendant_table.ensure(
                ATTENDANT.row_key({"staff_id": str(staff_id)}),
                lambda _id: {"staff_id": str(staff_id)},
            )
            stats["attendants"] += 1

    stats["appended_staff"] = staff_table.flush()
    stats["appended_drivers"] = driver_table.flush()
    stats["appended_attendants"] = attendant_table.flush()
    return stats


def seed_vehicles(entries: List[Dict[str, Any]], output_dir: Path, created_at: str) -> Counter:
    vehicle_table = AppendOnlyTable.open(output_dir, VEHICLE, created_at=created_at)
    seat_maps = IdSequence.above(
        (parse_int(row.get("seat_map_id")) or 0 for row in vehicle_table.rows),
        SEAT_MAP_FLOOR,
    )
    stats: Counter = Counter()

    for entry in entries:
        plate = _text(entry, "plate_number")
        brand = _text(entry, "brand")
        if not plate:
            stats["skipped"] += 1
            print(f"[WARN] vehicle entry without plate_number skipped: {entry}", file=sys.stderr)
            continue
        vehicle_table.ensure(
            VEHICLE.row_key({"plate_number": plate, "brand": brand}),
            lambda _id: {
                "seat_map_id": str(seat_maps.next()),
                "type": _text(entry, "type").upper(),
                "type_factor": _text(entry, "type_factor", "1.0"),
                "plate_number": plate,
                "brand": brand,
                "description": _text(entry, "description"),
                "status": _text(entry, "status", DEFAULT_STATUS),
            },
        )
        stats["vehicles"] += 1

    stats["appended_vehicles"] = vehicle_table.flush()
    return stats


def generate_staff(config: Dict[str, Any], roster_path: Optional[Path] = None) -> Counter:
    if roster_path is None:
        if not config.get("roster_file"):
            raise FileNotFoundError("No roster file given (set roster_file or pass --roster)")
        roster_path = data_path(config, "roster_file")
    roster = load_roster(Path(roster_path))
    output_dir = Path(config["output_dir"])
    created_at = now_stamp()

    stats = seed_people(roster["staff"], output_dir, created_at)
    stats.update(seed_vehicles(roster["vehicles"], output_dir, created_at))

    print("=== STAFF SUMMARY ===")
    print(f"Staff: {stats['staff']} (appended {stats['appended_staff']})")
    print(f"Drivers: {stats['drivers']} (appended {stats['appended_drivers']})")
    print(f"Attendants: {stats['attendants']} (appended {stats['appended_attendants']})")
    print(f"Vehicles: {stats['vehicles']} (appended {stats['appended_vehicles']})")
    if stats["skipped"]:
        print(f"Skipped roster entries: {stats['skipped']}")
    return stats
