"""Derive seat_map, floor and seat tables from vehicle.csv.

seat_map ids are the vehicles' ``seat_map_id`` values; floors and seats get
their own sequences above the highest id already written.
"""

from __future__ import annotations

import sys
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from seedgen.appender import AppendOnlyTable
from seedgen.id_allocator import compose_key, stable_hash
from seedgen.tables import FLOOR, SEAT, SEAT_MAP, VEHICLE, ensure_file, iter_rows, now_stamp

LIMOUSINE = "LIMOUSINE"
SEAT_TYPE_SLEEPER = "SLEEPER"
SEAT_TYPE_NORMAL = "NORMAL"

MIN_SEATS_PER_FLOOR = 15
MAX_SEATS_PER_FLOOR = 20
SEATS_PER_ROW = 4
FLOOR_FACTORS = {1: 1.0, 2: 1.1}
SEAT_FACTOR = 1.0


@dataclass
class SeatMapPlan:
    id: str
    type: str
    name: str

    @property
    def floor_count(self) -> int:
        return 1 if self.type == LIMOUSINE else 2

    @property
    def seat_type(self) -> str:
        return SEAT_TYPE_SLEEPER if self.type == LIMOUSINE else SEAT_TYPE_NORMAL


def seat_count(seat_map_id: str, floor_no: int) -> int:
    span = MAX_SEATS_PER_FLOOR - MIN_SEATS_PER_FLOOR + 1
    return stable_hash(compose_key("seatcount", seat_map_id, floor_no)) % span + MIN_SEATS_PER_FLOOR


def seat_no(row: int, col: int) -> str:
    """``(1, 1) -> "A01"``, ``(2, 3) -> "B03"``."""
    return f"{chr(ord('A') + row - 1)}{col:02d}"


def seat_layout(count: int) -> List[tuple]:
    """(seat_no, row_no, col_no) for ``count`` seats laid out row by row."""
    layout = []
    for i in range(count):
        row = i // SEATS_PER_ROW + 1
        col = i % SEATS_PER_ROW + 1
        layout.append((seat_no(row, col), row, col))
    return layout


def load_seat_maps(vehicle_path: Path) -> List[SeatMapPlan]:
    ensure_file(vehicle_path)
    plans: Dict[str, SeatMapPlan] = {}
    for row in iter_rows(vehicle_path, VEHICLE.delimiter, label=VEHICLE.file_name):
        seat_map_id = (row.get("seat_map_id") or "").strip()
        if not seat_map_id or seat_map_id in plans:
            continue
        vehicle_type = (row.get("type") or "").strip().upper()
        plate = (row.get("plate_number") or "").strip()
        if plate:
            name = f"SM-{plate}"
        elif vehicle_type:
            name = f"SM-{vehicle_type}"
        else:
            name = f"SM-{seat_map_id[:8]}"
        plans[seat_map_id] = SeatMapPlan(seat_map_id, vehicle_type, name)
    return list(plans.values())


def build_seats(plans: List[SeatMapPlan], output_dir: Path) -> Counter:
    stamp = now_stamp()
    seat_maps = AppendOnlyTable.open(output_dir, SEAT_MAP, created_at=stamp)
    floors = AppendOnlyTable.open(output_dir, FLOOR, created_at=stamp)
    seats = AppendOnlyTable.open(output_dir, SEAT, created_at=stamp)
    stats: Counter = Counter()

    for plan in plans:
        seat_maps.add_keyed_row({"id": plan.id, "name": plan.name})
        for floor_no in range(1, plan.floor_count + 1):
            floor_id = floors.ensure(
                FLOOR.row_key({"seat_map_id": plan.id, "floor_no": str(floor_no)}),
                lambda _id: {
                    "seat_map_id": plan.id,
                    "floor_no": str(floor_no),
                    "price_factor_floor": f"{FLOOR_FACTORS.get(floor_no, 1.0):.3f}",
                },
            )
            stats["floors"] += 1
            for number, row_no, col_no in seat_layout(seat_count(plan.id, floor_no)):
                seats.ensure(
                    SEAT.row_key({"floor_id": str(floor_id), "seat_no": number}),
                    lambda _id: {
                        "floor_id": str(floor_id),
                        "seat_no": number,
                        "row_no": str(row_no),
                        "col_no": str(col_no),
                        "price_factor": f"{SEAT_FACTOR:.3f}",
                        "seat_type": plan.seat_type,
                    },
                )
                stats["seats"] += 1

    stats["seat_maps"] = len(plans)
    stats["appended_seat_maps"] = seat_maps.flush()
    stats["appended_floors"] = floors.flush()
    stats["appended_seats"] = seats.flush()
    return stats


def generate_seats(config: Dict[str, Any]) -> Counter:
    output_dir = Path(config["output_dir"])
    plans = load_seat_maps(output_dir / VEHICLE.file_name)
    if not plans:
        print(f"[WARN] no seat_map_id found in {output_dir / VEHICLE.file_name}", file=sys.stderr)
    stats = build_seats(plans, output_dir)

    print("=== SEATS SUMMARY ===")
    print(f"Seat maps: {stats['seat_maps']} (appended {stats['appended_seat_maps']})")
    print(f"Floors: {stats['floors']} (appended {stats['appended_floors']})")
    print(f"Seats: {stats['seats']} (appended {stats['appended_seats']})")
    return stats
