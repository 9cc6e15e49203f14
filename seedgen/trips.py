"""Generate trips from scraped ticket lines against the seeded routes and fleet."""

from __future__ import annotations

import random
import sys
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from rapidfuzz import process as rf_process
from rapidfuzz.fuzz import partial_ratio

from seedgen.appender import AppendOnlyTable
from seedgen.id_allocator import compose_key, stable_hash
from seedgen.routes import ticket_sources
from seedgen.tables import ATTENDANT, DRIVER, NULL_MARKER, ROUTE, TRIP, VEHICLE, iter_rows, now_stamp, parse_int
from seedgen.tickets import Ticket, iter_ticket_lines, parse_ticket

TRIP_CODE_SPACE = 1_000_000

TIER_EXACT = "exact"
TIER_CONTAINMENT = "containment"
TIER_FUZZY = "fuzzy"
TIER_FALLBACK = "fallback"


@dataclass
class RouteRef:
    id: int
    route_code: str


def load_ids(path: Path, delimiter: str, label: str) -> List[int]:
    if not path.exists():
        return []
    ids: List[int] = []
    for row in iter_rows(path, delimiter, label=label):
        row_id = parse_int(row.get("id"))
        if row_id is not None:
            ids.append(row_id)
    return ids


def load_routes(path: Path) -> List[RouteRef]:
    if not path.exists():
        return []
    routes: List[RouteRef] = []
    for row in iter_rows(path, ROUTE.delimiter, label=ROUTE.file_name):
        route_id = parse_int(row.get("id"))
        if route_id is None:
            continue
        routes.append(RouteRef(route_id, (row.get("route_code") or "").strip()))
    return routes


class RouteMatcher:
    """Ticket route code -> route id.

    Tiers: exact code, bidirectional containment, best ``partial_ratio`` at or
    above ``fuzzy_cutoff``, then a pick over the sorted route ids driven by a
    stable hash of the code. The pick depends on the current route table;
    :func:`build_trips` keeps the route of a trip that is already written.
    """

    def __init__(self, routes: List[RouteRef], *, fuzzy_cutoff: Optional[float] = 80):
        self.fuzzy_cutoff = fuzzy_cutoff
        self.by_code: Dict[str, int] = {}
        for route in routes:
            if route.route_code:
                self.by_code.setdefault(route.route_code, route.id)
        self.sorted_ids = sorted({route.id for route in routes})

    def match(self, code: str) -> Optional[Tuple[int, str]]:
        if not self.sorted_ids:
            return None
        if code:
            found = self.by_code.get(code)
            if found is not None:
                return found, TIER_EXACT
            for existing, route_id in self.by_code.items():
                if code in existing or existing in code:
                    return route_id, TIER_CONTAINMENT
            if self.fuzzy_cutoff and self.by_code:
                best = rf_process.extractOne(
                    code,
                    list(self.by_code.keys()),
                    scorer=partial_ratio,
                    score_cutoff=self.fuzzy_cutoff,
                )
                if best is not None:
                    return self.by_code[best[0]], TIER_FUZZY
        index = stable_hash(code) % len(self.sorted_ids)
        return self.sorted_ids[index], TIER_FALLBACK


class TripCodes:
    """Deterministic ``TRIPnnnnnn`` codes derived from a ticket's natural attributes.

    A code already handed to a different ticket in this run is bumped to the
    next free number.
    """

    def __init__(self) -> None:
        self._owner: Dict[str, str] = {}

    def code_for(self, signature: str) -> str:
        number = stable_hash(signature) % TRIP_CODE_SPACE
        while True:
            code = f"TRIP{number:06d}"
            owner = self._owner.setdefault(code, signature)
            if owner == signature:
                return code
            number = (number + 1) % TRIP_CODE_SPACE


def ticket_signature(ticket: Ticket) -> str:
    return compose_key(
        ticket.source,
        ticket.route_info,
        ticket.bus_name,
        ticket.departure_time,
        ticket.arrival_time,
        ticket.base_fare,
    )


class Fleet:
    def __init__(self, vehicle_ids: List[int], driver_ids: List[int], attendant_ids: List[int], rng: random.Random):
        self.vehicle_ids = vehicle_ids
        self.driver_ids = driver_ids
        self.attendant_ids = attendant_ids
        self.rng = rng

    @classmethod
    def load(cls, output_dir: Path, rng: random.Random) -> "Fleet":
        fleet = cls(
            load_ids(output_dir / VEHICLE.file_name, VEHICLE.delimiter, "vehicle"),
            load_ids(output_dir / DRIVER.file_name, DRIVER.delimiter, "driver"),
            load_ids(output_dir / ATTENDANT.file_name, ATTENDANT.delimiter, "attendant"),
            rng,
        )
        print(
            f"Loaded {len(fleet.vehicle_ids)} vehicles, "
            f"{len(fleet.driver_ids)} drivers, {len(fleet.attendant_ids)} attendants"
        )
        for label, ids in (("vehicle", fleet.vehicle_ids), ("driver", fleet.driver_ids), ("attendant", fleet.attendant_ids)):
            if not ids:
                print(f"[WARN] No {label} ids in {output_dir}; trips get a null {label}_id", file=sys.stderr)
        return fleet

    def pick(self, ids: List[int]) -> str:
        if not ids:
            return NULL_MARKER
        return str(self.rng.choice(ids))


def build_trips(
    tickets: List[Ticket],
    matcher: RouteMatcher,
    fleet: Fleet,
    table: AppendOnlyTable,
) -> Counter:
    """Trips already written are found by ``(trip_code, departure_time)`` and keep their route."""
    stats: Counter = Counter()
    codes = TripCodes()
    placed = {(row.get("trip_code"), row.get("departure_time")) for row in table.existing.values()}
    for ticket in tickets:
        trip_code = codes.code_for(ticket_signature(ticket))
        if (trip_code, ticket.departure_time) in placed:
            stats["existing"] += 1
            continue

        matched = matcher.match(ticket.route_code or "")
        if matched is None:
            stats["no_route"] += 1
            continue
        route_id, tier = matched
        stats[f"route_{tier}"] += 1

        key = TRIP.row_key(
            {"route_id": str(route_id), "trip_code": trip_code, "departure_time": ticket.departure_time}
        )
        table.ensure(
            key,
            lambda _id: {
                "route_id": str(route_id),
                "vehicle_id": fleet.pick(fleet.vehicle_ids),
                "driver_id": fleet.pick(fleet.driver_ids),
                "attendant_id": fleet.pick(fleet.attendant_ids),
                "trip_code": trip_code,
                "departure_time": ticket.departure_time,
                "arrival_time": ticket.arrival_time,
                "base_fare": f"{ticket.base_fare:.2f}",
            },
        )
        placed.add((trip_code, ticket.departure_time))
        stats["new"] += 1
    return stats


def read_tickets(config: Dict[str, Any]) -> Tuple[List[Ticket], Counter]:
    stats: Counter = Counter()
    tickets: List[Ticket] = []
    for source, path in ticket_sources(config):
        layout = config["ticket_layouts"][source]
        for line in iter_ticket_lines(path):
            stats["lines"] += 1
            ticket = parse_ticket(line, source, layout)
            if ticket is None:
                stats["skipped"] += 1
                continue
            tickets.append(ticket)
    stats["parsed"] = len(tickets)
    return tickets, stats


def generate_trips(config: Dict[str, Any], rng: Optional[random.Random] = None) -> Counter:
    rng = rng or random.Random()
    output_dir = Path(config["output_dir"])
    routes = load_routes(output_dir / ROUTE.file_name)
    print(f"Loaded {len(routes)} routes")
    if not routes:
        print(f"[WARN] No routes in {output_dir / ROUTE.file_name}; no trips can be generated", file=sys.stderr)

    tickets, stats = read_tickets(config)
    matcher = RouteMatcher(routes, fuzzy_cutoff=config.get("route_fuzzy_cutoff"))
    fleet = Fleet.load(output_dir, rng)
    table = AppendOnlyTable.open(output_dir, TRIP, created_at=now_stamp())

    stats.update(build_trips(tickets, matcher, fleet, table))
    stats["appended"] = table.flush()

    print("=== TRIPS SUMMARY ===")
    print(f"Ticket lines: {stats['lines']}")
    print(f"Parsed tickets: {stats['parsed']}")
    print(f"Skipped lines: {stats['skipped']}")
    print(
        "Route matches: "
        f"exact={stats['route_exact']}, containment={stats['route_containment']}, "
        f"fuzzy={stats['route_fuzzy']}, fallback={stats['route_fallback']}"
    )
    print(f"Already present: {stats['existing']}")
    print(f"Appended rows: {stats['appended']}")
    return stats
