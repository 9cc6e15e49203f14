"""Turn scraped route titles into station-to-station routes."""

from __future__ import annotations

import random
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from seedgen.appender import AppendOnlyTable
from seedgen.config import data_path
from seedgen.reference_index import ReferenceIndex
from seedgen.station_resolver import StationResolver
from seedgen.tables import ROUTE, now_stamp
from seedgen.tickets import (
    SOURCE_BENXE,
    SOURCE_NHAXE,
    RouteText,
    extract_route_info,
    iter_ticket_lines,
    parse_route_line,
)

TICKET_FILE_KEYS = {
    SOURCE_BENXE: "benxe_tickets_file",
    SOURCE_NHAXE: "nhaxe_tickets_file",
}


def ticket_sources(config: Dict[str, Any]) -> List[Tuple[str, Path]]:
    """Existing ticket dumps in processing order (benxe first)."""
    sources: List[Tuple[str, Path]] = []
    for source in (SOURCE_BENXE, SOURCE_NHAXE):
        path = data_path(config, TICKET_FILE_KEYS[source])
        if path.exists():
            sources.append((source, path))
        else:
            print(f"[WARN] {source} ticket file not found: {path}", file=sys.stderr)
    if not sources:
        raise FileNotFoundError("No ticket file found (need at least one of benxe/nhaxe)")
    return sources


def resolve_endpoints(route: RouteText, resolver: StationResolver) -> Tuple[Optional[int], Optional[int]]:
    if route.source == SOURCE_BENXE:
        return resolver.resolve_station(route.origin), resolver.resolve_station(route.destination)
    return resolver.resolve_location(route.origin), resolver.resolve_location(route.destination)


def collect_routes(
    lines: Iterable[str],
    source: str,
    resolver: StationResolver,
    table: AppendOnlyTable,
    *,
    verbose: bool = False,
) -> Counter:
    stats: Counter = Counter()
    seen_texts = set()
    for line in lines:
        stats["total"] += 1
        if extract_route_info(line, source) is None:
            continue
        stats["matched"] += 1
        route = parse_route_line(line, source)
        if route is None:
            stats["skipped"] += 1
            continue
        stats["parsed"] += 1
        text_key = (route.origin, route.destination)
        if text_key in seen_texts:
            continue
        seen_texts.add(text_key)

        origin_id, destination_id = resolve_endpoints(route, resolver)
        if origin_id is None or destination_id is None:
            stats["unresolved"] += 1
            if verbose:
                print(f"Unresolved route: {route.origin} -> {route.destination}", file=sys.stderr)
            continue

        key = ROUTE.row_key({"origin_id": str(origin_id), "destination_id": str(destination_id)})
        if key in table:
            stats["duplicate"] += 1
            continue
        table.ensure(
            key,
            lambda _id: {
                "route_code": route.code,
                "distance_km": "",
                "origin_id": str(origin_id),
                "destination_id": str(destination_id),
            },
        )
        stats["unique"] += 1
    return stats


def generate_routes(config: Dict[str, Any], rng: Optional[random.Random] = None) -> Counter:
    output_dir = Path(config["output_dir"])
    sources = ticket_sources(config)
    index = ReferenceIndex.from_directory(output_dir, with_stations=True)
    resolver = StationResolver(index, rng, fuzzy_cutoff=config.get("station_fuzzy_cutoff"))
    table = AppendOnlyTable.open(output_dir, ROUTE, created_at=now_stamp())

    totals: Counter = Counter()
    for source, path in sources:
        stats = collect_routes(
            iter_ticket_lines(path), source, resolver, table, verbose=bool(config.get("verbose"))
        )
        print(f"=== {source.upper()} ROUTES ===")
        print(f"Total lines: {stats['total']}")
        print(f"Lines matching route pattern: {stats['matched']}")
        print(f"Parsed routes: {stats['parsed']}")
        print(f"Skipped lines: {stats['skipped']}")
        print(f"Unresolved endpoints: {stats['unresolved']}")
        print(f"Unique new routes: {stats['unique']}")
        totals.update(stats)

    totals["appended"] = table.flush()
    print("=== ROUTES SUMMARY ===")
    print(f"Unique routes: {totals['unique']}")
    print(f"Collapsed duplicates: {totals['duplicate']}")
    print(f"Appended rows: {totals['appended']}")
    return totals
