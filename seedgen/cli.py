"""Seed the bus-booking tables: administrative units, stations, routes, staff, seats and trips."""

from __future__ import annotations

import argparse
import random
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from seedgen.admin_units import generate_admin_units
from seedgen.config import load_config
from seedgen.routes import generate_routes
from seedgen.seats import generate_seats
from seedgen.staff import generate_staff
from seedgen.stations import generate_stations
from seedgen.trips import generate_trips

COMMANDS = ("admin-units", "stations", "routes", "trips", "staff", "seats", "all")


def run_stage(name: str, config: Dict[str, Any], rng: random.Random, roster: Optional[Path]) -> None:
    stages: Dict[str, Callable[[], Any]] = {
        "admin-units": lambda: generate_admin_units(config),
        "stations": lambda: generate_stations(config, rng),
        "routes": lambda: generate_routes(config, rng),
        "trips": lambda: generate_trips(config, rng),
        "staff": lambda: generate_staff(config, roster),
        "seats": lambda: generate_seats(config),
    }
    stages[name]()


def pipeline(config: Dict[str, Any], roster: Optional[Path]) -> List[str]:
    """Stages run by ``all``; staff only when a roster is available."""
    order = ["admin-units", "stations", "routes"]
    if roster is not None or config.get("roster_file"):
        order.append("staff")
    order += ["seats", "trips"]
    return order


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="seedgen", description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file overriding the default configuration.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the scraped inputs (admin-unit JSON, station addresses, ticket dumps).",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory holding the generated tables; read back on every run.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible tie-breaking.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Print one line per resolved record.",
    )
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument(
        "--roster",
        type=Path,
        default=None,
        help="Roster JSON with 'staff' and 'vehicles' lists (staff stage).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    try:
        config = load_config(
            args.config,
            data_dir=args.data_dir,
            output_dir=args.output_dir,
            seed=args.seed,
            verbose=args.verbose,
        )
        rng = random.Random(config.get("seed"))
        stages = pipeline(config, args.roster) if args.command == "all" else [args.command]
        for stage in stages:
            print(f"--- {stage} ---")
            run_stage(stage, config, rng, args.roster)
    except (FileNotFoundError, ValueError, TypeError) as exc:
        raise SystemExit(str(exc)) from exc


if __name__ == "__main__":
    main()
