"""Parsing of the pipe-delimited ticket dumps produced by the two scrapers.

``tickets_benxe.csv`` lines start with the route text itself
(``Bến xe Vũng Tàu đi Hà Nội | ...``); ``tickets_nhaxe.csv`` lines start with a
``[company-slug]`` tag followed by ``District - Province đi District - Province``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from seedgen.text_normalizer import fold_diacritics

SOURCE_BENXE = "benxe"
SOURCE_NHAXE = "nhaxe"

ROUTE_SEPARATOR = " đi "
ROUTE_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    SOURCE_BENXE: re.compile(r"^([^|]+)\s*\|"),
    SOURCE_NHAXE: re.compile(r"^\[.*?\]\s*([^|]+)\s*\|"),
}
MIN_TICKET_FIELDS = 13
ROUTE_CODE_PART_LENGTH = 10


@dataclass
class RouteText:
    source: str
    origin: str
    destination: str

    @property
    def code(self) -> str:
        return route_code(self.origin, self.destination)


@dataclass
class Ticket:
    source: str
    route_info: str
    route_code: Optional[str]
    bus_name: str
    departure_time: str
    arrival_time: str
    base_fare: int
    date: str


def route_code(origin: str, destination: str) -> str:
    def part(text: str) -> str:
        return re.sub(r"[^a-z0-9]", "", fold_diacritics(text)).upper()[:ROUTE_CODE_PART_LENGTH]

    return f"{part(origin)}_{part(destination)}"


def strip_company_tag(text: str) -> str:
    text = text.strip()
    if text.startswith("["):
        end = text.find("]")
        if end != -1:
            return text[end + 1:].strip()
    return text


def split_route(route_info: str) -> Optional[Tuple[str, str]]:
    """Split route text into (origin, destination).

    ``A - B - C - D`` without the ``đi`` separator is read as ``A - B`` to ``C - D``.
    """
    route_info = route_info.strip()
    if ROUTE_SEPARATOR in route_info:
        parts = route_info.split(ROUTE_SEPARATOR)
        if len(parts) != 2:
            return None
        origin, destination = parts[0].strip(), parts[1].strip()
    elif " - " in route_info:
        pieces = route_info.split(" - ")
        if len(pieces) < 4:
            return None
        origin = f"{pieces[0].strip()} - {pieces[1].strip()}"
        destination = f"{pieces[2].strip()} - {pieces[3].strip()}"
    else:
        return None
    if not origin or not destination:
        return None
    return origin, destination


def extract_route_info(line: str, source: str) -> Optional[str]:
    match = ROUTE_PATTERNS[source].match(line)
    if not match:
        return None
    return match.group(1).strip()


def parse_route_line(line: str, source: str) -> Optional[RouteText]:
    route_info = extract_route_info(line, source)
    if route_info is None:
        return None
    if source == SOURCE_BENXE:
        # benxe titles only use "đi"
        if ROUTE_SEPARATOR not in route_info:
            return None
    parts = split_route(route_info)
    if parts is None:
        return None
    return RouteText(source, parts[0], parts[1])


def iter_ticket_lines(path: Path) -> Iterator[str]:
    """Data lines of a ticket dump (header skipped, blank lines dropped)."""
    with path.open("r", encoding="utf-8-sig") as handle:
        next(handle, None)
        for raw_line in handle:
            line = raw_line.rstrip("\r\n")
            if line.strip():
                yield line


def parse_price(text: str) -> Optional[int]:
    """``"700.000₫" -> 700000``; dots and commas are thousands separators in VND."""
    digits = re.sub(r"[^0-9]", "", text or "")
    if not digits:
        return None
    return int(digits)


def format_datetime(date_text: str, time_text: str) -> Optional[str]:
    """``("21-10-2025", "07:30") -> "2025-10-21 07:30:00"``."""
    try:
        moment = datetime.strptime(f"{date_text.strip()} {time_text.strip()}", "%d-%m-%Y %H:%M")
    except ValueError:
        return None
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def parse_ticket(line: str, source: str, layout: Dict[str, int]) -> Optional[Ticket]:
    fields: List[str] = line.split("|")
    if len(fields) < MIN_TICKET_FIELDS:
        return None
    try:
        route_info = strip_company_tag(fields[layout["route"]])
        bus_name = fields[layout["bus_name"]].strip()
        departure_raw = fields[layout["departure"]]
        arrival_raw = fields[layout["arrival"]]
        price_raw = fields[layout["price"]]
        date_raw = fields[layout["date"]]
    except (IndexError, KeyError):
        return None

    base_fare = parse_price(price_raw)
    if base_fare is None:
        return None
    departure = format_datetime(date_raw, departure_raw)
    arrival = format_datetime(date_raw, arrival_raw)
    if departure is None or arrival is None:
        return None

    parts = split_route(route_info)
    code = route_code(*parts) if parts else None
    return Ticket(
        source=source,
        route_info=route_info,
        route_code=code,
        bus_name=bus_name,
        departure_time=departure,
        arrival_time=arrival,
        base_fare=base_fare,
        date=date_raw.strip(),
    )
