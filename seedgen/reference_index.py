"""In-memory lookup maps over the administrative and station reference tables."""

from __future__ import annotations

import sys
from collections import Counter, defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from seedgen.tables import ADDRESS, DISTRICT, PROVINCE, STATION, WARD, ensure_file, iter_rows, parse_int
from seedgen.text_normalizer import normalize

STATION_DESCRIPTION_PREFIX = "Station in "


def _report_skipped(skipped: Counter) -> None:
    for label, count in skipped.items():
        print(f"[{label}] skipped {count} rows with a non-numeric id", file=sys.stderr)


@dataclass
class AdministrativeUnit:
    id: int
    name: str
    normalized_name: str
    parent_id: Optional[int] = None
    code: str = ""


@dataclass
class Station:
    id: int
    name: str
    normalized_name: str
    address_id: Optional[int] = None
    province: Optional[str] = None


class ReferenceIndex:
    """Lookup maps built once per run.

    Name maps are keyed by the normalized name and are last-write-wins: when two
    units share a normalized name only the one read last is reachable by name.
    The hierarchy (province -> districts -> wards) is kept by id, so every unit
    still takes part in hierarchy walks.
    """

    def __init__(self) -> None:
        self.provinces: Dict[str, AdministrativeUnit] = {}
        self.districts: Dict[str, AdministrativeUnit] = {}
        self.wards: Dict[str, AdministrativeUnit] = {}

        self.province_by_id: Dict[int, AdministrativeUnit] = {}
        self.district_by_id: Dict[int, AdministrativeUnit] = {}
        self.ward_by_id: Dict[int, AdministrativeUnit] = {}

        self.district_to_province: Dict[int, int] = {}
        self.ward_to_district: Dict[int, int] = {}
        self._districts_of_province: Dict[int, List[int]] = defaultdict(list)
        self._wards_of_district: Dict[int, List[int]] = defaultdict(list)

        self.station_name_to_id: Dict[str, int] = {}
        self.station_by_id: Dict[int, Station] = {}
        self.station_to_address: Dict[int, int] = {}
        self.address_text: Dict[int, str] = {}
        # normalized province text (from "Station in <Province>") -> station ids, input order
        self.province_stations: Dict[str, List[int]] = {}
        self.province_default_station: Dict[str, int] = {}

    # --------------------
    # Loading
    # --------------------
    def add_province(self, unit_id: int, name: str, code: str = "") -> AdministrativeUnit:
        unit = AdministrativeUnit(unit_id, name, normalize(name), code=code)
        self.province_by_id[unit_id] = unit
        if unit.normalized_name:
            self.provinces[unit.normalized_name] = unit
        return unit

    def add_district(self, unit_id: int, name: str, province_id: int, code: str = "") -> AdministrativeUnit:
        unit = AdministrativeUnit(unit_id, name, normalize(name), province_id, code)
        self.district_by_id[unit_id] = unit
        self.district_to_province[unit_id] = province_id
        self._districts_of_province[province_id].append(unit_id)
        if unit.normalized_name:
            self.districts[unit.normalized_name] = unit
        return unit

    def add_ward(self, unit_id: int, name: str, district_id: int, code: str = "") -> AdministrativeUnit:
        unit = AdministrativeUnit(unit_id, name, normalize(name), district_id, code)
        self.ward_by_id[unit_id] = unit
        self.ward_to_district[unit_id] = district_id
        self._wards_of_district[district_id].append(unit_id)
        if unit.normalized_name:
            self.wards[unit.normalized_name] = unit
        return unit

    def add_station(
        self,
        station_id: int,
        name: str,
        *,
        description: str = "",
        address_id: Optional[int] = None,
    ) -> Station:
        province = None
        if description.startswith(STATION_DESCRIPTION_PREFIX):
            province = description[len(STATION_DESCRIPTION_PREFIX):].strip()
        station = Station(station_id, name, normalize(name), address_id, province)
        self.station_by_id[station_id] = station
        if station.normalized_name:
            self.station_name_to_id[station.normalized_name] = station_id
        if address_id is not None:
            self.station_to_address[station_id] = address_id
        province_key = normalize(province)
        if province_key:
            # first station seen is the province default
            self.province_default_station.setdefault(province_key, station_id)
            self.province_stations.setdefault(province_key, []).append(station_id)
        return station

    def add_address(self, address_id: int, street_text: str) -> None:
        self.address_text[address_id] = street_text

    def load_admin_units(self, data_dir: Path) -> None:
        for path in (data_dir / PROVINCE.file_name, data_dir / DISTRICT.file_name, data_dir / WARD.file_name):
            ensure_file(path)
        skipped: Counter = Counter()

        for row in iter_rows(data_dir / PROVINCE.file_name, PROVINCE.delimiter, label="province"):
            unit_id = parse_int(row.get("id"))
            if unit_id is None:
                skipped["province"] += 1
                continue
            self.add_province(unit_id, row.get("name", "").strip(), row.get("province_code", "").strip())

        for row in iter_rows(data_dir / DISTRICT.file_name, DISTRICT.delimiter, label="district"):
            unit_id = parse_int(row.get("id"))
            parent_id = parse_int(row.get("province_id"))
            if unit_id is None or parent_id is None:
                skipped["district"] += 1
                continue
            self.add_district(unit_id, row.get("name", "").strip(), parent_id, row.get("district_code", "").strip())

        for row in iter_rows(data_dir / WARD.file_name, WARD.delimiter, label="ward"):
            unit_id = parse_int(row.get("id"))
            parent_id = parse_int(row.get("district_id"))
            if unit_id is None or parent_id is None:
                skipped["ward"] += 1
                continue
            self.add_ward(unit_id, row.get("name", "").strip(), parent_id, row.get("ward_code", "").strip())

        _report_skipped(skipped)
        print(
            f"Loaded {len(self.province_by_id)} provinces, "
            f"{len(self.district_by_id)} districts, {len(self.ward_by_id)} wards"
        )

    def load_stations(self, data_dir: Path) -> None:
        station_path = data_dir / STATION.file_name
        address_path = data_dir / ADDRESS.file_name
        ensure_file(station_path)
        ensure_file(address_path)
        skipped: Counter = Counter()

        for row in iter_rows(station_path, STATION.delimiter, label="station"):
            station_id = parse_int(row.get("id"))
            if station_id is None:
                skipped["station"] += 1
                continue
            self.add_station(
                station_id,
                row.get("name", "").strip(),
                description=row.get("description", "").strip(),
                address_id=parse_int(row.get("address_id")),
            )

        for row in iter_rows(address_path, ADDRESS.delimiter, label="address"):
            address_id = parse_int(row.get("id"))
            if address_id is None:
                skipped["address"] += 1
                continue
            self.add_address(address_id, row.get("street_address", ""))

        _report_skipped(skipped)
        print(f"Loaded {len(self.station_by_id)} stations, {len(self.address_text)} addresses")

    @classmethod
    def from_directory(cls, data_dir: Path, *, with_stations: bool = False) -> "ReferenceIndex":
        index = cls()
        index.load_admin_units(data_dir)
        if with_stations:
            index.load_stations(data_dir)
        return index

    # --------------------
    # Hierarchy
    # --------------------
    def districts_of(self, province_id: int) -> List[AdministrativeUnit]:
        return [self.district_by_id[d] for d in self._districts_of_province.get(province_id, [])]

    def wards_of(self, district_id: int) -> List[AdministrativeUnit]:
        return [self.ward_by_id[w] for w in self._wards_of_district.get(district_id, [])]

    def wards_of_districts(self, districts: Iterable[AdministrativeUnit]) -> List[AdministrativeUnit]:
        pooled: List[AdministrativeUnit] = []
        for district in districts:
            pooled.extend(self.wards_of(district.id))
        return pooled

    def province_of_district(self, district_id: int) -> Optional[AdministrativeUnit]:
        province_id = self.district_to_province.get(district_id)
        if province_id is None:
            return None
        return self.province_by_id.get(province_id)

    def station_address_pairs(self) -> List[tuple]:
        """(station_id, normalized address text) for every station with a known address."""
        pairs = []
        for station_id, address_id in self.station_to_address.items():
            text = self.address_text.get(address_id)
            if text:
                pairs.append((station_id, normalize(text)))
        return pairs
