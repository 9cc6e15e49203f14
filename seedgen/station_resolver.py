"""Location text -> station id resolution for route endpoints."""

from __future__ import annotations

import random
from typing import Callable, List, Optional, Tuple

from rapidfuzz import process as rf_process
from rapidfuzz.fuzz import ratio

from seedgen.reference_index import ReferenceIndex
from seedgen.text_normalizer import normalize

SAIGON_ALIAS = normalize("Sài Gòn")
HO_CHI_MINH = normalize("Hồ Chí Minh")
LOCATION_SEPARATOR = " - "

StationStrategy = Callable[[str], Optional[int]]


class StationResolver:
    """Map a bare place name or a ``"District - Province"`` pair to a station id.

    Candidates that tie (Sài Gòn stations) are picked with the injected
    ``rng``; nothing is cached, so an ambiguous input may land on a different
    station in another run.
    """

    def __init__(
        self,
        index: ReferenceIndex,
        rng: Optional[random.Random] = None,
        *,
        fuzzy_cutoff: Optional[float] = 90,
    ):
        self.index = index
        self.rng = rng or random.Random()
        self.fuzzy_cutoff = fuzzy_cutoff
        self._address_pairs: List[Tuple[int, str]] = index.station_address_pairs()
        self._province_names = {unit.id: name for name, unit in index.provinces.items()}
        self.bare_strategies: List[StationStrategy] = [
            self.saigon_station,
            self.station_by_name,
            self.default_station_of_province,
            self.station_by_address,
            self.station_by_fuzzy_name,
        ]

    def resolve_station(self, location_text: str) -> Optional[int]:
        """Run the name cascade; text that misses it and reads ``"District - Province"`` runs the pair cascade."""
        text = normalize(location_text)
        if not text:
            return None
        for strategy in self.bare_strategies:
            station_id = strategy(text)
            if station_id is not None:
                return station_id
        if LOCATION_SEPARATOR in location_text:
            return self.resolve_location(location_text)
        return None

    def resolve_location(self, location_text: str) -> Optional[int]:
        parts = [part.strip() for part in (location_text or "").split(LOCATION_SEPARATOR)]
        if len(parts) == 2:
            district, province = normalize(parts[0]), normalize(parts[1])
            station_id = self.station_by_district(district, province)
            if station_id is not None:
                return station_id
            return self.station_by_province(province)
        if len(parts) == 1:
            location = normalize(parts[0])
            if not location:
                return None
            station_id = self.saigon_station(location)
            if station_id is not None:
                return station_id
            station_id = self.station_by_district(location, None)
            if station_id is not None:
                return station_id
            return self.station_by_province(location)
        return None

    # --------------------
    # Bare-name strategies
    # --------------------
    def saigon_station(self, text: str) -> Optional[int]:
        if text != SAIGON_ALIAS:
            return None
        candidates = self.index.province_stations.get(HO_CHI_MINH)
        if not candidates:
            for province, stations in self.index.province_stations.items():
                if HO_CHI_MINH in province:
                    candidates = stations
                    break
        if not candidates:
            return None
        return self.rng.choice(candidates)

    def station_by_name(self, text: str) -> Optional[int]:
        return self.index.station_name_to_id.get(text)

    def default_station_of_province(self, text: str) -> Optional[int]:
        return self.index.province_default_station.get(text)

    def station_by_address(self, text: str) -> Optional[int]:
        for station_id, address in self._address_pairs:
            if text in address:
                return station_id
        return None

    def station_by_fuzzy_name(self, text: str) -> Optional[int]:
        if not self.fuzzy_cutoff or not self.index.station_name_to_id:
            return None
        best = rf_process.extractOne(
            text,
            list(self.index.station_name_to_id.keys()),
            scorer=ratio,
            score_cutoff=self.fuzzy_cutoff,
        )
        if best is None:
            return None
        return self.index.station_name_to_id[best[0]]

    # --------------------
    # District / province lookups
    # --------------------
    def province_id_by_name(self, province: str) -> Optional[int]:
        unit = self.index.provinces.get(province)
        if unit is not None:
            return unit.id
        for name, unit in self.index.provinces.items():
            if province in name or name in province:
                return unit.id
        return None

    def _province_agrees(self, district_id: int, province: Optional[str]) -> bool:
        if not province:
            return True
        expected = self.province_id_by_name(province)
        if expected is None:
            return True
        return self.index.district_to_province.get(district_id) == expected

    def station_by_district(self, district: str, province: Optional[str]) -> Optional[int]:
        if not district:
            return None
        exact = self.index.districts.get(district)
        if exact is not None:
            if not self._province_agrees(exact.id, province):
                return None
            return self.station_in_province(exact.parent_id)

        for name, unit in self.index.districts.items():
            if district in name or name in district:
                if not self._province_agrees(unit.id, province):
                    continue
                return self.station_in_province(unit.parent_id)
        return None

    def station_in_province(self, province_id: Optional[int]) -> Optional[int]:
        name = self._province_names.get(province_id)
        if name is None:
            return None
        station_id = self.index.province_default_station.get(name)
        if station_id is not None:
            return station_id
        # station descriptions carry the bare province name ("Hồ Chí Minh")
        for province, default_id in self.index.province_default_station.items():
            if province in name:
                return default_id
        return None

    def station_by_province(self, province: str) -> Optional[int]:
        if not province:
            return None
        station_id = self.index.province_default_station.get(province)
        if station_id is not None:
            return station_id
        for name, default_id in self.index.province_default_station.items():
            if name in province or province in name:
                return default_id
        return self.station_by_address(province)
