"""Address -> ward resolution cascade."""

from __future__ import annotations

import random
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from seedgen.reference_index import AdministrativeUnit, ReferenceIndex
from seedgen.text_normalizer import expand_aliases, normalize

DISTRICT_PREFIX_PATTERN = re.compile(r"^(quan|huyen|thanh pho|thi xa)\s+")
MIN_STRIPPED_DISTRICT_LENGTH = 3

TIER_DIRECT_WARD = "direct_ward"
TIER_DISTRICT_RANDOM_WARD = "district_random_ward"
TIER_PROVINCE_RANDOM_WARD = "province_random_ward"


@dataclass
class WardMatch:
    ward_id: int
    ward_name: str
    district_name: str
    tier: str


@dataclass
class WardQuery:
    raw_address: str
    raw_province: str
    address_text: str
    province_text: str
    province: Optional[AdministrativeUnit] = None
    province_districts: List[AdministrativeUnit] = field(default_factory=list)


ProvinceStrategy = Callable[[WardQuery], Optional[AdministrativeUnit]]
WardStrategy = Callable[[WardQuery], Optional[WardMatch]]


class WardResolver:
    """Resolve ``(address text, province text)`` to a ward id.

    The province is found first (its own small cascade), then ward strategies
    run in order until one returns a match. Once a province is known the last
    strategy always answers when the province has any ward.
    """

    def __init__(self, index: ReferenceIndex, rng: Optional[random.Random] = None, *, verbose: bool = False):
        self.index = index
        self.rng = rng or random.Random()
        self.verbose = verbose
        self.province_strategies: List[ProvinceStrategy] = [
            self.province_by_containment,
            self.province_by_district_name,
            self.province_in_address,
        ]
        self.ward_strategies: List[WardStrategy] = [
            self.ward_in_address,
            self.district_then_random_ward,
            self.random_ward_in_province,
        ]

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message)

    def build_query(self, raw_address: str, raw_province: str) -> WardQuery:
        return WardQuery(
            raw_address=raw_address or "",
            raw_province=raw_province or "",
            address_text=normalize(raw_address),
            province_text=normalize(raw_province),
        )

    def resolve(self, raw_address: str, raw_province: str) -> Optional[WardMatch]:
        query = self.build_query(raw_address, raw_province)
        query.province = self.resolve_province(query)
        if query.province is None:
            self._log(f"No province match for: {raw_province}")
            return None
        query.province_districts = self.index.districts_of(query.province.id)
        return self.run_strategies(query, self.ward_strategies)

    def resolve_ward(self, raw_address: str, raw_province: str) -> Optional[int]:
        match = self.resolve(raw_address, raw_province)
        return match.ward_id if match else None

    def resolve_province(self, query: WardQuery) -> Optional[AdministrativeUnit]:
        for strategy in self.province_strategies:
            province = strategy(query)
            if province is not None:
                return province
        return None

    @staticmethod
    def run_strategies(query: WardQuery, strategies: Sequence[WardStrategy]) -> Optional[WardMatch]:
        for strategy in strategies:
            match = strategy(query)
            if match is not None:
                return match
        return None

    # --------------------
    # Province strategies
    # --------------------
    def province_by_containment(self, query: WardQuery) -> Optional[AdministrativeUnit]:
        text = expand_aliases(query.province_text)
        if not text:
            return None
        for name, province in self.index.provinces.items():
            if text in name or name in text:
                return province
        return None

    def province_by_district_name(self, query: WardQuery) -> Optional[AdministrativeUnit]:
        """The province field sometimes carries a district ("Ninh Kiều")."""
        text = query.province_text
        if not text:
            return None
        for name, district in self.index.districts.items():
            if name == text or name in text or text in name:
                province = self.index.province_of_district(district.id)
                if province is not None:
                    self._log(f"Found province by district match: {district.name} -> {province.name}")
                    return province
        return None

    def province_in_address(self, query: WardQuery) -> Optional[AdministrativeUnit]:
        text = query.address_text
        if not text:
            return None
        for name, province in self.index.provinces.items():
            if name in text:
                self._log(f"Found province in address text: {province.name}")
                return province
        return None

    # --------------------
    # Ward strategies
    # --------------------
    def _match(self, ward: AdministrativeUnit, district: AdministrativeUnit, tier: str) -> WardMatch:
        return WardMatch(ward_id=ward.id, ward_name=ward.name, district_name=district.name, tier=tier)

    def ward_in_address(self, query: WardQuery) -> Optional[WardMatch]:
        for district in query.province_districts:
            for ward in self.index.wards_of(district.id):
                if ward.normalized_name and ward.normalized_name in query.address_text:
                    self._log(f"Direct ward match: {ward.name} for {query.raw_address}")
                    return self._match(ward, district, TIER_DIRECT_WARD)
        return None

    def district_then_random_ward(self, query: WardQuery) -> Optional[WardMatch]:
        text = query.address_text
        for district in query.province_districts:
            name = district.normalized_name
            if not name:
                continue
            stripped = DISTRICT_PREFIX_PATTERN.sub("", name)
            matched = name in text or (len(stripped) > MIN_STRIPPED_DISTRICT_LENGTH and stripped in text)
            if not matched:
                continue
            wards = self.index.wards_of(district.id)
            if not wards:
                continue
            ward = self.rng.choice(wards)
            self._log(f"District match -> random ward: {ward.name} in {district.name} for {query.raw_address}")
            return self._match(ward, district, TIER_DISTRICT_RANDOM_WARD)
        return None

    def random_ward_in_province(self, query: WardQuery) -> Optional[WardMatch]:
        wards = self.index.wards_of_districts(query.province_districts)
        if not wards:
            return None
        ward = self.rng.choice(wards)
        district = self.index.district_by_id[ward.parent_id]
        self._log(f"Province fallback -> random ward: {ward.name} in {district.name} for {query.raw_address}")
        return self._match(ward, district, TIER_PROVINCE_RANDOM_WARD)
