"""Seed province/district/ward tables from the provinces.open-api.vn JSON dump."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List

from seedgen.appender import AppendOnlyTable
from seedgen.config import data_path
from seedgen.tables import DISTRICT, PROVINCE, WARD, ensure_file, now_stamp


def _load_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _unit_columns(entry: Dict[str, Any]) -> Dict[str, str]:
    name = str(entry.get("name") or "").strip()
    return {
        "name": name,
        "name_en": "",
        "full_name": name,
        "full_name_en": "",
        "code_name": str(entry.get("codename") or "").strip(),
        "administrative_unit_id": "",
    }


def seed_admin_units(provinces: List[Dict[str, Any]], output_dir: Path) -> Counter:
    stamp = now_stamp()
    province_table = AppendOnlyTable.open(output_dir, PROVINCE, created_at=stamp)
    district_table = AppendOnlyTable.open(output_dir, DISTRICT, created_at=stamp)
    ward_table = AppendOnlyTable.open(output_dir, WARD, created_at=stamp)
    stats: Counter = Counter()

    for province in provinces:
        province_code = str(province.get("code") or "").strip()
        if not province_code:
            stats["skipped"] += 1
            continue
        province_id = province_table.ensure(
            province_code,
            lambda _id: {
                "province_code": province_code,
                **_unit_columns(province),
                "administrative_region_id": "",
            },
        )
        stats["provinces"] += 1

        for district in province.get("districts") or []:
            district_code = str(district.get("code") or "").strip()
            if not district_code:
                stats["skipped"] += 1
                continue
            district_id = district_table.ensure(
                district_code,
                lambda _id: {
                    "district_code": district_code,
                    **_unit_columns(district),
                    "province_id": str(province_id),
                },
            )
            stats["districts"] += 1

            for ward in district.get("wards") or []:
                ward_code = str(ward.get("code") or "").strip()
                if not ward_code:
                    stats["skipped"] += 1
                    continue
                ward_table.ensure(
                    ward_code,
                    lambda _id: {
                        "ward_code": ward_code,
                        **_unit_columns(ward),
                        "district_id": str(district_id),
                    },
                )
                stats["wards"] += 1

    stats["appended_provinces"] = province_table.flush()
    stats["appended_districts"] = district_table.flush()
    stats["appended_wards"] = ward_table.flush()
    return stats


def generate_admin_units(config: Dict[str, Any]) -> Counter:
    source = data_path(config, "admin_units_file")
    ensure_file(source)
    payload = _load_json(source)
    if not isinstance(payload, list):
        raise TypeError(f"{source} must contain a JSON array of provinces")

    stats = seed_admin_units(payload, Path(config["output_dir"]))
    print("=== ADMIN UNITS SUMMARY ===")
    print(f"Provinces: {stats['provinces']} (appended {stats['appended_provinces']})")
    print(f"Districts: {stats['districts']} (appended {stats['appended_districts']})")
    print(f"Wards: {stats['wards']} (appended {stats['appended_wards']})")
    if stats["skipped"]:
        print(f"Skipped entries without a code: {stats['skipped']}")
    return stats
