from __future__ import annotations

import json
from pathlib import Path

import pytest

from seedgen.config import load_config
from seedgen.reference_index import ReferenceIndex

ADMIN_UNITS = [
    {
        "code": 79,
        "name": "Thành phố Hồ Chí Minh",
        "codename": "thanh_pho_ho_chi_minh",
        "districts": [
            {
                "code": 760,
                "name": "Quận 1",
                "codename": "quan_1",
                "wards": [
                    {"code": 26734, "name": "Phường Bến Nghé", "codename": "phuong_ben_nghe"},
                    {"code": 26737, "name": "Phường Đa Kao", "codename": "phuong_da_kao"},
                ],
            },
            {
                "code": 765,
                "name": "Quận Bình Thạnh",
                "codename": "quan_binh_thanh",
                "wards": [{"code": 26905, "name": "Phường 25", "codename": "phuong_25"}],
            },
        ],
    },
    {
        "code": 1,
        "name": "Thành phố Hà Nội",
        "codename": "thanh_pho_ha_noi",
        "districts": [
            {
                "code": 2,
                "name": "Quận Hoàn Kiếm",
                "codename": "quan_hoan_kiem",
                "wards": [{"code": 37, "name": "Phường Hàng Bạc", "codename": "phuong_hang_bac"}],
            }
        ],
    },
    {
        "code": 77,
        "name": "Tỉnh Bà Rịa - Vũng Tàu",
        "codename": "tinh_ba_ria_vung_tau",
        "districts": [
            {
                "code": 747,
                "name": "Thành phố Vũng Tàu",
                "codename": "thanh_pho_vung_tau",
                "wards": [{"code": 26506, "name": "Phường 1", "codename": "phuong_1"}],
            }
        ],
    },
]

STATION_ADDRESSES = """station_slug,station_name,address,province
ben-xe-mien-dong,Bến xe Miền Đông,"292 Đinh Bộ Lĩnh, Phường 25, Bình Thạnh",Hồ Chí Minh
ben-xe-mien-tay,Bến xe Miền Tây,"395 Kinh Dương Vương, Quận 1",Hồ Chí Minh
ben-xe-giap-bat,Bến xe Giáp Bát,"Giải Phóng, Hàng Bạc",Hà Nội
ben-xe-vung-tau,Bến xe Vũng Tàu,"192 Nam Kỳ Khởi Nghĩa, Vũng Tàu",Bà Rịa - Vũng Tàu
"""

BENXE_HEADER = "route|extra|price|busName|seatType|fromHour|fromPlace|toHour|toPlace|duration|seatAvailable|date|url"
NHAXE_HEADER = "route|busName|seatType|extra|fromHour|fromPlace|toHour|toPlace|duration|price|seatAvailable|date|url"

BENXE_TICKETS = [
    "Sài Gòn đi Hà Nội|x|700.000₫|Phương Trang|Giường nằm|07:30|Bến xe Miền Tây|19:30|Bến xe Giáp Bát|36h|20|21-10-2025|https://example.test/1",
    "Hà Nội đi Vũng Tàu|x|650.000₫|Hoàng Long|Limousine|18:00|Bến xe Giáp Bát|20:00|Bến xe Vũng Tàu|26h|12|21-10-2025|https://example.test/2",
    "Bến xe Giáp Bát đi Vũng Tàu|x|640.000₫|Hoàng Long|Limousine|19:00|Bến xe Giáp Bát|21:00|Bến xe Vũng Tàu|26h|12|21-10-2025|https://example.test/3",
    "broken line without enough fields|x|1",
]

NHAXE_TICKETS = [
    "[phuong-trang] Quận 1 - Hồ Chí Minh đi Quận Hoàn Kiếm - Hà Nội|Phương Trang|Giường nằm|x|08:00|Bến xe Miền Đông|20:00|Bến xe Giáp Bát|36h|650,000đ|30|22-10-2025|https://example.test/4",
    "[hoang-long] Atlantis - Nowhere đi Quận 1 - Hồ Chí Minh|Hoàng Long|Limousine|x|09:00|?|21:00|Bến xe Miền Đông|12h|500.000đ|10|22-10-2025|https://example.test/5",
]

ROSTER = {
    "staff": [
        {"name": "Do Van G", "age": 41, "gender": "MALE", "phone_number": "0945678901",
         "role": "driver", "license_class": "D", "years_experience": 12},
        {"name": "Ngo Van I", "age": 45, "gender": "MALE", "phone_number": "0967890123",
         "role": "driver", "license_class": "E", "years_experience": 18},
        {"name": "Bui Thi H", "age": 27, "gender": "FEMALE", "phone_number": "0956789012",
         "role": "attendant"},
        {"name": "Nguyen Van A", "age": 35, "gender": "MALE", "phone_number": "0901234567"},
    ],
    "vehicles": [
        {"type": "LIMOUSINE", "type_factor": 1.5, "plate_number": "35A-55555",
         "brand": "Mercedes", "description": "Luxury bus route 7"},
        {"type": "STANDARD_BUS_NORMAL", "type_factor": 1.0, "plate_number": "34A-44444",
         "brand": "Hyundai", "description": "Standard bus route 6"},
    ],
}


def write_lines(path: Path, header: str, lines) -> None:
    path.write_text("\n".join([header, *lines]) + "\n", encoding="utf-8")


@pytest.fixture
def workspace(tmp_path: Path):
    data_dir = tmp_path / "data"
    output_dir = tmp_path / "out"
    data_dir.mkdir()
    (data_dir / "provinces.open-api.vn.json").write_text(
        json.dumps(ADMIN_UNITS, ensure_ascii=False), encoding="utf-8"
    )
    (data_dir / "benxe_addresses.csv").write_text(STATION_ADDRESSES, encoding="utf-8")
    write_lines(data_dir / "tickets_benxe.csv", BENXE_HEADER, BENXE_TICKETS)
    write_lines(data_dir / "tickets_nhaxe.csv", NHAXE_HEADER, NHAXE_TICKETS)
    (data_dir / "roster.json").write_text(json.dumps(ROSTER), encoding="utf-8")
    return load_config(data_dir=data_dir, output_dir=output_dir, roster_file="roster.json")


@pytest.fixture
def index() -> ReferenceIndex:
    """Same geography as ADMIN_UNITS, with stations, built in memory."""
    idx = ReferenceIndex()
    idx.add_province(1500, "Thành phố Hồ Chí Minh", "79")
    idx.add_province(1501, "Thành phố Hà Nội", "1")
    idx.add_province(1502, "Tỉnh Bà Rịa - Vũng Tàu", "77")

    idx.add_district(1500, "Quận 1", 1500, "760")
    idx.add_district(1501, "Quận Bình Thạnh", 1500, "765")
    idx.add_district(1502, "Quận Hoàn Kiếm", 1501, "2")
    idx.add_district(1503, "Thành phố Vũng Tàu", 1502, "747")

    idx.add_ward(1500, "Phường Bến Nghé", 1500, "26734")
    idx.add_ward(1501, "Phường Đa Kao", 1500, "26737")
    idx.add_ward(1502, "Phường 25", 1501, "26905")
    idx.add_ward(1503, "Phường Hàng Bạc", 1502, "37")
    idx.add_ward(1504, "Phường 1", 1503, "26506")

    idx.add_station(1500, "Bến xe Miền Đông", description="Station in Hồ Chí Minh", address_id=1500)
    idx.add_station(1501, "Bến xe Miền Tây", description="Station in Hồ Chí Minh", address_id=1501)
    idx.add_station(1502, "Bến xe Giáp Bát", description="Station in Hà Nội", address_id=1502)
    idx.add_station(1503, "Bến xe Vũng Tàu", description="Station in Bà Rịa - Vũng Tàu", address_id=1503)
    idx.add_address(1500, "292 Đinh Bộ Lĩnh, Phường 26, Bình Thạnh")
    idx.add_address(1501, "395 Kinh Dương Vương, An Lạc, Bình Tân")
    idx.add_address(1502, "Giải Phóng, Hoàng Mai")
    idx.add_address(1503, "192 Nam Kỳ Khởi Nghĩa, Vũng Tàu")
    return idx
