from seedgen.config import DEFAULT_CONFIG
from seedgen.tickets import (
    SOURCE_BENXE,
    SOURCE_NHAXE,
    format_datetime,
    parse_price,
    parse_route_line,
    parse_ticket,
    route_code,
    split_route,
    strip_company_tag,
)

from conftest import BENXE_TICKETS, NHAXE_TICKETS


def test_route_code():
    assert route_code("Sài Gòn", "Hà Nội") == "SAIGON_HANOI"
    assert route_code("Quận 1 - Hồ Chí Minh", "Đà Lạt") == "QUAN1HOCHI_DALAT"


def test_split_route_forms():
    assert split_route("Sài Gòn đi Hà Nội") == ("Sài Gòn", "Hà Nội")
    assert split_route("Quận 1 - Hồ Chí Minh - Đà Lạt - Lâm Đồng") == (
        "Quận 1 - Hồ Chí Minh",
        "Đà Lạt - Lâm Đồng",
    )
    assert split_route("Hà Nội") is None
    assert split_route("A đi B đi C") is None


def test_strip_company_tag():
    assert strip_company_tag("[phuong-trang] Quận 1 - Hồ Chí Minh") == "Quận 1 - Hồ Chí Minh"
    assert strip_company_tag("Sài Gòn đi Hà Nội") == "Sài Gòn đi Hà Nội"


def test_parse_route_line_per_source():
    benxe = parse_route_line(BENXE_TICKETS[0], SOURCE_BENXE)
    assert (benxe.origin, benxe.destination) == ("Sài Gòn", "Hà Nội")
    assert benxe.code == "SAIGON_HANOI"

    nhaxe = parse_route_line(NHAXE_TICKETS[0], SOURCE_NHAXE)
    assert nhaxe.origin == "Quận 1 - Hồ Chí Minh"
    assert nhaxe.destination == "Quận Hoàn Kiếm - Hà Nội"

    assert parse_route_line(BENXE_TICKETS[0], SOURCE_NHAXE) is None
    assert parse_route_line(BENXE_TICKETS[-1], SOURCE_BENXE) is None


def test_parse_price_drops_separators():
    assert parse_price("700.000₫") == 700000
    assert parse_price("650,000đ") == 650000
    assert parse_price("Liên hệ") is None


def test_format_datetime():
    assert format_datetime("21-10-2025", "07:30") == "2025-10-21 07:30:00"
    assert format_datetime("2025-10-21", "07:30") is None
    assert format_datetime("21-10-2025", "") is None


def test_parse_ticket_benxe():
    ticket = parse_ticket(BENXE_TICKETS[0], SOURCE_BENXE, DEFAULT_CONFIG["ticket_layouts"]["benxe"])
    assert ticket.route_code == "SAIGON_HANOI"
    assert ticket.bus_name == "Phương Trang"
    assert ticket.departure_time == "2025-10-21 07:30:00"
    assert ticket.arrival_time == "2025-10-21 19:30:00"
    assert ticket.base_fare == 700000


def test_parse_ticket_nhaxe():
    ticket = parse_ticket(NHAXE_TICKETS[0], SOURCE_NHAXE, DEFAULT_CONFIG["ticket_layouts"]["nhaxe"])
    assert ticket.route_info == "Quận 1 - Hồ Chí Minh đi Quận Hoàn Kiếm - Hà Nội"
    assert ticket.base_fare == 650000
    assert ticket.departure_time == "2025-10-22 08:00:00"


def test_parse_ticket_skips_short_lines():
    assert parse_ticket(BENXE_TICKETS[-1], SOURCE_BENXE, DEFAULT_CONFIG["ticket_layouts"]["benxe"]) is None
