import random

import pytest

from seedgen.appender import AppendOnlyTable
from seedgen.config import load_config
from seedgen.routes import collect_routes, ticket_sources
from seedgen.station_resolver import StationResolver
from seedgen.tables import ROUTE
from seedgen.tickets import SOURCE_BENXE, SOURCE_NHAXE

from conftest import BENXE_TICKETS, NHAXE_TICKETS


@pytest.fixture
def resolver(index):
    return StationResolver(index, random.Random(5))


def test_different_texts_same_station_pair_collapse(tmp_path, resolver):
    table = AppendOnlyTable.open(tmp_path, ROUTE)
    stats = collect_routes(BENXE_TICKETS[1:3], SOURCE_BENXE, resolver, table)
    assert stats["parsed"] == 2
    assert stats["unique"] == 1
    assert stats["duplicate"] == 1
    assert len(table.new_rows) == 1
    row = table.new_rows[0]
    assert (row["origin_id"], row["destination_id"]) == ("1502", "1503")
    assert row["route_code"] == "HANOI_VUNGTAU"
    assert row["id"] == "1000"


def test_unresolved_endpoint_is_dropped(tmp_path, resolver):
    table = AppendOnlyTable.open(tmp_path, ROUTE)
    stats = collect_routes(NHAXE_TICKETS, SOURCE_NHAXE, resolver, table)
    assert stats["total"] == 2
    assert stats["unresolved"] == 1
    assert stats["unique"] == 1
    assert table.new_rows[0]["origin_id"] == "1500"
    assert table.new_rows[0]["destination_id"] == "1502"


def test_existing_route_is_not_appended_again(tmp_path, resolver):
    first = AppendOnlyTable.open(tmp_path, ROUTE)
    collect_routes(BENXE_TICKETS[1:2], SOURCE_BENXE, resolver, first)
    assert first.flush() == 1

    second = AppendOnlyTable.open(tmp_path, ROUTE)
    stats = collect_routes(BENXE_TICKETS[1:3], SOURCE_BENXE, resolver, second)
    assert stats["unique"] == 0
    assert stats["duplicate"] == 2
    assert second.flush() == 0


def test_ticket_sources_require_one_file(tmp_path):
    config = load_config(data_dir=tmp_path, output_dir=tmp_path / "out")
    with pytest.raises(FileNotFoundError):
        ticket_sources(config)

    (tmp_path / "tickets_nhaxe.csv").write_text("header\n", encoding="utf-8")
    assert [source for source, _ in ticket_sources(config)] == [SOURCE_NHAXE]
