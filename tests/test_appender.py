import pytest

from seedgen.appender import AppendOnlyTable
from seedgen.tables import FLOOR, NULL_MARKER, ROUTE, STAFF, load_table


def _staff_row(name, phone):
    return lambda _id: {"name": name, "age": "30", "gender": "MALE", "phone_number": phone, "status": "ACTIVE"}


def test_creates_file_with_header(tmp_path):
    table = AppendOnlyTable.open(tmp_path, STAFF, created_at="2025-01-01 00:00:00")
    assert table.ensure("A|1", _staff_row("A", "1")) == 1500
    assert table.ensure("B|2", _staff_row("B", "2")) == 1501
    assert table.flush() == 2

    lines = (tmp_path / "staff.csv").read_text(encoding="utf-8").splitlines()
    assert lines[0] == ",".join(STAFF.columns)
    assert lines[1] == "1500,A,30,MALE,1,ACTIVE,2025-01-01 00:00:00,,false,,"
    assert len(lines) == 3


def test_second_run_reuses_ids_and_appends_nothing(tmp_path):
    first = AppendOnlyTable.open(tmp_path, STAFF)
    first.ensure("A|1", _staff_row("A", "1"))
    first.flush()
    before = (tmp_path / "staff.csv").read_text(encoding="utf-8")

    second = AppendOnlyTable.open(tmp_path, STAFF)
    assert second.ensure("A|1", _staff_row("A", "1")) == 1500
    assert second.flush() == 0
    assert (tmp_path / "staff.csv").read_text(encoding="utf-8") == before


def test_new_keys_are_appended_above_existing_max(tmp_path):
    first = AppendOnlyTable.open(tmp_path, STAFF)
    first.ensure("A|1", _staff_row("A", "1"))
    first.flush()

    second = AppendOnlyTable.open(tmp_path, STAFF)
    assert second.ensure("C|3", _staff_row("C", "3")) == 1501
    assert second.flush() == 1

    table = load_table(tmp_path / "staff.csv", STAFF)
    assert [row["id"] for row in table.rows] == ["1500", "1501"]


def test_route_floor_and_null_deleted_by(tmp_path):
    table = AppendOnlyTable.open(tmp_path, ROUTE)
    key = ROUTE.row_key({"origin_id": "1500", "destination_id": "1502"})
    assert table.ensure(key, lambda _id: {"route_code": "X_Y", "origin_id": "1500", "destination_id": "1502"}) == 1000
    table.flush()
    row = load_table(tmp_path / "route.csv", ROUTE).rows[0]
    assert row["deleted_by"] == NULL_MARKER
    assert row["is_deleted"] == "false"


def test_case_insensitive_keys(tmp_path):
    table = AppendOnlyTable.open(tmp_path, FLOOR)
    first = table.ensure(FLOOR.row_key({"seat_map_id": "SM1", "floor_no": "1"}), lambda _id: {"seat_map_id": "SM1", "floor_no": "1"})
    again = table.ensure(FLOOR.row_key({"seat_map_id": "sm1", "floor_no": "1"}), lambda _id: {"seat_map_id": "sm1", "floor_no": "1"})
    assert first == again


def test_add_keyed_row_rejects_known_key(tmp_path):
    table = AppendOnlyTable.open(tmp_path, STAFF)
    assert table.add_keyed_row({"id": "7", "name": "A", "phone_number": "1"})
    assert not table.add_keyed_row({"id": "8", "name": "A", "phone_number": "1"})
    assert "A|1" in table


def test_header_mismatch_is_fatal(tmp_path):
    (tmp_path / "staff.csv").write_text("id,name\n1,A\n", encoding="utf-8")
    with pytest.raises(ValueError):
        AppendOnlyTable.open(tmp_path, STAFF)


def test_malformed_existing_rows_are_skipped(tmp_path):
    header = ",".join(STAFF.columns)
    good = "1500,A,30,MALE,1,ACTIVE,2025-01-01 00:00:00,,false,,"
    (tmp_path / "staff.csv").write_text(f"{header}\n{good}\n1501,broken\n", encoding="utf-8")
    table = AppendOnlyTable.open(tmp_path, STAFF)
    assert "A|1" in table
    assert table.ensure("B|2", _staff_row("B", "2")) == 1501


def test_row_without_numeric_id_is_replaced_once(tmp_path, capsys):
    header = ",".join(STAFF.columns)
    bad = "X,A,30,MALE,1,ACTIVE,2025-01-01 00:00:00,,false,,"
    (tmp_path / "staff.csv").write_text(f"{header}\n{bad}\n", encoding="utf-8")

    appended = []
    for _ in range(3):
        table = AppendOnlyTable.open(tmp_path, STAFF)
        assert table.ensure("A|1", _staff_row("A", "1")) == 1500
        appended.append(table.flush())
    assert appended == [1, 0, 0]
    assert "skipped 1 rows without a numeric id" in capsys.readouterr().err
