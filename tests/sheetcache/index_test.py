"""Tests for the sheetcache.index module."""

from sheetcache.decode import decode_table
from sheetcache.index import build_index
from sheetcache.keys import KeyColumns


def _rows():
    return [
        {"registration_number": "ab12", "chasis_number": "ch1", "n": 0},
        {"registration_number": "AB12 ", "chasis_number": "CH2", "n": 1},
        {"registration_number": "CD34", "chasis_number": None, "n": 2},
        {"registration_number": None, "chasis_number": "CH2", "n": 3},
        {"registration_number": "", "chasis_number": "", "n": 4},
        {"registration_number": "AB12", "chasis_number": "CH1", "n": 5},
    ]


class TestBuildIndex:
    """Tests for the build_index function."""

    def test_primary_index_keeps_duplicates_in_file_order(self):
        rows = _rows()
        index = build_index(rows, KeyColumns())
        assert index.primary["AB12"] == [rows[0], rows[1], rows[5]]
        assert index.primary["CD34"] == [rows[2]]

    def test_secondary_index(self):
        rows = _rows()
        index = build_index(rows, KeyColumns())
        assert index.secondary["CH1"] == [rows[0], rows[5]]
        assert index.secondary["CH2"] == [rows[1], rows[3]]

    def test_combined_index_requires_both_keys(self):
        rows = _rows()
        index = build_index(rows, KeyColumns())
        assert index.combined == {
            "AB12|CH1": [rows[0], rows[5]],
            "AB12|CH2": [rows[1]],
        }

    def test_empty_keys_are_not_indexed(self):
        index = build_index(_rows(), KeyColumns())
        assert "" not in index.primary
        assert "" not in index.secondary
        assert all(index.primary.values())
        assert all(index.secondary.values())

    def test_rows_are_shared_not_copied(self):
        rows = _rows()
        index = build_index(rows, KeyColumns())
        assert index.primary["CD34"][0] is rows[2]

    def test_multiplicity_matches_row_count(self, make_xlsx):
        data = make_xlsx(
            [["registration_number", "chasis_number"]]
            + [["AB12", f"CH{i}"] for i in range(7)]
            + [["CD34", "CH0"]]
        )
        table = decode_table(data)
        index = build_index(table.rows, KeyColumns())
        assert len(index.primary["AB12"]) == 7
        assert [row["chasis_number"] for row in index.primary["AB12"]] == [
            f"CH{i}" for i in range(7)
        ]
        assert len(index.secondary["CH0"]) == 2

    def test_deterministic(self, vehicles_xlsx):
        first = build_index(decode_table(vehicles_xlsx).rows, KeyColumns())
        second = build_index(decode_table(vehicles_xlsx).rows, KeyColumns())
        assert first == second
        assert list(first.primary) == list(second.primary)
