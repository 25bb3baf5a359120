import json

import pytest

from backend.services.backup.target_store import JsonTargetStore, SqlTargetStore, parse_target_list


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("db1,db2", ["db1", "db2"]),
        (" db1 , , db2,,", ["db1", "db2"]),
        ("", []),
        (" , ", []),
        ("only", ["only"]),
    ],
)
def test_parse_target_list(raw, expected):
    assert parse_target_list(raw) == expected


class TestJsonTargetStore:
    def test_missing_file_is_empty(self, tmp_path):
        assert JsonTargetStore(tmp_path / "nope.json").load() == []

    def test_save_then_load_keeps_order(self, tmp_path):
        store = JsonTargetStore(tmp_path / "data" / "db_list.json")

        store.save(["zeta", "alpha", "mid"])

        assert store.load() == ["zeta", "alpha", "mid"]
        assert json.loads((tmp_path / "data" / "db_list.json").read_text()) == ["zeta", "alpha", "mid"]

    def test_save_replaces_previous_list(self, tmp_path):
        store = JsonTargetStore(tmp_path / "db_list.json")
        store.save(["a", "b"])

        store.save(["c"])

        assert store.load() == ["c"]
        assert [p.name for p in tmp_path.iterdir()] == ["db_list.json"]

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "db_list.json"
        path.write_text("{not json")

        assert JsonTargetStore(path).load() == []

    def test_non_list_is_empty(self, tmp_path):
        path = tmp_path / "db_list.json"
        path.write_text('{"targets": ["a"]}')

        assert JsonTargetStore(path).load() == []


class TestSqlTargetStore:
    def test_save_then_load_keeps_order(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'state' / 'targets.db'}"
        store = SqlTargetStore(url)

        saved = store.save(["zeta", " alpha ", "", "mid"])

        assert saved == ["zeta", "alpha", "mid"]
        assert store.load() == ["zeta", "alpha", "mid"]
        assert SqlTargetStore(url).load() == ["zeta", "alpha", "mid"]

    def test_save_replaces_previous_list(self, tmp_path):
        store = SqlTargetStore(f"sqlite:///{tmp_path / 'targets.db'}")
        store.save(["a", "b", "c"])

        store.save(["d"])

        assert store.load() == ["d"]

    def test_fresh_store_is_empty(self, tmp_path):
        assert SqlTargetStore(f"sqlite:///{tmp_path / 'targets.db'}").load() == []
