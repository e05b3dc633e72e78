"""Tests for the schema store: fallback, refresh and introspection."""

from __future__ import annotations

import pytest

from conftest import scenario_payload, write_json
from pbi_chat.core.exceptions import SchemaLoadError
from pbi_chat.schema.store import SchemaStore


class TestLoading:
    """Initial load and fallback."""

    def test_lazy_load(self, scenario_path):
        store = SchemaStore(scenario_path, core_table="Facts")
        assert store._document is None
        assert store.table_names() == ["Facts", "Budget"]
        assert store._document is not None

    def test_missing_file_uses_fallback(self, tmp_path):
        store = SchemaStore(str(tmp_path / "missing.json"), core_table="Facts")
        stats = store.statistics()
        assert stats.tables == 1
        assert stats.measures == 0
        assert stats.initialized is False
        assert stats.source == "fallback"
        assert store.table_names() == ["Facts"]

    def test_invalid_json_uses_fallback(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        store = SchemaStore(str(path), core_table="Facts")
        assert store.document.metadata.source == "fallback"

    @pytest.mark.parametrize(
        "payload",
        [
            {"tables": {"Facts": {"columns": 5}}},
            {"tables": {"Facts": {}}, "relationships": 7},
        ],
    )
    def test_badly_typed_fields_use_fallback(self, tmp_path, payload):
        """Valid JSON with the wrong field types still falls back."""
        store = SchemaStore(write_json(tmp_path / "typed.json", payload), core_table="Core")
        assert store.document.metadata.source == "fallback"
        assert store.table_names() == ["Core"]

    def test_statistics(self, scenario_path):
        stats = SchemaStore(scenario_path, core_table="Facts").statistics()
        assert stats.tables == 2
        assert stats.measures == 1
        assert stats.relationships == 1
        assert stats.total_columns == 5
        assert stats.parsed_at == "2024-01-01T00:00:00Z"
        assert stats.dataset_name == "Test Finance"
        assert stats.initialized is True

    def test_model_bim_input(self, model_bim_path):
        store = SchemaStore(model_bim_path)
        assert store.table_names() == ["A1_KQKD (month)", "Dim Chi Nhanh"]


class TestRefresh:
    """Refresh swaps the document or keeps the old one."""

    def test_refresh_picks_up_changes(self, tmp_path):
        payload = scenario_payload()
        path = write_json(tmp_path / "schema.json", payload)
        store = SchemaStore(path, core_table="Facts")
        assert store.statistics().tables == 2

        payload["tables"]["Plan"] = {"columns": [{"name": "Target", "dataType": "double"}]}
        write_json(path, payload)
        stats = store.refresh()
        assert stats.tables == 3
        assert "Plan" in store.table_names()

    def test_failed_refresh_keeps_document(self, tmp_path):
        path = write_json(tmp_path / "schema.json", scenario_payload())
        store = SchemaStore(path, core_table="Facts")
        before = store.document

        with open(path, "w", encoding="utf-8") as handle:
            handle.write("not json")
        with pytest.raises(SchemaLoadError):
            store.refresh()
        assert store.document is before

    def test_badly_typed_refresh_keeps_document(self, tmp_path):
        path = write_json(tmp_path / "schema.json", scenario_payload())
        store = SchemaStore(path, core_table="Facts")
        before = store.document

        write_json(path, {"tables": {"Facts": {"columns": 5}}})
        with pytest.raises(SchemaLoadError):
            store.refresh()
        assert store.document is before

    def test_refresh_from_fallback(self, tmp_path):
        path = tmp_path / "later.json"
        store = SchemaStore(str(path), core_table="Facts")
        assert store.statistics().initialized is False

        write_json(path, scenario_payload())
        assert store.refresh().initialized is True

    def test_readers_keep_their_snapshot(self, tmp_path):
        payload = scenario_payload()
        path = write_json(tmp_path / "schema.json", payload)
        store = SchemaStore(path, core_table="Facts")
        snapshot = store.document

        del payload["tables"]["Budget"]
        write_json(path, payload)
        store.refresh()
        assert "Budget" in snapshot.tables
        assert "Budget" not in store.document.tables


class TestIntrospection:
    """Search and grouping helpers."""

    def test_search_by_name(self, scenario_path):
        results = SchemaStore(scenario_path).search_measures("REVENUE")
        assert results == [
            {
                "name": "Net Revenue",
                "table": "Facts",
                "description": "Net revenue after returns",
                "format_string": "#,0",
                "display_folder": "",
            }
        ]

    def test_search_by_description(self, scenario_path):
        assert len(SchemaStore(scenario_path).search_measures("returns")) == 1

    def test_search_no_match(self, scenario_path):
        assert SchemaStore(scenario_path).search_measures("roe") == []

    def test_measures_by_table(self, scenario_path):
        grouped = SchemaStore(scenario_path).measures_by_table()
        assert grouped == {
            "Facts": [{"name": "Net Revenue", "description": "Net revenue after returns", "format_string": "#,0"}]
        }

    def test_table_info(self, scenario_path):
        store = SchemaStore(scenario_path)
        assert store.table_info("Budget").name == "Budget"
        assert store.table_info("Nope") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
