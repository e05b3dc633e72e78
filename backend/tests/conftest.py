"""Shared fixtures: small schema artifacts written to a temp directory."""

from __future__ import annotations

import json
import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pbi_chat.schema.loader import parse_schema_payload


def scenario_payload() -> dict:
    """Facts (core) related to Budget, one revenue measure on Facts."""
    return {
        "datasetName": "Test Finance",
        "tables": {
            "Facts": {
                "columns": [
                    {"name": "Dept", "dataType": "string"},
                    {"name": "Month", "dataType": "dateTime"},
                    {"name": "Value", "dataType": "double", "description": "Amount in VND"},
                ],
                "measures": [
                    {
                        "name": "Net Revenue",
                        "expression": "SUM('Facts'[Value])",
                        "description": "Net revenue after returns",
                        "formatString": "#,0",
                    }
                ],
                "description": "Monthly financial facts",
            },
            "Budget": {
                "columns": [
                    {"name": "Dept", "dataType": "string"},
                    {"name": "Plan", "dataType": "double"},
                ],
                "measures": [],
            },
        },
        "relationships": [
            {
                "name": "Facts_Budget",
                "fromTable": "Facts",
                "fromColumn": "Dept",
                "toTable": "Budget",
                "toColumn": "Dept",
            }
        ],
        "metadata": {"parsedAt": "2024-01-01T00:00:00Z", "version": "1"},
    }


def model_bim_payload() -> dict:
    """Raw Model.bim with hidden tables/columns and structured expressions."""
    return {
        "name": "SemanticModel",
        "compatibilityLevel": 1550,
        "model": {
            "name": "QUAN TRI TAI CHINH",
            "tables": [
                {
                    "name": "A1_KQKD (month)",
                    "description": ["Kết quả kinh doanh", "theo tháng"],
                    "columns": [
                        {"name": "RowNumber-2662979B", "type": "rowNumber", "dataType": "int64"},
                        {"name": "Chỉ tiêu", "dataType": "string"},
                        {"name": "Month", "dataType": "dateTime", "sourceColumn": "Thang"},
                        {"name": "Value", "dataType": "double"},
                        {"name": "Secret", "dataType": "string", "isHidden": True},
                    ],
                    "measures": [
                        {
                            "name": "1.Doanh thu thuần",
                            "expression": [
                                "CALCULATE(",
                                "    SUM('A1_KQKD (month)'[Value]),",
                                "    'A1_KQKD (month)'[Chỉ tiêu] = \"Doanh thu thuần\"",
                                ")",
                            ],
                            "formatString": "#,0",
                            "displayFolder": "KQKD",
                        },
                        {
                            "name": "Structured",
                            "expression": {"kind": "calc", "terms": [1, 2]},
                        },
                    ],
                },
                {
                    "name": "Dim Chi Nhanh",
                    "columns": [{"name": "Cơ sở", "dataType": "int64"}],
                },
                {
                    "name": "Hidden Helper",
                    "isHidden": True,
                    "columns": [{"name": "x", "dataType": "int64"}],
                    "measures": [{"name": "Hidden Measure", "expression": "1"}],
                },
                {
                    "name": "DateTableTemplate_1234",
                    "columns": [{"name": "Date", "dataType": "dateTime"}],
                },
            ],
            "relationships": [
                {
                    "name": "rel-1",
                    "fromTable": "A1_KQKD (month)",
                    "fromColumn": "Cơ sở",
                    "toTable": "Dim Chi Nhanh",
                    "toColumn": "Cơ sở",
                },
                {
                    "fromTable": "A1_KQKD (month)",
                    "fromColumn": "Month",
                    "toTable": "Calendar",
                    "toColumn": "Date",
                    "isActive": False,
                    "crossFilteringBehavior": "bothDirections",
                },
            ],
        },
    }


def write_json(path, payload) -> str:
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False)
    return str(path)


@pytest.fixture
def scenario_document():
    return parse_schema_payload(scenario_payload(), source="test")


@pytest.fixture
def scenario_path(tmp_path):
    return write_json(tmp_path / "schema-parsed.json", scenario_payload())


@pytest.fixture
def model_bim_path(tmp_path):
    return write_json(tmp_path / "Model.bim", model_bim_payload())
