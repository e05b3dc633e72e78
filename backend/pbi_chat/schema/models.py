"""Normalized schema of a Power BI semantic model."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_CROSS_FILTERING = "oneDirection"


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    data_type: str = "unknown"
    description: str = ""
    source_column: str = ""
    format_string: str = ""
    data_category: str = ""


@dataclass(frozen=True)
class MeasureInfo:
    """A DAX measure; `table` names the owning table."""

    name: str
    table: str
    expression: str = ""
    description: str = ""
    format_string: str = ""
    display_folder: str = ""


@dataclass(frozen=True)
class TableInfo:
    name: str
    columns: tuple[ColumnInfo, ...] = ()
    measures: tuple[MeasureInfo, ...] = ()
    description: str = ""
    is_hidden: bool = False


@dataclass(frozen=True)
class Relationship:
    name: str
    from_table: str
    from_column: str
    to_table: str
    to_column: str
    cross_filtering_behavior: str = DEFAULT_CROSS_FILTERING
    is_active: bool = True


@dataclass(frozen=True)
class SchemaMetadata:
    parsed_at: str | None = None
    version: str = "unknown"
    source: str = ""


@dataclass(frozen=True)
class SchemaDocument:
    """A loaded schema. Never mutated; refresh replaces the whole document."""

    dataset_name: str
    tables: dict[str, TableInfo] = field(default_factory=dict)
    measures: dict[str, MeasureInfo] = field(default_factory=dict)
    relationships: tuple[Relationship, ...] = ()
    metadata: SchemaMetadata = field(default_factory=SchemaMetadata)

    @property
    def total_columns(self) -> int:
        return sum(len(table.columns) for table in self.tables.values())


@dataclass(frozen=True)
class SchemaStatistics:
    tables: int
    measures: int
    relationships: int
    total_columns: int
    parsed_at: str | None
    dataset_name: str
    initialized: bool
    source: str


@dataclass
class RelevantSubset:
    """Tables and measures selected for one question."""

    tables: dict[str, TableInfo] = field(default_factory=dict)
    measures: dict[str, MeasureInfo] = field(default_factory=dict)
    relevant_measures: list[str] = field(default_factory=list)
    expanded_tables: list[str] = field(default_factory=list)
