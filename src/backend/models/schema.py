"""
Schema models deserialized from the metadata store.

The ``schema_metadata`` table stores one ``schema_json`` document per
table. Different loaders have written it in different shapes over time,
so hydration accepts all of them.
"""

import json
from typing import Any

from pydantic import BaseModel, Field


class TableColumn(BaseModel):
    """A column definition from the metadata document."""

    name: str = Field(description="Column name")
    type: str = Field(default="", description="Database type, e.g. 'VARCHAR'")


class SchemaDescriptor(BaseModel):
    """Column/type description of the single queryable table."""

    table_name: str = Field(description="Table name, e.g. 'flight_schedule'")
    columns: list[TableColumn] = Field(
        default_factory=list, description="Columns in table order"
    )
    sample_row: dict[str, Any] | None = Field(
        default=None, description="Optional example row for prompt grounding"
    )

    @property
    def column_names(self) -> set[str]:
        """Lowercased column names, for membership checks."""
        return {c.name.lower() for c in self.columns}

    def has_column(self, name: str) -> bool:
        return name.lower() in self.column_names

    def to_prompt_text(self, *, include_sample_row: bool = False) -> str:
        """Render the schema as the JSON block embedded in oracle prompts."""
        doc: dict[str, Any] = {
            "table": self.table_name,
            "columns": [{"name": c.name, "type": c.type} for c in self.columns],
        }
        if include_sample_row and self.sample_row:
            doc["sample_row"] = self.sample_row
        return json.dumps(doc, indent=2, default=str)

    @classmethod
    def from_metadata(cls, table_name: str, schema_json: Any) -> "SchemaDescriptor":
        """Hydrate from a ``schema_json`` document.

        Accepted shapes::

            {"columns": [{"name": ..., "type": ...}], "sample_row": {...}}
            {"column_name": "TYPE", ...}
            [{"name": ..., "type": ...}, ...]

        Raises:
            ValueError: If the document has no recognisable columns.
        """
        if isinstance(schema_json, str):
            schema_json = json.loads(schema_json)

        sample_row = None
        raw_columns: Any = schema_json
        if isinstance(schema_json, dict) and "columns" in schema_json:
            raw_columns = schema_json["columns"]
            sample_row = schema_json.get("sample_row") or schema_json.get("sampleRow")

        columns: list[TableColumn] = []
        if isinstance(raw_columns, dict):
            columns = [TableColumn(name=k, type=str(v)) for k, v in raw_columns.items()]
        elif isinstance(raw_columns, list):
            for col in raw_columns:
                if isinstance(col, dict) and col.get("name"):
                    col_type = col.get("type") or col.get("data_type") or ""
                    columns.append(TableColumn(name=col["name"], type=str(col_type)))
                elif isinstance(col, str):
                    columns.append(TableColumn(name=col))

        if not columns:
            raise ValueError(f"Schema document for '{table_name}' has no columns")

        return cls(table_name=table_name, columns=columns, sample_row=sample_row)
