"""Tool definitions offered to the chat model."""

from __future__ import annotations

from collections.abc import Mapping

from sitechat.llm.models import ToolDefinition

SELECT_TOOL_NAME = "select_from_table"


def _where_properties(allowlist: Mapping[str, list[str]]) -> dict[str, dict[str, str]]:
    """One scalar schema per allowlisted column, across all tables."""
    columns = sorted({column for table_columns in allowlist.values() for column in table_columns})
    return {
        column: {"type": "string", "description": f"Value that {column} must equal"}
        for column in columns
    }


def build_select_tool(allowlist: Mapping[str, list[str]]) -> ToolDefinition:
    """
    Build the ``select_from_table`` definition for a project's allowlist.

    The ``table`` parameter is an enum of the allowlisted tables, so the
    model cannot name any other table in a well-formed call. ``where``
    lists the allowlisted columns as properties; providers such as Gemini
    reject an object schema without them. Values are strings because the
    executor compares every filter as text.
    """
    if not allowlist:
        raise ValueError("Cannot build a select tool for an empty allowlist")

    return ToolDefinition(
        name=SELECT_TOOL_NAME,
        description=(
            "Select data from the user's database. Use this when the answer "
            "might be in the database tables."
        ),
        parameters={
            "type": "object",
            "properties": {
                "table": {
                    "type": "string",
                    "enum": sorted(allowlist),
                    "description": "The table to query",
                },
                "where": {
                    "type": "object",
                    "description": (
                        "Key-value pairs for filtering (equality checks only). "
                        "E.g. { id: 5, status: 'active' }"
                    ),
                    "properties": _where_properties(allowlist),
                },
            },
            "required": ["table"],
        },
    )
