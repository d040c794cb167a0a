"""Database tool: schema introspection, column allowlist and the restricted select."""

from sitechat.tools.allowlist import AllowlistError, ColumnAllowlist
from sitechat.tools.definitions import SELECT_TOOL_NAME, build_select_tool
from sitechat.tools.executor import (
    SafeQueryExecutor,
    build_select,
    filter_value_as_text,
    quote_identifier,
)
from sitechat.tools.introspect import SchemaColumn, SchemaIntrospector, group_by_table

__all__ = [
    "AllowlistError",
    "ColumnAllowlist",
    "SELECT_TOOL_NAME",
    "build_select_tool",
    "SafeQueryExecutor",
    "build_select",
    "filter_value_as_text",
    "quote_identifier",
    "SchemaColumn",
    "SchemaIntrospector",
    "group_by_table",
]
