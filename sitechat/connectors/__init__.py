"""Tenant database connectors."""

from sitechat.connectors.base import (
    BaseConnector,
    ConnectionError,
    ConnectorError,
    QueryError,
    QueryResult,
    SchemaError,
)
from sitechat.connectors.factory import create_connector, infer_database_type
from sitechat.connectors.postgres import PostgresConnector

__all__ = [
    "BaseConnector",
    "ConnectionError",
    "ConnectorError",
    "QueryError",
    "QueryResult",
    "SchemaError",
    "PostgresConnector",
    "create_connector",
    "infer_database_type",
]
