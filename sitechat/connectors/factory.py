"""Connector factory for supported tenant database URLs."""

from __future__ import annotations

from urllib.parse import urlparse

from sitechat.connectors.base import BaseConnector
from sitechat.connectors.postgres import PostgresConnector

_POSTGRES_SCHEMES = {"postgres", "postgresql"}


def infer_database_type(database_url: str) -> str:
    """Infer logical database type from connection URL scheme."""
    parsed = urlparse(database_url)
    scheme = parsed.scheme.split("+")[0].lower()
    if scheme in _POSTGRES_SCHEMES:
        return "postgresql"
    raise ValueError(f"Unsupported database URL scheme: {parsed.scheme or '<none>'}")


def resolve_database_type(database_type: str | None, database_url: str) -> str:
    """Resolve target database type from explicit type or URL."""
    if database_type:
        value = database_type.strip().lower()
        if value in _POSTGRES_SCHEMES:
            return "postgresql"
        raise ValueError(f"Unsupported database type: {database_type}")
    return infer_database_type(database_url)


def create_connector(
    *,
    database_url: str,
    database_type: str | None = None,
    timeout: int = 30,
    **kwargs,
) -> BaseConnector:
    """Create a typed connector instance from URL + optional database_type."""
    parsed = urlparse(database_url)
    if not parsed.hostname:
        raise ValueError("Invalid database URL: host is required.")

    target_type = resolve_database_type(database_type, database_url)
    if target_type == "postgresql":
        return PostgresConnector(database_url, timeout=timeout, **kwargs)

    raise ValueError(f"Unsupported database type: {target_type}")
