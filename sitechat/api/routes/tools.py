"""
Tool Routes

Setup endpoints for the database tool: connect a tenant database,
introspect it, and edit the per-table column allowlist.
"""

import logging

from fastapi import APIRouter, Depends, status

from sitechat.api.deps import ApiError, get_allowlist, get_introspector, get_project_store
from sitechat.connectors import ConnectorError
from sitechat.connectors.factory import resolve_database_type
from sitechat.models.api import (
    AllowlistResponse,
    AllowlistSaveRequest,
    ColumnRef,
    ConnectDbRequest,
    IntrospectRequest,
    IntrospectResponse,
    StatusResponse,
)
from sitechat.storage import ProjectStore
from sitechat.tools import AllowlistError, ColumnAllowlist, SchemaIntrospector, group_by_table

logger = logging.getLogger(__name__)

router = APIRouter()


async def _stored_uri(store: ProjectStore, project_id: str) -> str:
    connection = await store.get_db_connection(project_id)
    if connection is None:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "database_not_connected")
    return connection.uri.get_secret_value()


@router.post("/tools/connect-db", response_model=StatusResponse)
async def connect_db(
    payload: ConnectDbRequest,
    store: ProjectStore = Depends(get_project_store),
    introspector: SchemaIntrospector = Depends(get_introspector),
) -> StatusResponse:
    """Validate a tenant database by introspecting it, then store the encrypted URI."""
    try:
        db_type = resolve_database_type(payload.db_type, payload.uri)
        await introspector.introspect(payload.uri)
    except (ConnectorError, ValueError) as exc:
        logger.warning(
            f"Database connection check failed: {exc}", extra={"project_id": payload.project_id}
        )
        raise ApiError(status.HTTP_400_BAD_REQUEST, "connection_failed") from exc

    await store.save_db_connection(payload.project_id, payload.uri, db_type=db_type)
    return StatusResponse(status="connected")


@router.post("/tools/introspect", response_model=IntrospectResponse)
async def introspect(
    payload: IntrospectRequest,
    store: ProjectStore = Depends(get_project_store),
    introspector: SchemaIntrospector = Depends(get_introspector),
) -> IntrospectResponse:
    """List the columns of all base tables of a database."""
    if payload.connection_uri:
        uri = payload.connection_uri
    elif payload.project_id:
        uri = await _stored_uri(store, payload.project_id)
    else:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "invalid_request",
            detail="connectionUri or projectId is required",
        )

    try:
        columns = await introspector.introspect(uri)
    except ValueError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "invalid_connection_uri") from exc
    except ConnectorError as exc:
        logger.warning(f"Introspection failed: {exc}")
        raise ApiError(status.HTTP_502_BAD_GATEWAY, "introspection_failed") from exc

    return IntrospectResponse(
        columns=[ColumnRef(table_name=c.table_name, column_name=c.column_name) for c in columns]
    )


@router.post("/tools/allowlist", response_model=StatusResponse)
async def save_allowlist(
    payload: AllowlistSaveRequest,
    store: ProjectStore = Depends(get_project_store),
    allowlist: ColumnAllowlist = Depends(get_allowlist),
    introspector: SchemaIntrospector = Depends(get_introspector),
) -> StatusResponse:
    """Replace the allowlisted columns of one table."""
    uri = await _stored_uri(store, payload.project_id)
    try:
        snapshot = group_by_table(await introspector.introspect(uri))
    except (ConnectorError, ValueError) as exc:
        logger.warning(f"Introspection failed: {exc}", extra={"project_id": payload.project_id})
        raise ApiError(status.HTTP_502_BAD_GATEWAY, "introspection_failed") from exc

    try:
        await allowlist.save(
            payload.project_id, payload.table, payload.columns, known_columns=snapshot
        )
    except AllowlistError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, exc.code, detail=exc.detail) from exc

    return StatusResponse(status="saved")


@router.get("/tools/allowlist/{project_id}", response_model=AllowlistResponse)
async def get_allowlist_tables(
    project_id: str,
    allowlist: ColumnAllowlist = Depends(get_allowlist),
) -> AllowlistResponse:
    """Return the project's allowlist keyed by table."""
    return AllowlistResponse(tables=await allowlist.get(project_id))
