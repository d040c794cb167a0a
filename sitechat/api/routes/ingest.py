"""
Ingest Routes

Runs the ingestion pipeline for one URL.
"""

import logging

from fastapi import APIRouter, Depends, status

from sitechat.api.deps import ApiError, get_ingestion, get_provider_factory, get_settings_dep
from sitechat.config import Settings
from sitechat.ingestion import FetchError, IngestionPipeline
from sitechat.knowledge import EmbeddingClient
from sitechat.llm import LLMProviderFactory
from sitechat.models.api import IngestRequest, IngestResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/ingest", response_model=IngestResponse, response_model_exclude_none=True)
async def ingest(
    payload: IngestRequest,
    pipeline: IngestionPipeline = Depends(get_ingestion),
    settings: Settings = Depends(get_settings_dep),
    provider_factory: type[LLMProviderFactory] = Depends(get_provider_factory),
) -> IngestResponse:
    """
    Fetch, chunk, embed and store one page.

    Returns:
        ``{"status": "success", "chunks": n}`` or
        ``{"status": "failed", "reason": "insufficient_content"}``
    """
    try:
        provider = provider_factory.create_embedding_provider(settings.llm, payload.credential)
    except ValueError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "credential_required") from exc

    embedder = EmbeddingClient(provider, dimension=settings.llm.embedding_dimension)
    try:
        result = await pipeline.ingest(payload.project_id, payload.url, embedder)
    except FetchError as exc:
        raise ApiError(
            status.HTTP_502_BAD_GATEWAY, "fetch_failed", detail=str(exc)
        ) from exc

    if result.status == "failed":
        return IngestResponse(status="failed", reason=result.reason)
    return IngestResponse(status="success", chunks=result.chunks)
