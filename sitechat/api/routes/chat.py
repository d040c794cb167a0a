"""
Chat Routes

The endpoint the embedded widget talks to. Terminal failures
(missing credential, unconfigured project, upstream errors) are turned
into ``{"error": ...}`` responses by the application's exception handlers.
"""

import logging

from fastapi import APIRouter, Depends

from sitechat.api.deps import get_orchestrator
from sitechat.models.api import ChatRequest, ChatResponse
from sitechat.pipeline import ChatOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> ChatResponse:
    """
    Answer one user message for a project.

    Returns:
        ChatResponse with the model's answer or the serialized tool result
    """
    answer = await orchestrator.answer(payload.project_id, payload.text, payload.credential)
    return ChatResponse(answer=answer)
