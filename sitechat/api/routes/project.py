"""
Project Routes

Widget bootstrap configuration and the assistant configuration record
written by the setup wizard.
"""

import logging

from fastapi import APIRouter, Depends, status

from sitechat.api.deps import ApiError, get_project_store
from sitechat.models.api import AssistantConfigUpdate, ProjectConfigResponse
from sitechat.models.project import AssistantConfig
from sitechat.storage import ProjectStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(config: AssistantConfig) -> ProjectConfigResponse:
    return ProjectConfigResponse(
        name=config.name or config.project_id,
        icon_url=config.mascot_url,
        system_prompt=config.system_prompt,
        welcome_message=config.welcome_message,
        theme=config.theme,
        chat_endpoint="/api/v1/chat",
    )


@router.get("/project/{project_id}/config", response_model=ProjectConfigResponse)
async def get_project_config(
    project_id: str,
    store: ProjectStore = Depends(get_project_store),
) -> ProjectConfigResponse:
    """Return the widget bootstrap configuration for a project."""
    config = await store.get_assistant_config(project_id)
    if config is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "project_not_configured")
    return _to_response(config)


@router.put("/project/{project_id}/config", response_model=ProjectConfigResponse)
async def put_project_config(
    project_id: str,
    payload: AssistantConfigUpdate,
    store: ProjectStore = Depends(get_project_store),
) -> ProjectConfigResponse:
    """Create or replace a project's assistant configuration."""
    config = await store.save_assistant_config(
        AssistantConfig(
            project_id=project_id,
            name=payload.name,
            system_prompt=payload.system_prompt,
            welcome_message=payload.welcome_message,
            theme=payload.theme,
            mascot_url=payload.mascot_url,
        )
    )
    return _to_response(config)
