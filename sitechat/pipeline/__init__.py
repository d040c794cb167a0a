"""Chat turn orchestration."""

from sitechat.pipeline.orchestrator import (
    ChatOrchestrator,
    ChatPhase,
    ChatState,
    CredentialRequired,
    ProjectNotConfigured,
)

__all__ = [
    "ChatOrchestrator",
    "ChatPhase",
    "ChatState",
    "CredentialRequired",
    "ProjectNotConfigured",
]
