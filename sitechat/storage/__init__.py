"""System database persistence."""

from sitechat.storage.projects import ProjectStore

__all__ = ["ProjectStore"]
