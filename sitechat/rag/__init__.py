"""Prompt assembly for retrieval-augmented answers."""

from sitechat.rag.prompt import build_system_prompt

__all__ = ["build_system_prompt"]
