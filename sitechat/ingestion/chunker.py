"""
Token Chunker

Splits text into overlapping windows of at most ``max_tokens`` tokens.
The text is tokenized once; the window advances by ``max_tokens - overlap``
tokens and each window is decoded back to text. Boundaries are token
aligned, not sentence aligned.
"""

from __future__ import annotations

import logging
from typing import Protocol

import tiktoken

logger = logging.getLogger(__name__)


class ChunkingError(ValueError):
    """Invalid chunking parameters."""

    pass


class Encoding(Protocol):
    def encode(self, text: str) -> list[int]: ...

    def decode(self, tokens: list[int]) -> str: ...


class TextChunker:
    """
    Sliding-window chunker over a tiktoken encoding.

    Args:
        max_tokens: Window size in tokens
        overlap: Tokens shared by consecutive windows (must be < max_tokens)
        encoding: Encoding to use; defaults to ``tiktoken.get_encoding(encoding_name)``
        encoding_name: tiktoken encoding name
    """

    def __init__(
        self,
        max_tokens: int = 500,
        overlap: int = 50,
        encoding: Encoding | None = None,
        encoding_name: str = "cl100k_base",
    ) -> None:
        validate_window(max_tokens, overlap)
        self.max_tokens = max_tokens
        self.overlap = overlap
        self._encoding = encoding
        self._encoding_name = encoding_name

    @property
    def encoding(self) -> Encoding:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self._encoding_name)
        return self._encoding

    def token_windows(self, tokens: list[int]) -> list[tuple[int, int]]:
        """Return ``(start, end)`` token offsets of every window."""
        windows: list[tuple[int, int]] = []
        step = self.max_tokens - self.overlap
        start = 0
        while start < len(tokens):
            end = min(start + self.max_tokens, len(tokens))
            windows.append((start, end))
            if end == len(tokens):
                break
            start += step
        return windows

    def chunk(self, text: str) -> list[str]:
        """Split ``text`` into chunks. Empty text yields no chunks."""
        tokens = self.encoding.encode(text)
        chunks = [self.encoding.decode(tokens[start:end]) for start, end in self.token_windows(tokens)]
        logger.debug(
            f"Chunked {len(tokens)} tokens into {len(chunks)} chunks",
            extra={"max_tokens": self.max_tokens, "overlap": self.overlap},
        )
        return chunks


def validate_window(max_tokens: int, overlap: int) -> None:
    """Raise ChunkingError unless ``0 <= overlap < max_tokens``."""
    if max_tokens <= 0:
        raise ChunkingError(f"max_tokens must be positive, got {max_tokens}")
    if overlap < 0:
        raise ChunkingError(f"overlap must not be negative, got {overlap}")
    if overlap >= max_tokens:
        raise ChunkingError(f"overlap ({overlap}) must be less than max_tokens ({max_tokens})")
