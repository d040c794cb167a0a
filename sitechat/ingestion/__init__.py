"""Website ingestion: fetch, extract, chunk, embed, store."""

from sitechat.ingestion.chunker import ChunkingError, TextChunker, validate_window
from sitechat.ingestion.extractor import ContentExtractor, ExtractionResult, FetchError, html_to_text
from sitechat.ingestion.pipeline import IngestionPipeline, IngestionResult

__all__ = [
    "ChunkingError",
    "TextChunker",
    "validate_window",
    "ContentExtractor",
    "ExtractionResult",
    "FetchError",
    "html_to_text",
    "IngestionPipeline",
    "IngestionResult",
]
