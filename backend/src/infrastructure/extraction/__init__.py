"""Text extraction from uploaded documents."""

from .extractor import TextExtractor, get_text_extractor

__all__ = ["TextExtractor", "get_text_extractor"]
