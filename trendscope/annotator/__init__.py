"""Keyword extraction and summaries for headlines."""

from .llm_provider import (
    AnnotationError,
    AnnotationProvider,
    AnnotationProviderFactory,
    GeminiProvider,
    NoLLMProvider,
)

__all__ = [
    "AnnotationError",
    "AnnotationProvider",
    "AnnotationProviderFactory",
    "GeminiProvider",
    "NoLLMProvider",
]
