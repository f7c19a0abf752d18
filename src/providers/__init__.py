"""Generative text providers."""

from .base import (
    ChatModelProvider,
    ProviderConfig,
    ProviderName,
    TextProvider,
    classify_provider_error,
    extract_text,
)

__all__ = [
    "ChatModelProvider",
    "ProviderConfig",
    "ProviderName",
    "TextProvider",
    "classify_provider_error",
    "extract_text",
]
