"""Prompt construction for narrative enrichment."""

from .builder import PromptBuilder, PromptMessage, PromptRequest

__all__ = ["PromptBuilder", "PromptMessage", "PromptRequest"]
