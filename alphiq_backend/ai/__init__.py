"""
AI package: LLM-generated wallet summaries.
"""

from alphiq_backend.ai.summarizer import (
    CompletionClient,
    CompletionError,
    build_prompt,
    summarize_recent_transactions,
)

__all__ = ["CompletionClient", "CompletionError", "build_prompt", "summarize_recent_transactions"]
