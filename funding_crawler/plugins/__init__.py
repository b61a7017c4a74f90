"""
Optional plugins.

- llm: AI enhancement gate, completion providers and program enhancer
"""

from .llm import (
    AIEnhancementGate,
    Categorization,
    ClaudeProvider,
    CompletionProvider,
    CompletionRequest,
    GroqProvider,
    OpenAIProvider,
    ProgramEnhancer,
    create_provider,
    is_quota_error,
)

__all__ = [
    "AIEnhancementGate",
    "Categorization",
    "ClaudeProvider",
    "CompletionProvider",
    "CompletionRequest",
    "GroqProvider",
    "OpenAIProvider",
    "ProgramEnhancer",
    "create_provider",
    "is_quota_error",
]
