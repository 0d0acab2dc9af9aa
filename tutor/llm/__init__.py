"""
LLM module - completion client and prompt building for the language tutor.
"""

from .client import CompletionClient, CompletionResult, TokenUsage
from .prompts import (
    build_conversation,
    build_system_prompt,
    difficulty_instruction,
)

__all__ = [
    "CompletionClient",
    "CompletionResult",
    "TokenUsage",
    "build_conversation",
    "build_system_prompt",
    "difficulty_instruction",
]
