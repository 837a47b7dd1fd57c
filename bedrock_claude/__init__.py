"""Bedrock Claude package exports for the language-model adapter."""

from .llm import (
    BedrockClaudeLLM,
    DecodeError,
    EmptyResponseError,
    TransportError,
    build_claude_llm,
    new_claude_llm,
)

__all__ = [
    "BedrockClaudeLLM",
    "new_claude_llm",
    "build_claude_llm",
    "TransportError",
    "DecodeError",
    "EmptyResponseError",
]
