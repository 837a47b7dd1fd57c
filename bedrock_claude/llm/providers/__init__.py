"""Concrete language-model adapters."""

from .bedrock_claude import (
    CLAUDE_V2_MODEL_ID,
    BedrockClaudeLLM,
    ClaudeConfig,
    new_claude_llm,
    with_callbacks_handler,
    with_client,
    with_default_max_tokens,
    with_model_id,
    without_human_assistant_prompt,
)

__all__ = [
    "CLAUDE_V2_MODEL_ID",
    "BedrockClaudeLLM",
    "ClaudeConfig",
    "new_claude_llm",
    "with_client",
    "with_model_id",
    "without_human_assistant_prompt",
    "with_default_max_tokens",
    "with_callbacks_handler",
]
