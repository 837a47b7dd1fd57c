"""Build the Claude adapter from resolved settings."""

from __future__ import annotations

from typing import Any, Optional

from bedrock_claude.core.config import Settings, load_settings
from bedrock_claude.llm.errors import ConfigurationError
from bedrock_claude.llm.providers.bedrock_claude import (
    BedrockClaudeLLM,
    new_claude_llm,
    with_client,
    with_default_max_tokens,
    with_model_id,
    without_human_assistant_prompt,
)


def build_claude_llm(settings: Optional[Settings] = None, *, client: Any = None) -> BedrockClaudeLLM:
    """Build an adapter from settings (loaded from file/env when omitted)."""
    settings = settings or load_settings()
    if not settings.region:
        raise ConfigurationError("bedrock region is not configured; set BEDROCK_REGION or AWS_REGION")
    options = [with_model_id(settings.model_id), with_default_max_tokens(settings.max_tokens)]
    if not settings.human_assistant_prompt:
        options.append(without_human_assistant_prompt())
    if client is not None:
        options.append(with_client(client))
    return new_claude_llm(settings.region, *options)
