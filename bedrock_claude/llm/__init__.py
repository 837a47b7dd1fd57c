"""Claude-on-Bedrock adapter: codec, transport, stream reduction and the language-model facade."""

from bedrock_claude.llm.builder import build_claude_llm
from bedrock_claude.llm.errors import (
    ConfigurationError,
    DecodeError,
    EmptyResponseError,
    GenerationCancelledError,
    LLMConfigurationError,
    LLMProviderError,
    TransportError,
)
from bedrock_claude.llm.interfaces import CallbacksHandler, LanguageModel, PromptValue
from bedrock_claude.llm.providers import BedrockClaudeLLM, new_claude_llm
from bedrock_claude.llm.types import (
    ChunkEvent,
    Generation,
    GenerationRequest,
    GenerationResponse,
    LLMResult,
    NilEvent,
    UnknownEvent,
)

__all__ = [
    "LLMProviderError",
    "LLMConfigurationError",
    "ConfigurationError",
    "TransportError",
    "GenerationCancelledError",
    "DecodeError",
    "EmptyResponseError",
    "CallbacksHandler",
    "LanguageModel",
    "PromptValue",
    "GenerationRequest",
    "GenerationResponse",
    "Generation",
    "LLMResult",
    "ChunkEvent",
    "UnknownEvent",
    "NilEvent",
    "BedrockClaudeLLM",
    "new_claude_llm",
    "build_claude_llm",
]
