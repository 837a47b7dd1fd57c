"""Protocols for the language-model contract and its lifecycle hooks."""

from __future__ import annotations

from typing import Any, List, Protocol, Sequence, Union

from .types import Generation, LLMResult


class PromptValue(Protocol):
    """Anything that renders itself to a prompt string."""

    def to_string(self) -> str:
        """Return the prompt text."""


class CallbacksHandler(Protocol):
    """Observational hooks around one generation call."""

    def handle_llm_start(self, prompts: List[str]) -> None:
        """Called before the request is built."""

    def handle_llm_end(self, result: LLMResult) -> None:
        """Called after generations were produced."""


class LanguageModel(Protocol):
    """Generic language-model contract consumed by orchestration code."""

    def call(self, prompt: str, **options: Any) -> str:
        """Complete one prompt and return its text."""

    def generate(self, prompts: Sequence[str], **options: Any) -> List[Generation]:
        """Generate completions for a prompt batch."""

    def generate_prompt(self, prompts: Sequence[Union[PromptValue, str]], **options: Any) -> LLMResult:
        """Generate completions for prompt values."""

    def get_num_tokens(self, text: str) -> int:
        """Return an approximate token count for text."""
