"""Request, response and stream-event datatypes for Claude on Bedrock."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple, Union

StreamingFunc = Callable[[bytes], None]


@dataclass(frozen=True)
class GenerationRequest:
    """Structured text-completion request in the Claude text-completions schema."""

    prompt: str
    max_tokens_to_sample: Optional[int] = None
    temperature: Optional[float] = None
    top_k: Optional[int] = None
    top_p: Optional[float] = None
    stop_sequences: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.prompt:
            raise ValueError("prompt must be non-empty")


@dataclass(frozen=True)
class GenerationResponse:
    """Decoded completion payload (buffered body or one stream chunk)."""

    completion: str
    stop_reason: Optional[str] = None


@dataclass(frozen=True)
class Generation:
    """One normalized generation handed back to callers."""

    text: str


@dataclass(frozen=True)
class LLMResult:
    """Batch of generations, one list per input prompt."""

    generations: List[List[Generation]] = field(default_factory=list)


@dataclass(frozen=True)
class CallOptions:
    """Per-call generation overrides."""

    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_k: Optional[int] = None
    top_p: Optional[float] = None
    stop_sequences: Tuple[str, ...] = ()
    streaming_func: Optional[StreamingFunc] = None
    cancel_event: Optional[threading.Event] = None


@dataclass(frozen=True)
class ChunkEvent:
    """Stream event carrying one JSON-encoded completion chunk."""

    data: bytes


@dataclass(frozen=True)
class UnknownEvent:
    """Stream event with a member tag this client does not understand."""

    tag: str


@dataclass(frozen=True)
class NilEvent:
    """Empty or untyped stream event."""


StreamEvent = Union[ChunkEvent, UnknownEvent, NilEvent]
