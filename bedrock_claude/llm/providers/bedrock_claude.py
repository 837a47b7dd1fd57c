"""Claude-on-Bedrock language model adapter."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional, Sequence, Union

import tiktoken

from bedrock_claude.core.logging_utils import bedrock_log_context, log_event
from bedrock_claude.llm.codec import decode_response, encode_request
from bedrock_claude.llm.errors import ConfigurationError, EmptyResponseError
from bedrock_claude.llm.interfaces import CallbacksHandler, PromptValue
from bedrock_claude.llm.stream import reduce_stream
from bedrock_claude.llm.transport import BedrockTransport, create_bedrock_client
from bedrock_claude.llm.types import (
    CallOptions,
    Generation,
    GenerationRequest,
    GenerationResponse,
    LLMResult,
    StreamingFunc,
)

CLAUDE_V2_MODEL_ID = "anthropic.claude-v2"
CLAUDE_PROMPT_FORMAT = "\n\nHuman:{prompt}\n\nAssistant:"
DEFAULT_MAX_TOKENS = 256
TOKEN_COUNT_MODEL = "gpt-4"
FALLBACK_ENCODING = "gpt2"


@dataclass(frozen=True)
class ClaudeConfig:
    """Construction-time options for ``new_claude_llm``."""

    client: Any = None
    model_id: str = CLAUDE_V2_MODEL_ID
    use_human_assistant_prompt: bool = True
    default_max_tokens: Optional[int] = DEFAULT_MAX_TOKENS
    callbacks_handler: Optional[CallbacksHandler] = None


ConfigOption = Callable[[ClaudeConfig], ClaudeConfig]


def with_client(client: Any) -> ConfigOption:
    """Use an already configured ``bedrock-runtime`` client."""
    return lambda cfg: replace(cfg, client=client)


def with_model_id(model_id: str) -> ConfigOption:
    """Target a different Bedrock model id."""
    return lambda cfg: replace(cfg, model_id=model_id)


def without_human_assistant_prompt() -> ConfigOption:
    """Send prompts as-is instead of wrapping them in Human/Assistant turns."""
    return lambda cfg: replace(cfg, use_human_assistant_prompt=False)


def with_default_max_tokens(max_tokens: Optional[int]) -> ConfigOption:
    """Set ``max_tokens_to_sample`` used when a call does not pass ``max_tokens``."""
    return lambda cfg: replace(cfg, default_max_tokens=max_tokens)


def with_callbacks_handler(handler: CallbacksHandler) -> ConfigOption:
    """Attach lifecycle hooks notified around each generation."""
    return lambda cfg: replace(cfg, callbacks_handler=handler)


def format_prompt(prompt: str, *, use_human_assistant_prompt: bool) -> str:
    """Apply Claude's Human/Assistant framing when enabled."""
    if use_human_assistant_prompt:
        return CLAUDE_PROMPT_FORMAT.format(prompt=prompt)
    return prompt


class BedrockClaudeLLM:
    """Language model backed by Anthropic Claude on Amazon Bedrock.

    Configuration is fixed at construction. Each ``generate`` call is
    independent; the boto3 client is only read, so one instance can serve
    concurrent calls from several threads.
    """

    name = "bedrock_claude"

    def __init__(
        self,
        client: Any,
        *,
        model_id: str = CLAUDE_V2_MODEL_ID,
        use_human_assistant_prompt: bool = True,
        default_max_tokens: Optional[int] = DEFAULT_MAX_TOKENS,
        callbacks_handler: Optional[CallbacksHandler] = None,
    ) -> None:
        if client is None:
            raise ConfigurationError("BedrockClaudeLLM requires a bedrock-runtime client")
        if not str(model_id or "").strip():
            raise ConfigurationError("BedrockClaudeLLM requires a non-empty model id")
        self._transport = BedrockTransport(client, model_id=model_id)
        self._model_id = model_id
        self._use_human_assistant_prompt = bool(use_human_assistant_prompt)
        self._default_max_tokens = default_max_tokens
        self._callbacks_handler = callbacks_handler
        self._log_context = bedrock_log_context(model_id, client)

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def use_human_assistant_prompt(self) -> bool:
        return self._use_human_assistant_prompt

    @property
    def callbacks_handler(self) -> Optional[CallbacksHandler]:
        return self._callbacks_handler

    def call(self, prompt: str, **options: Any) -> str:
        """Complete a single prompt and return the generated text.

        Raises:
            EmptyResponseError: No generation came back.
        """
        generations = self.generate([prompt], **options)
        if not generations:
            raise EmptyResponseError("empty response")
        return generations[0].text

    def generate(
        self,
        prompts: Sequence[str],
        *,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        top_k: Optional[int] = None,
        top_p: Optional[float] = None,
        stop_sequences: Optional[Sequence[str]] = None,
        streaming_func: Optional[StreamingFunc] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Generation]:
        """Generate one completion for the first prompt of ``prompts``.

        The Bedrock text-completions protocol takes one prompt per request, so
        only ``prompts[0]`` is sent and extra prompts are ignored. Passing
        ``streaming_func`` switches to the streaming invocation; it receives
        each chunk's completion bytes in arrival order. Chunks delivered before
        a failure are not rolled back.

        Args:
            prompts (Sequence[str]): Prompt batch; must contain a non-empty first prompt.
            max_tokens (Optional[int]): Overrides the adapter's default ``max_tokens_to_sample``.
            temperature (Optional[float]): Sampling temperature, passed through.
            top_k (Optional[int]): Top-K sampling, passed through.
            top_p (Optional[float]): Nucleus sampling, passed through.
            stop_sequences (Optional[Sequence[str]]): Stop sequences, in order.
            streaming_func (Optional[StreamingFunc]): Per-chunk callback; enables streaming.
            cancel_event (Optional[threading.Event]): Set from another thread to abort.

        Returns:
            List[Generation]: Exactly one generation.
        """
        opts = CallOptions(
            max_tokens=max_tokens,
            temperature=temperature,
            top_k=top_k,
            top_p=top_p,
            stop_sequences=tuple(stop_sequences or ()),
            streaming_func=streaming_func,
            cancel_event=cancel_event,
        )
        if isinstance(prompts, (str, bytes)):
            raise TypeError("generate expects a sequence of prompts, not a single string; use call() for one prompt")
        prompt_list = list(prompts)
        self._notify("handle_llm_start", prompt_list)
        if not prompt_list or not prompt_list[0]:
            raise ValueError("generate requires a non-empty first prompt")

        request = GenerationRequest(
            prompt=format_prompt(prompt_list[0], use_human_assistant_prompt=self._use_human_assistant_prompt),
            max_tokens_to_sample=opts.max_tokens if opts.max_tokens is not None else self._default_max_tokens,
            temperature=opts.temperature,
            top_k=opts.top_k,
            top_p=opts.top_p,
            stop_sequences=opts.stop_sequences,
        )
        payload = encode_request(request)
        log_event(
            "llm_generate_start",
            {"streaming": opts.streaming_func is not None, "prompts": len(prompt_list)},
            context=self._log_context,
        )

        if opts.streaming_func is not None:
            resp = self._invoke_streaming(payload, opts)
        else:
            resp = self._invoke_buffered(payload, opts)

        generations = [Generation(text=resp.completion)]
        log_event(
            "llm_generate_end",
            {"chars": len(resp.completion), "stop_reason": resp.stop_reason},
            context=self._log_context,
        )
        self._notify("handle_llm_end", LLMResult(generations=[generations]))
        return generations

    def generate_prompt(self, prompts: Sequence[Union[PromptValue, str]], **options: Any) -> LLMResult:
        """Render prompt values to strings and run ``generate`` on them."""
        texts = [p if isinstance(p, str) else p.to_string() for p in prompts]
        return LLMResult(generations=[self.generate(texts, **options)])

    def get_num_tokens(self, text: str) -> int:
        """Approximate token count; not Claude-exact.

        Uses the GPT-4 tiktoken encoding, then ``gpt2`` when that cannot be
        loaded (e.g. offline hosts without a cached vocabulary), then a
        four-characters-per-token estimate.
        """
        text = text or ""
        for loader, arg in ((tiktoken.encoding_for_model, TOKEN_COUNT_MODEL), (tiktoken.get_encoding, FALLBACK_ENCODING)):
            try:
                encoding = loader(arg)
            except Exception as exc:
                log_event(
                    "llm_token_encoding_unavailable",
                    {"encoding": arg, "error": f"{type(exc).__name__}: {exc}"},
                    context=self._log_context,
                )
                continue
            return len(encoding.encode(text))
        return len(text) // 4

    def _invoke_buffered(self, payload: bytes, opts: CallOptions) -> GenerationResponse:
        body = self._transport.invoke_buffered(payload, cancel_event=opts.cancel_event)
        return decode_response(body)

    def _invoke_streaming(self, payload: bytes, opts: CallOptions) -> GenerationResponse:
        source = self._transport.invoke_streaming(payload, cancel_event=opts.cancel_event)
        return reduce_stream(source, opts.streaming_func, cancel_event=opts.cancel_event)

    def _notify(self, hook: str, arg: Any) -> None:
        """Invoke one lifecycle hook; hook failures are logged and never abort the call."""
        handler = self._callbacks_handler
        if handler is None:
            return
        fn = getattr(handler, hook, None)
        if fn is None:
            return
        try:
            fn(arg)
        except Exception as exc:
            log_event(
                "llm_callback_error",
                {"hook": hook, "error": f"{type(exc).__name__}: {exc}"},
                context=self._log_context,
            )


def new_claude_llm(region: str, *options: ConfigOption) -> BedrockClaudeLLM:
    """Build an adapter for ``region``, applying ``options`` in order.

    Raises:
        ConfigurationError: Region is empty or no client could be created.
    """
    if not str(region or "").strip():
        raise ConfigurationError("empty region")
    cfg = ClaudeConfig()
    for opt in options:
        cfg = opt(cfg)
    client = cfg.client if cfg.client is not None else create_bedrock_client(region)
    return BedrockClaudeLLM(
        client,
        model_id=cfg.model_id,
        use_human_assistant_prompt=cfg.use_human_assistant_prompt,
        default_max_tokens=cfg.default_max_tokens,
        callbacks_handler=cfg.callbacks_handler,
    )
