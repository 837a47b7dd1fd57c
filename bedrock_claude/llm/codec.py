"""JSON codec for the Claude text-completions payload used by Bedrock."""

from __future__ import annotations

import json
from typing import Any, Dict, Union

from bedrock_claude.llm.errors import DecodeError
from bedrock_claude.llm.types import GenerationRequest, GenerationResponse

CONTENT_TYPE = "application/json"


def request_payload(request: GenerationRequest) -> Dict[str, Any]:
    """Build the wire dict for one request, omitting unset fields."""
    payload: Dict[str, Any] = {"prompt": request.prompt}
    if request.max_tokens_to_sample is not None:
        payload["max_tokens_to_sample"] = request.max_tokens_to_sample
    if request.temperature is not None:
        payload["temperature"] = request.temperature
    if request.top_k is not None:
        payload["top_k"] = request.top_k
    if request.top_p is not None:
        payload["top_p"] = request.top_p
    if request.stop_sequences:
        payload["stop_sequences"] = list(request.stop_sequences)
    return payload


def encode_request(request: GenerationRequest) -> bytes:
    """Serialize a request to UTF-8 JSON bytes."""
    return json.dumps(request_payload(request), ensure_ascii=False).encode("utf-8")


def decode_response(body: Union[bytes, str]) -> GenerationResponse:
    """Parse a buffered body or stream chunk into a GenerationResponse.

    Raises:
        DecodeError: Body is not JSON, not an object, or has no string ``completion``.
    """
    try:
        data = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError(f"invalid completion payload: {exc}") from exc
    if not isinstance(data, dict):
        raise DecodeError(f"completion payload must be a JSON object, got {type(data).__name__}")
    completion = data.get("completion")
    if not isinstance(completion, str):
        raise DecodeError("completion payload is missing string field 'completion'")
    stop_reason = data.get("stop_reason")
    return GenerationResponse(
        completion=completion,
        stop_reason=str(stop_reason) if stop_reason is not None else None,
    )
