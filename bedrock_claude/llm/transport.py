"""Bedrock runtime transport: buffered and streaming model invocation."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Iterator, Mapping, Optional, TypeVar

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from bedrock_claude.core.logging_utils import log_event
from bedrock_claude.llm.codec import CONTENT_TYPE
from bedrock_claude.llm.errors import ConfigurationError, GenerationCancelledError, TransportError
from bedrock_claude.llm.types import ChunkEvent, NilEvent, StreamEvent, UnknownEvent


def create_bedrock_client(region: str) -> Any:
    """Create a ``bedrock-runtime`` client using the default AWS credential chain."""
    region = str(region or "").strip()
    if not region:
        raise ConfigurationError("bedrock client requires a non-empty region")
    try:
        return boto3.client("bedrock-runtime", region_name=region)
    except BotoCoreError as exc:
        raise ConfigurationError(f"unable to create bedrock-runtime client: {exc}") from exc


def _transport_error(exc: Exception, operation: str) -> TransportError:
    """Map a botocore failure onto TransportError, keeping the AWS error code."""
    code: Optional[str] = None
    if isinstance(exc, ClientError):
        code = str(exc.response.get("Error", {}).get("Code") or "") or None
    return TransportError(f"{operation} failed: {exc}", code=code)


def classify_event(raw: Optional[Mapping[str, Any]]) -> StreamEvent:
    """Turn one raw boto3 event-stream member into a StreamEvent."""
    if not raw:
        return NilEvent()
    chunk = raw.get("chunk")
    if chunk is not None:
        return ChunkEvent(data=bytes(chunk.get("bytes") or b""))
    return UnknownEvent(tag=next(iter(raw)))


T = TypeVar("T")

CANCEL_POLL_SECONDS = 0.05


def run_cancellable(
    fn: Callable[[], T],
    cancel_event: Optional[threading.Event],
    *,
    operation: str,
    on_abandoned: Optional[Callable[[T], None]] = None,
) -> T:
    """Run a blocking SDK call on a worker thread and wait for it or for cancellation.

    On cancellation the caller gets ``GenerationCancelledError`` at once; the
    worker is left to finish in the background and its result, if any, is
    handed to ``on_abandoned`` for cleanup.
    """
    if cancel_event is None:
        return fn()
    if cancel_event.is_set():
        raise GenerationCancelledError()
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bedrock-invoke")
    future: Future = pool.submit(fn)
    try:
        while not cancel_event.is_set():
            done, _ = wait([future], timeout=CANCEL_POLL_SECONDS)
            if done:
                return future.result()
        log_event("llm_invoke_cancelled", {"operation": operation})
        if on_abandoned is not None:
            future.add_done_callback(lambda f: on_abandoned(f.result()) if f.exception() is None else None)
        raise GenerationCancelledError()
    finally:
        pool.shutdown(wait=False)


class EventSource:
    """Lazy iterator over classified events of one response stream."""

    def __init__(self, stream: Any) -> None:
        self._stream = stream
        self._closed = False
        self._lock = threading.Lock()

    def __iter__(self) -> Iterator[StreamEvent]:
        try:
            for raw in self._stream:
                yield classify_event(raw)
        except (ClientError, BotoCoreError) as exc:
            raise _transport_error(exc, "InvokeModelWithResponseStream") from exc

    def close(self) -> None:
        """Release the underlying HTTP connection; safe to call twice and from another thread."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        close = getattr(self._stream, "close", None)
        if close is not None:
            close()


class BedrockTransport:
    """Thin wrapper over the two Bedrock runtime invocation operations.

    The client is shared read-only across calls; no state is kept between
    invocations, so one transport may serve concurrent generations. Both
    operations accept a ``cancel_event`` and return promptly once it is set.
    """

    def __init__(self, client: Any, *, model_id: str) -> None:
        self._client = client
        self.model_id = model_id

    def invoke_buffered(self, payload: bytes, *, cancel_event: Optional[threading.Event] = None) -> bytes:
        """Run one request/response invocation and return the full body."""

        def _invoke() -> bytes:
            output = self._client.invoke_model(
                body=payload,
                modelId=self.model_id,
                contentType=CONTENT_TYPE,
                accept=CONTENT_TYPE,
            )
            body = output["body"]
            return body.read() if hasattr(body, "read") else bytes(body)

        try:
            return run_cancellable(_invoke, cancel_event, operation="InvokeModel")
        except (ClientError, BotoCoreError) as exc:
            raise _transport_error(exc, "InvokeModel") from exc

    def invoke_streaming(self, payload: bytes, *, cancel_event: Optional[threading.Event] = None) -> EventSource:
        """Open a response stream and return its lazy event source."""

        def _open() -> EventSource:
            output = self._client.invoke_model_with_response_stream(
                body=payload,
                modelId=self.model_id,
                contentType=CONTENT_TYPE,
                accept=CONTENT_TYPE,
            )
            return EventSource(output["body"])

        try:
            return run_cancellable(
                _open,
                cancel_event,
                operation="InvokeModelWithResponseStream",
                on_abandoned=lambda source: source.close(),
            )
        except (ClientError, BotoCoreError) as exc:
            raise _transport_error(exc, "InvokeModelWithResponseStream") from exc
