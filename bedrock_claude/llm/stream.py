"""Reduction of a Bedrock response stream into one completion."""

from __future__ import annotations

import threading
from typing import Any, Iterable, Optional

from bedrock_claude.core.logging_utils import log_event
from bedrock_claude.llm.codec import decode_response
from bedrock_claude.llm.errors import GenerationCancelledError
from bedrock_claude.llm.transport import CANCEL_POLL_SECONDS
from bedrock_claude.llm.types import (
    ChunkEvent,
    GenerationResponse,
    NilEvent,
    StreamEvent,
    StreamingFunc,
    UnknownEvent,
)


class _CancelWatcher:
    """Closes ``source`` from a daemon thread once ``cancel_event`` is set.

    Closing the botocore event stream releases its HTTP connection, which
    unblocks a read waiting for the next chunk.
    """

    def __init__(self, source: Any, cancel_event: threading.Event) -> None:
        self._source = source
        self._cancel_event = cancel_event
        self._done = threading.Event()
        self.fired = threading.Event()
        self._thread = threading.Thread(target=self._run, name="bedrock-stream-cancel", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._done.set()
        self._thread.join()

    def _run(self) -> None:
        while not self._done.is_set():
            if self._cancel_event.wait(CANCEL_POLL_SECONDS):
                if not self._done.is_set():
                    self.fired.set()
                    _close(self._source)
                return


class _Accumulator:
    """Running state of one reduction."""

    def __init__(self, on_chunk: Optional[StreamingFunc]) -> None:
        self._on_chunk = on_chunk
        self._parts: list[str] = []
        self.chunks = 0
        self.stop_reason: Optional[str] = None

    def feed(self, event: StreamEvent) -> None:
        if isinstance(event, ChunkEvent):
            resp = decode_response(event.data)
            self.chunks += 1
            if self._on_chunk is not None:
                self._on_chunk(resp.completion.encode("utf-8"))
            self._parts.append(resp.completion)
            if resp.stop_reason is not None:
                self.stop_reason = resp.stop_reason
        elif isinstance(event, UnknownEvent):
            log_event("llm_stream_unknown_event", {"tag": event.tag})
        elif isinstance(event, NilEvent):
            log_event("llm_stream_nil_event")
        else:
            log_event("llm_stream_nil_event", {"type": type(event).__name__})

    def result(self) -> GenerationResponse:
        return GenerationResponse(completion="".join(self._parts), stop_reason=self.stop_reason)


def _close(source: Any) -> None:
    close = getattr(source, "close", None)
    if close is not None:
        close()


def _raise_if_cancelled(cancel_event: Optional[threading.Event], acc: _Accumulator) -> None:
    if cancel_event is not None and cancel_event.is_set():
        log_event("llm_stream_cancelled", {"chunks": acc.chunks})
        raise GenerationCancelledError()


def reduce_stream(
    events: Iterable[StreamEvent],
    on_chunk: Optional[StreamingFunc] = None,
    *,
    cancel_event: Optional[threading.Event] = None,
) -> GenerationResponse:
    """Decode chunks in delivery order, feed ``on_chunk`` and concatenate completions.

    Unknown and nil events are logged and skipped. A chunk that fails to decode
    raises ``DecodeError`` and no partial text is returned; the callback may
    already have seen earlier chunks. Exceptions raised by ``on_chunk`` abort
    the reduction and propagate unchanged.

    With ``cancel_event``, a watcher thread closes the source as soon as the
    event is set, so a read stalled between chunks returns promptly. The call
    then raises ``GenerationCancelledError`` whatever error the interrupted
    read surfaced.

    Args:
        events (Iterable[StreamEvent]): Event source; closed on exit when it has ``close``.
        on_chunk (Optional[StreamingFunc]): Called with each chunk's completion bytes.
        cancel_event (Optional[threading.Event]): Set from another thread to abort the stream.

    Returns:
        GenerationResponse: Completion text of the whole stream.
    """
    acc = _Accumulator(on_chunk)
    watcher = _CancelWatcher(events, cancel_event) if cancel_event is not None else None
    try:
        if watcher is not None:
            watcher.start()
        try:
            for event in events:
                _raise_if_cancelled(cancel_event, acc)
                acc.feed(event)
            _raise_if_cancelled(cancel_event, acc)
        except GenerationCancelledError:
            raise
        except Exception as exc:
            if watcher is not None and watcher.fired.is_set():
                log_event("llm_stream_cancelled", {"chunks": acc.chunks, "interrupted": type(exc).__name__})
                raise GenerationCancelledError() from exc
            raise
    finally:
        if watcher is not None:
            watcher.stop()
        _close(events)
    return acc.result()
