"""Shared fakes for the boto3 bedrock-runtime client and its event stream."""

from __future__ import annotations

import io
import json
import sys
import threading
import time
from pathlib import Path
from typing import Any, Iterable, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def chunk(completion: str, **extra: Any) -> dict:
    """Raw boto3 stream member carrying one completion chunk."""
    body = {"completion": completion}
    body.update(extra)
    return {"chunk": {"bytes": json.dumps(body).encode("utf-8")}}


class FakeEventStream:
    """Iterable mimicking botocore's EventStream; may raise mid-stream."""

    def __init__(self, events: Iterable[Any], *, error_after: Optional[int] = None, error: Optional[Exception] = None):
        self._events = list(events)
        self._error_after = error_after
        self._error = error
        self.closed = False
        self.delivered = 0

    def __iter__(self):
        for idx, event in enumerate(self._events):
            if self._error is not None and self._error_after == idx:
                raise self._error
            if self.closed:
                return
            self.delivered += 1
            yield event
        if self._error is not None and self._error_after == len(self._events):
            raise self._error

    def close(self) -> None:
        self.closed = True


class StalledEventStream(FakeEventStream):
    """Delivers its events, then blocks like a silent connection until closed."""

    def __init__(self, events: Iterable[Any], *, stall_seconds: float = 5.0):
        super().__init__(events)
        self._released = threading.Event()
        self._stall_seconds = stall_seconds

    def __iter__(self):
        yield from super().__iter__()
        self._released.wait(self._stall_seconds)
        if self.closed:
            raise ConnectionResetError("connection closed while reading")

    def close(self) -> None:
        super().close()
        self._released.set()


class FakeBedrockClient:
    """In-memory stand-in for a boto3 ``bedrock-runtime`` client."""

    def __init__(
        self,
        *,
        body: bytes = b'{"completion": "hello"}',
        stream: Optional[FakeEventStream] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ) -> None:
        self.body = body
        self.stream = stream
        self.error = error
        self.delay = delay
        self.calls: List[tuple[str, dict]] = []

    def invoke_model(self, **kwargs: Any) -> dict:
        self.calls.append(("invoke_model", kwargs))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return {"body": io.BytesIO(self.body), "contentType": "application/json"}

    def invoke_model_with_response_stream(self, **kwargs: Any) -> dict:
        self.calls.append(("invoke_model_with_response_stream", kwargs))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return {"body": self.stream if self.stream is not None else FakeEventStream([])}

    def sent_payload(self, index: int = -1) -> dict:
        return json.loads(self.calls[index][1]["body"])


@pytest.fixture
def fake_client() -> FakeBedrockClient:
    return FakeBedrockClient()
