"""Unit tests for the Bedrock runtime transport wrapper."""

from __future__ import annotations

import threading
import time

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, EventStreamError

from bedrock_claude.llm.errors import ConfigurationError, GenerationCancelledError, TransportError
from bedrock_claude.llm.transport import (
    BedrockTransport,
    EventSource,
    classify_event,
    create_bedrock_client,
    run_cancellable,
)
from bedrock_claude.llm.types import ChunkEvent, NilEvent, UnknownEvent

from conftest import FakeBedrockClient, FakeEventStream, chunk


def _client_error(code: str, operation: str = "InvokeModel") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, operation)


def test_invoke_buffered_sends_json_content_type_and_model_id(fake_client: FakeBedrockClient) -> None:
    transport = BedrockTransport(fake_client, model_id="anthropic.claude-v2")
    body = transport.invoke_buffered(b'{"prompt": "x"}')
    assert body == b'{"completion": "hello"}'
    name, kwargs = fake_client.calls[0]
    assert name == "invoke_model"
    assert kwargs["modelId"] == "anthropic.claude-v2"
    assert kwargs["contentType"] == "application/json"
    assert kwargs["accept"] == "application/json"
    assert kwargs["body"] == b'{"prompt": "x"}'


def test_invoke_buffered_maps_client_error_with_code() -> None:
    client = FakeBedrockClient(error=_client_error("AccessDeniedException"))
    transport = BedrockTransport(client, model_id="m")
    with pytest.raises(TransportError) as excinfo:
        transport.invoke_buffered(b"{}")
    assert excinfo.value.code == "AccessDeniedException"
    assert isinstance(excinfo.value.__cause__, ClientError)


def test_invoke_streaming_maps_network_error() -> None:
    client = FakeBedrockClient(error=EndpointConnectionError(endpoint_url="https://bedrock-runtime"))
    transport = BedrockTransport(client, model_id="m")
    with pytest.raises(TransportError) as excinfo:
        transport.invoke_streaming(b"{}")
    assert excinfo.value.code is None


def test_classify_event_variants() -> None:
    assert classify_event(chunk("a")) == ChunkEvent(data=b'{"completion": "a"}')
    assert classify_event({"metadata": {"x": 1}}) == UnknownEvent(tag="metadata")
    assert classify_event({}) == NilEvent()
    assert classify_event(None) == NilEvent()


def test_event_source_maps_mid_stream_errors() -> None:
    err = EventStreamError(
        {"Error": {"Code": "ThrottlingException", "Message": "slow down"}},
        "InvokeModelWithResponseStream",
    )
    source = EventSource(FakeEventStream([chunk("a"), chunk("b")], error_after=1, error=err))
    received = []
    with pytest.raises(TransportError) as excinfo:
        for event in source:
            received.append(event)
    assert len(received) == 1
    assert excinfo.value.code == "ThrottlingException"


def test_event_source_close_is_idempotent() -> None:
    stream = FakeEventStream([])
    source = EventSource(stream)
    source.close()
    source.close()
    assert stream.closed


def test_create_bedrock_client_requires_region() -> None:
    with pytest.raises(ConfigurationError):
        create_bedrock_client("  ")


def test_create_bedrock_client_uses_region() -> None:
    client = create_bedrock_client("us-east-1")
    assert client.meta.region_name == "us-east-1"
    assert client.meta.service_model.service_name == "bedrock-runtime"


def test_stream_opened_after_cancellation_is_closed() -> None:
    stream = FakeEventStream([chunk("a")])
    client = FakeBedrockClient(stream=stream, delay=0.3)
    transport = BedrockTransport(client, model_id="m")
    cancel = threading.Event()
    timer = threading.Timer(0.05, cancel.set)
    timer.start()
    started = time.monotonic()
    with pytest.raises(GenerationCancelledError):
        transport.invoke_streaming(b"{}", cancel_event=cancel)
    assert time.monotonic() - started < 0.3
    deadline = time.monotonic() + 2.0
    while not stream.closed and time.monotonic() < deadline:
        time.sleep(0.01)
    assert stream.closed


def test_run_cancellable_surfaces_worker_errors() -> None:
    def _fail() -> bytes:
        raise _client_error("ServiceUnavailableException")

    with pytest.raises(ClientError):
        run_cancellable(_fail, threading.Event(), operation="InvokeModel")


def test_invoke_buffered_maps_errors_raised_on_worker_thread() -> None:
    client = FakeBedrockClient(error=_client_error("ModelTimeoutException"))
    transport = BedrockTransport(client, model_id="m")
    with pytest.raises(TransportError) as excinfo:
        transport.invoke_buffered(b"{}", cancel_event=threading.Event())
    assert excinfo.value.code == "ModelTimeoutException"
