from __future__ import annotations

import io
import json

import boto3
import pytest

from tradesim.core.llm.bedrock_client import BedrockLLMClient, has_aws_credentials


class FakeRuntime:
    def __init__(self, converse_response=None, invoke_payload=None) -> None:
        self.converse_response = converse_response
        self.invoke_payload = invoke_payload
        self.converse_calls: list[dict] = []
        self.invoke_calls: list[dict] = []

    def converse(self, **kwargs):
        self.converse_calls.append(kwargs)
        if isinstance(self.converse_response, Exception):
            raise self.converse_response
        return self.converse_response

    def invoke_model(self, **kwargs):
        self.invoke_calls.append(kwargs)
        if isinstance(self.invoke_payload, Exception):
            raise self.invoke_payload
        return {"body": io.BytesIO(json.dumps(self.invoke_payload).encode("utf-8"))}


def _client(monkeypatch, runtime: FakeRuntime) -> BedrockLLMClient:
    monkeypatch.setattr(boto3, "client", lambda *args, **kwargs: runtime)
    return BedrockLLMClient(region="ap-south-1", model_id="test-model", max_tokens=256, temperature=0.2)


def test_converse_text_and_usage(monkeypatch) -> None:
    runtime = FakeRuntime(
        converse_response={
            "output": {"message": {"content": [{"text": "Diversified."}]}},
            "usage": {"inputTokens": 12, "outputTokens": 30},
        }
    )
    client = _client(monkeypatch, runtime)
    assert client.invoke_text("analyze") == "Diversified."

    call = runtime.converse_calls[0]
    assert call["modelId"] == "test-model"
    assert call["inferenceConfig"] == {"maxTokens": 256, "temperature": 0.2}
    usage = client.get_last_usage()
    assert usage["transport"] == "converse"
    assert usage["usage"] == {"input_tokens": 12, "output_tokens": 30, "total_tokens": 42}


def test_falls_back_to_invoke_model(monkeypatch) -> None:
    runtime = FakeRuntime(
        converse_response=RuntimeError("converse unsupported"),
        invoke_payload={"content": [{"type": "text", "text": "Fallback text"}], "usage": {"input_tokens": 5}},
    )
    client = _client(monkeypatch, runtime)
    assert client.invoke_text("analyze") == "Fallback text"
    assert client.get_last_usage()["transport"] == "invoke_model"
    body = json.loads(runtime.invoke_calls[0]["body"])
    assert body["max_tokens"] == 256


def test_both_transports_failing_raise(monkeypatch) -> None:
    runtime = FakeRuntime(converse_response=RuntimeError("down"), invoke_payload=RuntimeError("down"))
    client = _client(monkeypatch, runtime)
    with pytest.raises(RuntimeError, match="BEDROCK_UNAVAILABLE"):
        client.invoke_text("analyze")


def test_blank_completion_raises(monkeypatch) -> None:
    runtime = FakeRuntime(
        converse_response={"output": {"message": {"content": []}}},
        invoke_payload={"completion": "   "},
    )
    client = _client(monkeypatch, runtime)
    with pytest.raises(ValueError, match="BEDROCK_EMPTY_RESPONSE"):
        client.invoke_text("analyze")


def test_client_creation_failure(monkeypatch) -> None:
    def _boom(*args, **kwargs):
        raise RuntimeError("no credentials")

    monkeypatch.setattr(boto3, "client", _boom)
    with pytest.raises(RuntimeError, match="BEDROCK_UNAVAILABLE"):
        BedrockLLMClient(region="ap-south-1", model_id="test-model")


def test_has_aws_credentials_from_env(monkeypatch) -> None:
    monkeypatch.setenv("AWS_PROFILE", "sandbox")
    assert has_aws_credentials() is True
