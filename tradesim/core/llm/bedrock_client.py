from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import asdict, dataclass
from typing import Any

logger = logging.getLogger(__name__)

ANALYST_SYSTEM_PROMPT = (
    "You are a concise portfolio analyst for a stock trading simulator. "
    "The holdings are play money on a mock Indian exchange; never give real investment advice."
)


@dataclass(frozen=True)
class InvocationRecord:
    transport: str
    model_id: str
    region: str
    latency_ms: float
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


def has_aws_credentials() -> bool:
    """Best-effort preflight; the call itself still decides."""
    if os.getenv("AWS_PROFILE", "").strip():
        return True
    if all(os.getenv(name, "").strip() for name in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY")):
        return True
    try:
        import boto3

        return boto3.session.Session().get_credentials() is not None
    except Exception:
        return False


def build_runtime(region: str, timeout_seconds: float | None = None) -> Any:
    import boto3

    kwargs: dict[str, Any] = {"region_name": region}
    if timeout_seconds is not None:
        from botocore.config import Config

        kwargs["config"] = Config(
            connect_timeout=timeout_seconds,
            read_timeout=timeout_seconds,
            retries={"max_attempts": 1, "mode": "standard"},
        )
    return boto3.client("bedrock-runtime", **kwargs)


class BedrockLLMClient:
    """Plain-text completions from a Bedrock model.

    ``converse`` is tried first since it works across model families; models that
    reject it fall back to ``invoke_model`` with a messages-style body.
    """

    def __init__(
        self,
        region: str,
        model_id: str,
        max_tokens: int = 1200,
        temperature: float = 0.3,
        request_timeout_seconds: float | None = None,
        system_prompt: str = ANALYST_SYSTEM_PROMPT,
    ):
        self.region = region
        self.model_id = model_id
        self.max_tokens = int(max_tokens)
        self.temperature = float(temperature)
        self.system_prompt = system_prompt
        self.last_record: InvocationRecord | None = None
        try:
            self._runtime = build_runtime(region, _positive_or_none(request_timeout_seconds))
        except Exception as exc:
            raise RuntimeError("BEDROCK_UNAVAILABLE") from exc

    def invoke_text(self, prompt: str) -> str:
        self.last_record = None
        started = time.perf_counter()
        transport = "converse"
        try:
            payload = self._converse(prompt)
        except Exception as converse_exc:
            logger.debug("Bedrock converse failed for %s (%s); using invoke_model", self.model_id, converse_exc)
            transport = "invoke_model"
            try:
                payload = self._invoke_model(prompt)
            except Exception as exc:
                raise RuntimeError("BEDROCK_UNAVAILABLE") from exc

        text = _extract_text(payload)
        usage = payload.get("usage") if isinstance(payload, dict) else None
        self.last_record = InvocationRecord(
            transport=transport,
            model_id=self.model_id,
            region=self.region,
            latency_ms=round((time.perf_counter() - started) * 1000.0, 2),
            input_tokens=_token_count(usage, "inputTokens", "input_tokens"),
            output_tokens=_token_count(usage, "outputTokens", "output_tokens"),
        )
        logger.info("Bedrock %s via %s in %.0f ms", self.model_id, transport, self.last_record.latency_ms)

        if not text:
            raise ValueError("BEDROCK_EMPTY_RESPONSE")
        return text

    def get_last_usage(self) -> dict[str, Any]:
        record = self.last_record
        if record is None:
            return {
                "model_id": self.model_id,
                "transport": "unknown",
                "latency_ms": 0.0,
                "usage": {"input_tokens": 0, "output_tokens": 0, "total_tokens": 0},
            }
        data = asdict(record)
        return {
            "model_id": data["model_id"],
            "transport": data["transport"],
            "latency_ms": data["latency_ms"],
            "usage": {
                "input_tokens": record.input_tokens,
                "output_tokens": record.output_tokens,
                "total_tokens": record.total_tokens,
            },
        }

    def _converse(self, prompt: str) -> dict[str, Any]:
        response = self._runtime.converse(
            modelId=self.model_id,
            system=[{"text": self.system_prompt}],
            messages=[{"role": "user", "content": [{"text": prompt}]}],
            inferenceConfig={"maxTokens": self.max_tokens, "temperature": self.temperature},
        )
        if not _extract_text(response):
            raise ValueError("Empty converse output")
        return response

    def _invoke_model(self, prompt: str) -> dict[str, Any]:
        body = {
            "system": self.system_prompt,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        response = self._runtime.invoke_model(
            modelId=self.model_id,
            contentType="application/json",
            accept="application/json",
            body=json.dumps(body),
        )
        raw = response.get("body")
        raw_text = raw.read().decode("utf-8") if hasattr(raw, "read") else str(raw)
        try:
            decoded = json.loads(raw_text)
        except json.JSONDecodeError:
            return {"completion": raw_text}
        if not isinstance(decoded, dict):
            return {"completion": raw_text}
        if not any(key in decoded for key in ("content", "output", "completion")):
            raise ValueError("BEDROCK_UNRECOGNIZED_RESPONSE")
        return decoded


def _extract_text(payload: Any) -> str:
    """Text from a converse response or any of the invoke_model body shapes."""
    if not isinstance(payload, dict):
        return ""
    if isinstance(payload.get("completion"), str):
        return payload["completion"].strip()

    blocks = payload.get("content")
    output = payload.get("output")
    if isinstance(output, dict) and isinstance(output.get("message"), dict):
        blocks = output["message"].get("content")
    if not isinstance(blocks, list):
        return ""
    parts = [str(block.get("text", "")) for block in blocks if isinstance(block, dict)]
    return "\n".join(part for part in parts if part).strip()


def _token_count(usage: Any, *keys: str) -> int:
    if not isinstance(usage, dict):
        return 0
    for key in keys:
        if key in usage:
            try:
                return max(0, int(float(usage[key])))
            except (TypeError, ValueError):
                return 0
    return 0


def _positive_or_none(value: float | None) -> float | None:
    try:
        timeout = float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return None
    return timeout if timeout > 0 else None
