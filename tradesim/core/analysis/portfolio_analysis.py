from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from jsonschema import ValidationError, validate

from tradesim.core.analysis.analysis_schema import ANALYSIS_REQUEST_JSON_SCHEMA
from tradesim.core.config.settings import AnalysisSettings
from tradesim.core.ledger.schema import Holding
from tradesim.core.llm.bedrock_client import BedrockLLMClient, has_aws_credentials
from tradesim.core.market.schema import Instrument

logger = logging.getLogger(__name__)

EMPTY_PORTFOLIO_MESSAGE = "You need to have holdings in your portfolio to get an analysis."
ANALYSIS_FAILED_MESSAGE = "An error occurred while analyzing the portfolio. Please try again later."


class TextClient(Protocol):
    def invoke_text(self, prompt: str) -> str: ...


@dataclass(frozen=True)
class AnalysisResult:
    ok: bool
    text: str = ""
    error: str | None = None


def build_analysis_rows(holdings: Iterable[Holding], instruments: Sequence[Instrument]) -> list[dict[str, Any]]:
    industries = {item.ticker: item.industry for item in instruments}
    return [
        {
            "ticker": holding.ticker,
            "shares": holding.shares,
            "averageCost": float(holding.average_cost),
            "industry": industries.get(holding.ticker, "Unknown"),
        }
        for holding in holdings
    ]


def build_prompt(rows: list[dict[str, Any]]) -> str:
    return (
        "Analyze the diversification of the following mock Indian stock portfolio (BSE). "
        "The user is participating in a trading simulation.\n"
        "Provide a concise analysis covering:\n"
        "1. A brief summary of the portfolio's composition.\n"
        "2. Strengths: Identify well-diversified sectors or strong holdings.\n"
        "3. Weaknesses & Risks: Point out over-concentration in specific stocks or sectors.\n"
        "4. Actionable Suggestion: Offer one clear suggestion for improvement "
        '(e.g., "Consider diversifying into the healthcare sector to reduce technology exposure.").\n\n'
        "Format the response in simple Markdown. Use headings for each section.\n\n"
        "Portfolio Data:\n"
        f"{json.dumps(rows, indent=2)}\n"
    )


def analyze_portfolio(rows: list[dict[str, Any]], client: TextClient | None) -> AnalysisResult:
    if not rows:
        return AnalysisResult(ok=False, error=EMPTY_PORTFOLIO_MESSAGE)

    try:
        validate(instance=rows, schema=ANALYSIS_REQUEST_JSON_SCHEMA)
    except ValidationError as exc:
        logger.error("Analysis request rejected: %s", exc.message)
        return AnalysisResult(ok=False, error=ANALYSIS_FAILED_MESSAGE)

    if client is None:
        logger.warning("Analysis requested but no analysis client is configured")
        return AnalysisResult(ok=False, error=ANALYSIS_FAILED_MESSAGE)

    try:
        text = client.invoke_text(build_prompt(rows))
    except Exception:
        logger.exception("Error fetching portfolio analysis")
        return AnalysisResult(ok=False, error=ANALYSIS_FAILED_MESSAGE)

    if not isinstance(text, str) or not text.strip():
        logger.error("Analysis service returned an empty response")
        return AnalysisResult(ok=False, error=ANALYSIS_FAILED_MESSAGE)
    _log_usage(client)
    return AnalysisResult(ok=True, text=text.strip())


def _log_usage(client: TextClient) -> None:
    get_last_usage = getattr(client, "get_last_usage", None)
    if not callable(get_last_usage):
        return
    usage = get_last_usage()
    tokens = usage.get("usage", {})
    logger.info(
        "Portfolio analysis via %s (%s): %s tokens in %.0f ms",
        usage.get("model_id"),
        usage.get("transport"),
        tokens.get("total_tokens", 0),
        usage.get("latency_ms", 0.0),
    )


def client_from_settings(settings: AnalysisSettings) -> BedrockLLMClient | None:
    if not settings.configured:
        return None
    if not has_aws_credentials():
        logger.warning("No AWS credentials found; portfolio analysis is unavailable")
        return None
    try:
        return BedrockLLMClient(
            region=settings.region.strip(),
            model_id=settings.model_id.strip(),
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            request_timeout_seconds=settings.request_timeout_seconds,
        )
    except RuntimeError:
        logger.exception("Bedrock client could not be created")
        return None
