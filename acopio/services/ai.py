"""Local-LLM assistant (Ollama) that turns free text into structured records.

Each call makes one request with the configured timeout and returns an
``AIResult``; transport and parsing problems come back as ``success=False``
with a message instead of raising.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Generic, Iterable, Optional, TypeVar

import requests

from acopio.services.deliveries import ParsedDeliveries, ParsedEntry
from acopio.utils import to_date

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class AIResult(Generic[T]):
    success: bool
    content: Optional[T] = None
    error: Optional[str] = None


@dataclass
class ParsedProvider:
    name: str
    price: float
    address: str = ""
    phone: str = ""


@dataclass
class WeeklyReportText:
    summary: str
    top_provider_summary: str
    top_client_summary: str
    stock_status_summary: str
    sales_trend_summary: str

    def sentences(self) -> list[str]:
        return [
            self.summary,
            self.top_provider_summary,
            self.top_client_summary,
            self.stock_status_summary,
            self.sales_trend_summary,
        ]


DELIVERIES_PROMPT = """You are an assistant for a milk collection app. Extract deliveries from the user's command.

Command: "{query}"

Valid provider names:
{names}

Match each name in the command to the closest valid provider name (case-insensitive, allow nicknames).
If a date is mentioned ("ayer", "hoy", "anteayer"), resolve it. Otherwise use today, {today}.

Answer only with JSON: {{"date": "YYYY-MM-DD", "entries": [{{"providerName": "...", "quantity": <liters>}}]}}
"""

PROVIDER_PROMPT = """You are an assistant for a milk collection app. Extract a new provider from the user's command.

Command: "{query}"

Answer only with JSON: {{"name": "...", "price": <number>, "address": "...", "phone": "..."}}
Use an empty string for anything not mentioned.
"""

REPORT_PROMPT = """You are a business analyst for a small dairy called "acopiapp".
Write a short weekly report in Spanish using EXACTLY these numbers, without changing them:

- Raw material received: {totalRawMaterial} L
- Units produced: {totalUnitsProduced}
- Average transformation index: {avgTransformationIndex}%
- Top provider: "{topProviderName}" with {topProviderTotal} L
- Top client: "{topClientName}" with S/. {topClientTotal}
- Whole milk stock: {stockInSacos} sacos
- Sales trend: {salesTrendPercentage}% (comparison possible: {isTrendComparisonPossible})

Answer only with JSON with these keys, one sentence each:
"summary", "topProviderSummary", "topClientSummary", "stockStatusSummary", "salesTrendSummary".
When comparison is not possible, salesTrendSummary must say there is no previous week to compare.
"""


def _extract_json(text: str) -> Any:
    # Models sometimes wrap the object in prose or code fences
    text = (text or "").strip()
    try:
        return json.loads(text)
    except ValueError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise
        return json.loads(text[start : end + 1])


class OllamaClient:
    def __init__(self, base_url: str = "http://localhost:11434", model: str = "gemma2", timeout: int = 120):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "OllamaClient":
        return cls(settings.ollama_base_url, settings.ollama_model, settings.ollama_timeout)

    def is_available(self) -> bool:
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=5)
            return response.status_code == 200
        except requests.exceptions.RequestException:
            return False

    def _generate(self, prompt: str) -> AIResult[Any]:
        try:
            response = requests.post(
                f"{self.base_url}/api/generate",
                json={
                    "model": self.model,
                    "prompt": prompt,
                    "stream": False,
                    "format": "json",
                    "options": {"temperature": 0.2},
                },
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            logger.error("Ollama request timed out after %ss", self.timeout)
            return AIResult(False, error="The assistant took too long to answer.")
        except requests.exceptions.RequestException as e:
            logger.error("Ollama request failed: %s", e)
            return AIResult(False, error=f"Could not reach the assistant: {e}")

        if response.status_code != 200:
            logger.error("Ollama API error %s", response.status_code)
            return AIResult(False, error=f"API Error: {response.status_code}")

        try:
            payload = _extract_json(response.json().get("response", ""))
        except ValueError:
            return AIResult(False, error="The assistant did not return valid JSON.")
        if not isinstance(payload, dict):
            return AIResult(False, error="The assistant did not return an object.")
        return AIResult(True, content=payload)

    def parse_deliveries(
        self,
        text: str,
        provider_names: Iterable[str],
        today: Optional[date] = None,
    ) -> AIResult[ParsedDeliveries]:
        today = today or date.today()
        names = "\n".join(f"- {n}" for n in provider_names)
        raw = self._generate(DELIVERIES_PROMPT.format(query=text, names=names, today=today.isoformat()))
        if not raw.success:
            return AIResult(False, error=raw.error)

        data = raw.content
        items = data.get("entries") or []
        if not isinstance(items, list):
            return AIResult(False, error="The assistant returned entries in an unexpected format.")
        entries: list[ParsedEntry] = []
        for item in items:
            try:
                entries.append(ParsedEntry(provider_name=str(item["providerName"]).strip(), quantity=float(item["quantity"])))
            except (KeyError, TypeError, ValueError):
                logger.info("Dropping unreadable parsed entry %r", item)
        if not entries:
            return AIResult(False, error="No deliveries were recognized in the command.")

        try:
            day = to_date(data.get("date") or today).isoformat()
        except ValueError:
            day = today.isoformat()
        return AIResult(True, content=ParsedDeliveries(date=day, entries=entries))

    def parse_provider(self, text: str) -> AIResult[ParsedProvider]:
        raw = self._generate(PROVIDER_PROMPT.format(query=text))
        if not raw.success:
            return AIResult(False, error=raw.error)
        data = raw.content
        name = str(data.get("name") or "").strip()
        if not name:
            return AIResult(False, error="No provider name was recognized.")
        try:
            price = float(data.get("price") or 0)
        except (TypeError, ValueError):
            price = 0.0
        return AIResult(
            True,
            content=ParsedProvider(
                name=name,
                price=price,
                address=str(data.get("address") or "").strip(),
                phone=str(data.get("phone") or "").strip(),
            ),
        )

    def phrase_weekly_report(self, facts: dict) -> AIResult[WeeklyReportText]:
        raw = self._generate(REPORT_PROMPT.format(**facts))
        if not raw.success:
            return AIResult(False, error=raw.error)
        data = raw.content
        keys = ("summary", "topProviderSummary", "topClientSummary", "stockStatusSummary", "salesTrendSummary")
        missing = [k for k in keys if not isinstance(data.get(k), str) or not data.get(k).strip()]
        if missing:
            return AIResult(False, error=f"The report is missing: {', '.join(missing)}")
        return AIResult(True, content=WeeklyReportText(*(data[k].strip() for k in keys)))
