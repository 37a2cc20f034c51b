from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from finvision.parsing.json_extract import extract_json
from finvision.providers.errors import ResponseError
from finvision.providers.gemini import GeminiClient, grounding_sources, response_text
from finvision.schemas.asset import AssetIdentity, AssetSnapshot, dedupe_sources


logger = logging.getLogger(__name__)

MARKET_DATA_PROMPT = """
Fetch the latest live market data for "{asset_name}".

I need a JSON object containing:
1. "name": The full name of the asset (e.g., Gold Spot, Bitcoin USD).
2. "currentValue": The current price formatted as a string (e.g., "2,340.50").
3. "currency": The currency symbol (e.g. "$").
4. "percentageChange": The 24-hour percentage change as a number (e.g., 1.25 or -0.5).
5. "data": An array of approximately 30 data points representing the daily closing price for the last 30 days. Each point must have "date" (formatted as "MMM DD", e.g. "Oct 25") and "value" (number). Use the search results to approximate the trend accurately.
6. "performance": An array of objects for discrete performance periods: "1M", "6M", "YTD", "1Y". Each object must have "period", "value" (percentage number), and "formattedValue" (string with % sign).

Format the response as valid JSON. Do not use markdown formatting if possible, or enclose in ```json blocks.
"""

DEFAULT_CURRENT_VALUE = "0.00"
DEFAULT_CURRENCY = "$"


def build_market_request(asset_name: str) -> dict:
    return {
        "contents": [{"role": "user", "parts": [{"text": MARKET_DATA_PROMPT.format(asset_name=asset_name)}]}],
        "tools": [{"google_search": {}}],
    }


def normalize_market_payload(identity: AssetIdentity, parsed: object) -> dict:
    if not isinstance(parsed, dict):
        raise ResponseError(f"Expected a JSON object for {identity.value}, got {type(parsed).__name__}.")
    # Falsy values fall back to defaults, the same way missing keys do.
    return {
        "id": identity.value.lower(),
        "name": str(parsed.get("name") or identity.value),
        "currentValue": str(parsed.get("currentValue") or DEFAULT_CURRENT_VALUE),
        "percentageChange": parsed.get("percentageChange") or 0,
        "currency": str(parsed.get("currency") or DEFAULT_CURRENCY),
        "data": parsed.get("data") or [],
        "performance": parsed.get("performance") or [],
    }


@dataclass
class GeminiMarketFetcher:
    client: GeminiClient

    def fetch(self, identity: AssetIdentity) -> AssetSnapshot:
        payload = self.client.generate_content(build_market_request(identity.value))
        text = response_text(payload)
        if not text:
            raise ResponseError(f"Empty response from Gemini for {identity.value}.")

        normalized = normalize_market_payload(identity, extract_json(text))
        sources = dedupe_sources(grounding_sources(payload))
        try:
            snapshot = AssetSnapshot.model_validate({**normalized, "sources": sources})
        except ValidationError as exc:
            raise ResponseError(f"Malformed market data for {identity.value}.") from exc

        logger.info(
            "Fetched %s: %d points, %d periods, %d sources",
            identity.value,
            len(snapshot.series),
            len(snapshot.performance),
            len(sources),
        )
        return snapshot
