from __future__ import annotations

import base64
import json
import logging
import time
from dataclasses import dataclass

from pydantic import ValidationError

from finvision.providers.errors import BackendContractError, ResponseError
from finvision.providers.gemini import GeminiClient, response_text
from finvision.schemas.asset import AssetSnapshot


logger = logging.getLogger(__name__)

CHART_ANALYSIS_PROMPT = """
You are an expert financial data analyst. Your job is to digitize financial charts from images.
Extract the approximate data points (X-axis date/label and Y-axis value) from the provided chart image.
Also identify the asset name, current value, and generate a discrete performance table based on the trend visible or explicit table data in the image.
Return the data in a strictly structured JSON format.
"""

CHART_ANALYSIS_REQUEST = (
    "Analyze this chart. Extract the title, a current value estimate, percentage change if visible "
    "(or calculate from last 2 points), a series of at least 20 data points representing the line, "
    "and a discrete performance table (yearly or period based)."
)

CHART_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING", "description": "Name of the asset or chart title"},
        "currentValue": {"type": "STRING", "description": "Current value displayed or last value"},
        "percentageChange": {"type": "NUMBER", "description": "Overall change percentage shown or calculated"},
        "currency": {"type": "STRING", "description": "Currency symbol or unit, e.g. $, EUR, %"},
        "data": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "date": {"type": "STRING"},
                    "value": {"type": "NUMBER"},
                },
            },
        },
        "performance": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "period": {"type": "STRING"},
                    "value": {"type": "NUMBER"},
                    "formattedValue": {"type": "STRING"},
                },
            },
        },
    },
    "required": ["name", "data", "performance"],
}


def build_chart_request(data: bytes, mime_type: str) -> dict:
    return {
        "systemInstruction": {"parts": [{"text": CHART_ANALYSIS_PROMPT}]},
        "contents": [
            {
                "role": "user",
                "parts": [
                    {
                        "inlineData": {
                            "mimeType": mime_type,
                            "data": base64.b64encode(data).decode("ascii"),
                        }
                    },
                    {"text": CHART_ANALYSIS_REQUEST},
                ],
            }
        ],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": CHART_RESPONSE_SCHEMA,
        },
    }


def custom_snapshot_id() -> str:
    return f"custom-{int(time.time() * 1000)}"


@dataclass
class GeminiChartAnalyzer:
    client: GeminiClient

    def analyze(self, data: bytes, mime_type: str) -> AssetSnapshot:
        payload = self.client.generate_content(build_chart_request(data, mime_type))
        text = response_text(payload)
        if not text:
            raise ResponseError("No response from Gemini for chart analysis.")

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise BackendContractError("Chart analysis returned invalid JSON.") from exc
        if not isinstance(parsed, dict):
            raise BackendContractError("Chart analysis did not return a JSON object.")

        try:
            snapshot = AssetSnapshot.model_validate({**parsed, "id": custom_snapshot_id()})
        except ValidationError as exc:
            raise BackendContractError("Chart analysis does not match the response schema.") from exc

        logger.info("Digitized chart %r with %d points", snapshot.name, len(snapshot.series))
        return snapshot
