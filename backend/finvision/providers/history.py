from __future__ import annotations

import datetime
import http.client
import json
import logging
from dataclasses import dataclass
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from pydantic import ValidationError

from finvision.market.synthetic import format_day_label
from finvision.providers.errors import NetworkError, ResponseError
from finvision.schemas.asset import AssetIdentity, AssetSnapshot, PerformancePeriod, Source


logger = logging.getLogger(__name__)

_HISTORY_PATHS = {
    AssetIdentity.SILVER: "/metal-json/history/XAG,EUR",
}
_DISPLAY_NAMES = {
    AssetIdentity.SILVER: "Silver (XAG/USD)",
}


def _parse_time(raw: object) -> datetime.date:
    if isinstance(raw, (int, float)):
        # Epoch milliseconds, as the metal-json service emits them.
        return datetime.datetime.fromtimestamp(raw / 1000, tz=datetime.timezone.utc).date()
    if isinstance(raw, str):
        return datetime.datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    raise ValueError(f"Unsupported time value: {raw!r}")


def snapshot_from_rows(identity: AssetIdentity, rows: object, source_uri: str) -> AssetSnapshot:
    if not isinstance(rows, list) or not rows:
        raise ResponseError(f"No history rows for {identity.value}.")

    try:
        series = [
            {"date": format_day_label(_parse_time(row["time"])), "value": float(row["value"])}
            for row in rows
        ]
    except (KeyError, TypeError, ValueError) as exc:
        raise ResponseError(f"Malformed history rows for {identity.value}.") from exc

    first = series[0]["value"]
    last = series[-1]["value"]
    if first == 0:
        raise ResponseError(f"History for {identity.value} starts at zero.")
    pct = (last - first) / first * 100

    try:
        return AssetSnapshot(
            id=identity.value.lower(),
            name=_DISPLAY_NAMES.get(identity, identity.value),
            current_value=str(last),
            percentage_change=round(pct, 2),
            currency="$",
            series=series,
            performance=[
                PerformancePeriod(period="Since Start", value=pct, formatted_value=f"{pct:.2f}%")
            ],
            sources=[Source(title="Local metal-json API", uri=source_uri)],
        )
    except ValidationError as exc:
        raise ResponseError(f"Malformed history rows for {identity.value}.") from exc


@dataclass
class LocalHistoryFetcher:
    base_url: str
    timeout: float | None = None

    def supports(self, identity: AssetIdentity) -> bool:
        return identity in _HISTORY_PATHS

    def _build_url(self, identity: AssetIdentity) -> str:
        return self.base_url.rstrip("/") + _HISTORY_PATHS[identity]

    def fetch(self, identity: AssetIdentity) -> AssetSnapshot:
        if not self.supports(identity):
            raise ResponseError(f"No local history for {identity.value}.")

        url = self._build_url(identity)
        options = {"timeout": self.timeout} if self.timeout else {}
        try:
            with urlopen(Request(url), **options) as response:
                body = response.read()
            rows = json.loads(body.decode("utf-8"))
        except HTTPError as exc:
            raise NetworkError(f"HTTP error {exc.code}") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise NetworkError(f"Local history request failed: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise ResponseError("Local history returned a body that is not UTF-8.") from exc
        except json.JSONDecodeError as exc:
            raise ResponseError("Local history returned invalid JSON.") from exc

        logger.info("Loaded %s history from %s", identity.value, url)
        return snapshot_from_rows(identity, rows, url)
