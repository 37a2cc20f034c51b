from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from finvision.config.settings import ProviderSettings
from finvision.providers.gemini import GeminiClient
from finvision.providers.history import LocalHistoryFetcher
from finvision.providers.market import GeminiMarketFetcher
from finvision.schemas.asset import AssetIdentity, AssetSnapshot


class MarketFetcher(Protocol):
    def fetch(self, identity: AssetIdentity) -> AssetSnapshot: ...


@dataclass
class MarketDataSelector:
    live: MarketFetcher
    local: LocalHistoryFetcher | None = None

    def fetch(self, identity: AssetIdentity) -> AssetSnapshot:
        if self.local is not None and self.local.supports(identity):
            return self.local.fetch(identity)
        return self.live.fetch(identity)


def build_market_fetcher(provider_settings: ProviderSettings) -> MarketDataSelector:
    local = None
    if provider_settings.history_base_url:
        local = LocalHistoryFetcher(
            base_url=provider_settings.history_base_url,
            timeout=provider_settings.request_timeout_seconds,
        )
    live = GeminiMarketFetcher(GeminiClient.from_settings(provider_settings))
    return MarketDataSelector(live=live, local=local)
