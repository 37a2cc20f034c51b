from __future__ import annotations

from finvision.config.settings import Settings, settings
from finvision.market.fallback import build_fallback_assets
from finvision.providers.chart import GeminiChartAnalyzer
from finvision.providers.gemini import GeminiClient
from finvision.providers.selector import build_market_fetcher
from finvision.resolution.orchestrator import AssetResolver


def build_resolver(app_settings: Settings) -> AssetResolver:
    providers = app_settings.providers
    return AssetResolver(
        market_fetcher=build_market_fetcher(providers),
        chart_analyzer=GeminiChartAnalyzer(GeminiClient.from_settings(providers)),
        fallback_assets=build_fallback_assets(),
    )


_resolver: AssetResolver | None = None


async def get_resolver() -> AssetResolver:
    """FastAPI dependency returning the process-wide resolver.

    Async so it runs on the event loop that owns the resolver state.
    """
    global _resolver
    if _resolver is None:
        _resolver = build_resolver(settings)
    return _resolver
