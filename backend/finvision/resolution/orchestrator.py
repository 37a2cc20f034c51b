from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Protocol

from finvision.providers.errors import CredentialMissingError, FetchError
from finvision.providers.selector import MarketFetcher
from finvision.schemas.asset import AssetIdentity, AssetSnapshot
from finvision.schemas.dashboard import DashboardState, Notice


logger = logging.getLogger(__name__)

CREDENTIAL_MISSING_MESSAGE = "API key is missing. Using offline fallback data."
ANALYSIS_FAILED_MESSAGE = (
    "Failed to analyze the chart. Please ensure the image is clear and try again. "
    "API key might be invalid."
)


class ChartAnalyzer(Protocol):
    def analyze(self, data: bytes, mime_type: str) -> AssetSnapshot: ...


def resolve_view(
    selection: AssetIdentity,
    cache: Mapping[AssetIdentity, AssetSnapshot],
    custom: AssetSnapshot | None,
    fallback: Mapping[AssetIdentity, AssetSnapshot],
    *,
    loading: bool = False,
    analyzing: bool = False,
    notice: Notice | None = None,
) -> DashboardState:
    """Pick what presentation shows for ``selection``.

    Cached data wins; while a fetch is pending nothing is shown; otherwise
    the synthetic fallback for the asset is served and flagged as such.
    """
    state = DashboardState(selection=selection, is_analyzing=analyzing, notice=notice)
    if selection is AssetIdentity.CUSTOM:
        state.snapshot = custom
        return state

    cached = cache.get(selection)
    if cached is not None:
        state.snapshot = cached
        state.is_loading = loading
        return state
    if loading:
        state.is_loading = True
        return state

    state.snapshot = fallback.get(selection)
    state.is_fallback = state.snapshot is not None
    return state


class AssetResolver:
    """Owns the per-asset cache and the cache -> live -> fallback policy.

    All state lives on the event loop. Blocking fetchers run in worker
    threads, and at most one fetch per asset is in flight at a time.
    """

    def __init__(
        self,
        market_fetcher: MarketFetcher,
        chart_analyzer: ChartAnalyzer,
        fallback_assets: Mapping[AssetIdentity, AssetSnapshot],
        initial_selection: AssetIdentity = AssetIdentity.SILVER,
    ) -> None:
        self._market = market_fetcher
        self._charts = chart_analyzer
        self._fallback = dict(fallback_assets)
        self._cache: dict[AssetIdentity, AssetSnapshot] = {}
        self._custom: AssetSnapshot | None = None
        self._selection = initial_selection
        self._in_flight: dict[AssetIdentity, asyncio.Task] = {}
        self._analyses = 0
        self._notice: Notice | None = None

    @property
    def selection(self) -> AssetIdentity:
        return self._selection

    @property
    def cache(self) -> Mapping[AssetIdentity, AssetSnapshot]:
        return MappingProxyType(self._cache)

    @property
    def custom_snapshot(self) -> AssetSnapshot | None:
        return self._custom

    @property
    def notice(self) -> Notice | None:
        return self._notice

    @property
    def is_analyzing(self) -> bool:
        return self._analyses > 0

    def is_fetching(self, identity: AssetIdentity) -> bool:
        return identity in self._in_flight

    def select(self, identity: AssetIdentity) -> None:
        self._selection = identity
        self._notice = None

    def state(self) -> DashboardState:
        return resolve_view(
            self._selection,
            self._cache,
            self._custom,
            self._fallback,
            loading=self.is_fetching(self._selection),
            analyzing=self.is_analyzing,
            notice=self._notice,
        )

    async def resolve(self) -> DashboardState:
        identity = self._selection
        if identity.is_standard and identity not in self._cache:
            await self._fetch(identity)
        else:
            logger.debug("Serving %s without a fetch", identity.value)
        return self.state()

    async def refresh(self, identity: AssetIdentity | None = None) -> DashboardState:
        target = identity or self._selection
        if not target.is_standard:
            return self.state()
        self._cache.pop(target, None)
        await self._fetch(target)
        return self.state()

    async def analyze_image(self, data: bytes, mime_type: str) -> DashboardState:
        self.select(AssetIdentity.CUSTOM)
        self._analyses += 1
        try:
            snapshot = await asyncio.to_thread(self._charts.analyze, data, mime_type)
        except FetchError:
            logger.exception("Chart analysis failed")
            if self._selection is AssetIdentity.CUSTOM:
                self._notice = Notice(level="error", message=ANALYSIS_FAILED_MESSAGE)
        else:
            self._custom = snapshot
        finally:
            self._analyses -= 1
        return self.state()

    async def _fetch(self, identity: AssetIdentity) -> AssetSnapshot | None:
        task = self._in_flight.get(identity)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._run_fetch(identity))
            self._in_flight[identity] = task
        else:
            logger.debug("Joining in-flight fetch for %s", identity.value)
        # Callers may go away; the fetch still lands in the cache.
        return await asyncio.shield(task)

    async def _run_fetch(self, identity: AssetIdentity) -> AssetSnapshot | None:
        logger.info("Fetching live data for %s", identity.value)
        try:
            snapshot = await asyncio.to_thread(self._market.fetch, identity)
        except CredentialMissingError:
            logger.warning("No API key configured, serving fallback data for %s", identity.value)
            if self._selection is identity:
                self._notice = Notice(level="warning", message=CREDENTIAL_MISSING_MESSAGE)
            return None
        except FetchError as exc:
            logger.warning("Live fetch for %s failed: %s", identity.value, exc)
            return None
        finally:
            self._in_flight.pop(identity, None)

        self._cache[identity] = snapshot
        return snapshot
