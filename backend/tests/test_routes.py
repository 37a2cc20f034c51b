import asyncio
import importlib
import inspect
import io
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from starlette.datastructures import Headers, UploadFile

from finvision.api.routes import (
    analyze_chart,
    get_dashboard,
    health,
    list_assets,
    refresh_asset,
    select_asset,
)
from finvision import main as main_module
from finvision.main import create_app
from finvision.market.fallback import build_fallback_assets
from finvision.providers.errors import NetworkError
from finvision.resolution.orchestrator import AssetResolver
from finvision.resolution import session
from finvision.resolution.session import get_resolver
from finvision.schemas.asset import AssetIdentity, AssetSnapshot
from finvision.schemas.dashboard import SelectRequest


class FakeMarketFetcher:
    def __init__(self) -> None:
        self.calls: list[AssetIdentity] = []

    def fetch(self, identity: AssetIdentity) -> AssetSnapshot:
        self.calls.append(identity)
        return AssetSnapshot(id=identity.value.lower(), name=f"Live {identity.value}")


class FakeChartAnalyzer:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[bytes, str]] = []

    def analyze(self, data: bytes, mime_type: str) -> AssetSnapshot:
        self.calls.append((data, mime_type))
        if self.error is not None:
            raise self.error
        return AssetSnapshot(id="custom-42", name="Uploaded chart", data=[{"date": "Q1", "value": 1.5}])


def make_resolver(charts: FakeChartAnalyzer | None = None) -> tuple[AssetResolver, FakeMarketFetcher]:
    market = FakeMarketFetcher()
    resolver = AssetResolver(
        market_fetcher=market,
        chart_analyzer=charts or FakeChartAnalyzer(),
        fallback_assets=build_fallback_assets(points=3),
    )
    return resolver, market


def make_upload(data: bytes, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename="chart.png",
        headers=Headers({"content-type": content_type}),
    )


def test_health() -> None:
    assert health() == {"status": "ok"}


def test_list_assets_marks_custom() -> None:
    options = {option.identity: option for option in list_assets()}
    assert set(options) == set(AssetIdentity)
    assert options[AssetIdentity.CUSTOM].standard is False
    assert options[AssetIdentity.GOLD].label == "Gold"


def test_dashboard_reports_state_without_fetching() -> None:
    resolver, market = make_resolver()

    state = asyncio.run(get_dashboard(resolver=resolver))

    assert state.selection is AssetIdentity.SILVER
    assert state.is_fallback is True
    assert market.calls == []


def test_select_asset_resolves_live_data() -> None:
    resolver, market = make_resolver()

    state = asyncio.run(select_asset(SelectRequest(identity="Gold"), resolver=resolver))

    assert state.selection is AssetIdentity.GOLD
    assert state.snapshot is not None and state.snapshot.name == "Live Gold"
    assert market.calls == [AssetIdentity.GOLD]


def test_refresh_asset_refetches_selection() -> None:
    resolver, market = make_resolver()
    asyncio.run(select_asset(SelectRequest(identity=AssetIdentity.BITCOIN), resolver=resolver))

    state = asyncio.run(refresh_asset(resolver=resolver))

    assert market.calls == [AssetIdentity.BITCOIN, AssetIdentity.BITCOIN]
    assert state.snapshot is not None


def test_analyze_chart_accepts_image_upload() -> None:
    charts = FakeChartAnalyzer()
    resolver, _ = make_resolver(charts)

    state = asyncio.run(analyze_chart(make_upload(b"\x89PNG", "image/png"), resolver=resolver))

    assert charts.calls == [(b"\x89PNG", "image/png")]
    assert state.selection is AssetIdentity.CUSTOM
    assert state.snapshot is not None
    assert state.snapshot.model_dump(by_alias=True)["data"] == [{"date": "Q1", "value": 1.5}]


def test_analyze_chart_reports_backend_failure_as_notice() -> None:
    resolver, _ = make_resolver(FakeChartAnalyzer(error=NetworkError("offline")))

    state = asyncio.run(analyze_chart(make_upload(b"img", "image/jpeg"), resolver=resolver))

    assert state.selection is AssetIdentity.CUSTOM
    assert state.notice is not None and state.notice.level == "error"


@pytest.mark.parametrize(
    "data, content_type",
    [(b"img", "text/plain"), (b"", "image/png")],
)
def test_analyze_chart_rejects_bad_uploads(data: bytes, content_type: str) -> None:
    charts = FakeChartAnalyzer()
    resolver, _ = make_resolver(charts)

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(analyze_chart(make_upload(data, content_type), resolver=resolver))

    assert excinfo.value.status_code == 400
    assert charts.calls == []


def test_create_app_mounts_dashboard_routes() -> None:
    app = create_app()
    paths = {route.path for route in app.routes}
    assert {"/health", "/assets", "/dashboard", "/dashboard/select", "/dashboard/refresh", "/dashboard/analyze"} <= paths


def test_importing_main_leaves_logging_alone() -> None:
    with patch("logging.basicConfig") as basic_config:
        importlib.reload(main_module)

    basic_config.assert_not_called()
    assert not hasattr(main_module, "app")


def test_dashboard_endpoint_and_dependency_run_on_event_loop() -> None:
    assert inspect.iscoroutinefunction(get_dashboard)
    assert inspect.iscoroutinefunction(get_resolver)


def test_get_resolver_is_process_wide(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(session, "_resolver", None)

    async def resolve_concurrently() -> list[AssetResolver]:
        return await asyncio.gather(*(get_resolver() for _ in range(5)))

    resolvers = asyncio.run(resolve_concurrently())

    assert all(resolver is resolvers[0] for resolver in resolvers)
    assert asyncio.run(get_resolver()) is resolvers[0]
