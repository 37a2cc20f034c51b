from __future__ import annotations

from finvision.market.synthetic import generate_trend
from finvision.schemas.asset import AssetIdentity, AssetSnapshot, PerformancePeriod


FALLBACK_POINTS = 90


def _period(label: str, value: float) -> PerformancePeriod:
    return PerformancePeriod(period=label, value=value, formatted_value=f"{value:+.2f}%")


def build_fallback_assets(points: int = FALLBACK_POINTS) -> dict[AssetIdentity, AssetSnapshot]:
    return {
        AssetIdentity.SILVER: AssetSnapshot(
            id="silver",
            name="Silver (XAG/USD)",
            current_value="28.45",
            percentage_change=1.24,
            currency="$",
            series=generate_trend(22, 0.02, 0.001, points),
            performance=[
                _period("Oct 2020 - Oct 2021", -4.5),
                _period("Oct 2021 - Oct 2022", -12.3),
                _period("Oct 2022 - Oct 2023", 18.2),
                _period("Oct 2023 - Oct 2024", 32.5),
                _period("Oct 2024 - Present", 5.1),
            ],
        ),
        AssetIdentity.GOLD: AssetSnapshot(
            id="gold",
            name="Gold (XAU/USD)",
            current_value="2,345.10",
            percentage_change=0.45,
            currency="$",
            series=generate_trend(2000, 0.01, 0.0005, points),
            performance=[
                _period("Oct 2020 - Oct 2021", 2.1),
                _period("Oct 2021 - Oct 2022", -3.4),
                _period("Oct 2022 - Oct 2023", 12.5),
                _period("Oct 2023 - Oct 2024", 15.8),
                _period("Oct 2024 - Present", 8.4),
            ],
        ),
        AssetIdentity.BITCOIN: AssetSnapshot(
            id="bitcoin",
            name="Bitcoin (BTC/USD)",
            current_value="67,890.00",
            percentage_change=-2.15,
            currency="$",
            series=generate_trend(55000, 0.04, 0.002, points),
            performance=[
                _period("Oct 2020 - Oct 2021", 340.5),
                _period("Oct 2021 - Oct 2022", -55.2),
                _period("Oct 2022 - Oct 2023", 85.6),
                _period("Oct 2023 - Oct 2024", 120.4),
                _period("Oct 2024 - Present", 12.1),
            ],
        ),
    }
