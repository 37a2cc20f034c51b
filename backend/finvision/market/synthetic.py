from __future__ import annotations

import datetime
import math
import random

from finvision.schemas.asset import DataPoint


MIN_VALUE = 0.01


def format_day_label(day: datetime.date) -> str:
    return f"{day:%b} {day.day}"


def generate_trend(
    start_value: float,
    volatility: float,
    drift: float,
    points: int,
    *,
    today: datetime.date | None = None,
    rng: random.Random | None = None,
) -> list[DataPoint]:
    """Random-walk price history of ``points + 1`` daily closes ending today.

    Each step multiplies the previous value by
    ``1 + drift + uniform(-volatility / 2, volatility / 2)``. Values never
    drop below ``MIN_VALUE``.
    """
    if points < 0:
        raise ValueError("points must be >= 0")
    end_day = today or datetime.date.today()
    source = rng or random

    current = float(start_value)
    series: list[DataPoint] = []
    for offset in range(points, -1, -1):
        day = end_day - datetime.timedelta(days=offset)
        change = (source.random() - 0.5) * volatility + drift
        current = current * (1 + change)
        if not math.isfinite(current) or current < MIN_VALUE:
            current = MIN_VALUE
        series.append(DataPoint(date=format_day_label(day), value=round(current, 2)))
    return series
