from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

import pandas as pd

from acopio.models import Delivery, Provider
from acopio.services.aggregator import SUNDAY, belongs_to, week_window
from acopio.utils import month_label, to_date, weekday_label

TIME_RANGES = ("week", "month", "year", "all")
TIME_RANGE_LABELS = {"week": "This week", "month": "This month", "year": "This year", "all": "All time"}

SERIES_COLUMNS = ["period", "label", "quantity"]


def _bucketed(periods, sums: pd.Series) -> pd.DataFrame:
    quantities = sums.reindex(periods, fill_value=0.0).astype(float).to_numpy()
    return pd.DataFrame({"period": periods, "quantity": quantities})


def _empty() -> pd.DataFrame:
    return pd.DataFrame(columns=SERIES_COLUMNS)


def provider_series(
    deliveries: Iterable[Delivery],
    provider: Provider,
    time_range: str = "month",
    today: Optional[date] = None,
) -> pd.DataFrame:
    """
    Liters delivered by ``provider`` per bucket.

    week/month -> one row per day; year/all -> one row per month.
    Buckets without deliveries are 0. ``all`` spans first to last delivery.
    """
    if time_range not in TIME_RANGES:
        raise ValueError(f"Invalid time range. Use one of: {', '.join(TIME_RANGES)}.")
    today = to_date(today or date.today())

    rows = [(d.date, float(d.quantity)) for d in deliveries if belongs_to(d, provider)]
    df = pd.DataFrame(rows, columns=["date", "quantity"])
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df = df.dropna(subset=["date"])

    if time_range == "week":
        window = week_window(today, SUNDAY)
        start, end = pd.Timestamp(window.start), pd.Timestamp(window.end)
    elif time_range == "month":
        start = pd.Timestamp(today.replace(day=1))
        end = start + pd.offsets.MonthEnd(0)
    elif time_range == "year":
        start = pd.Timestamp(date(today.year, 1, 1))
        end = pd.Timestamp(date(today.year, 12, 31))
    else:
        if df.empty:
            return _empty()
        start, end = df["date"].min(), df["date"].max()

    if time_range in ("week", "month"):
        periods = pd.date_range(start, end, freq="D")
        df = df[(df["date"] >= start) & (df["date"] <= end)]
        sums = df.groupby(df["date"].dt.normalize())["quantity"].sum()
        out = _bucketed(periods, sums)
        if time_range == "week":
            out["label"] = [weekday_label(p.date()) for p in out["period"]]
        else:
            out["label"] = out["period"].dt.strftime("%d/%m")
    else:
        periods = pd.period_range(start, end, freq="M")
        df = df[(df["date"] >= start) & (df["date"] <= end)]
        sums = df.groupby(df["date"].dt.to_period("M"))["quantity"].sum()
        out = _bucketed(periods, sums)
        with_year = time_range == "all"
        out["label"] = [month_label(p.start_time.date(), with_year=with_year) for p in out["period"]]

    return out[SERIES_COLUMNS].reset_index(drop=True)


def series_total(series: pd.DataFrame) -> float:
    return float(series["quantity"].sum()) if not series.empty else 0.0
