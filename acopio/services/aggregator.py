"""Weekly aggregation over deliveries and sales.

Two week conventions coexist:

- the standard week, Sunday through Saturday, used for the daily grid, the
  client summary and every provider without a custom cycle;
- a billing cycle with another start day (Saturday by default for the
  provider named in settings), used only for that provider's weekly total.

Every function here is pure: it reads the lists it is given and returns new
rows, so screens can call them on each rerun.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from acopio.models import Client, Delivery, Provider, Sale
from acopio.utils import day_of_week, to_date

SUNDAY = 0
SATURDAY = 6
DEFAULT_SPECIAL_PROVIDER = "lucio"


@dataclass(frozen=True)
class WeekWindow:
    start: date
    end: date

    def contains(self, d: date | str) -> bool:
        return self.start <= to_date(d) <= self.end

    def days(self) -> list[date]:
        return [self.start + timedelta(days=i) for i in range((self.end - self.start).days + 1)]

    def shift(self, weeks: int) -> "WeekWindow":
        delta = timedelta(days=7 * weeks)
        return WeekWindow(self.start + delta, self.end + delta)


@dataclass
class ProviderDailyRow:
    provider_name: str
    quantities: list[Optional[float]]  # Sunday..Saturday, None = no deliveries

    @property
    def total(self) -> float:
        return sum(q for q in self.quantities if q is not None)


@dataclass
class ProviderTotal:
    provider_name: str
    quantity: float
    price: float
    amount_owed: float
    window: WeekWindow


@dataclass
class ClientWeekSummary:
    client_id: str
    name: str
    bought: float
    paid: float

    @property
    def debt(self) -> float:
        return self.bought - self.paid


def week_window(today: date | str, start_day: int = SUNDAY) -> WeekWindow:
    """Inclusive 7-day window containing ``today`` that begins on ``start_day``."""
    d = to_date(today)
    offset = (day_of_week(d) - start_day) % 7
    start = d - timedelta(days=offset)
    return WeekWindow(start, start + timedelta(days=6))


def cycle_window(today: date | str, start_day: int) -> WeekWindow:
    """Billing cycle that begins on ``start_day`` at or before the standard Sunday."""
    return week_window(week_window(today, SUNDAY).start, start_day)


def cycle_start_day(provider: Provider, special_name: str = DEFAULT_SPECIAL_PROVIDER) -> int:
    if provider.cycle_start_day is not None:
        return provider.cycle_start_day
    if special_name and provider.name.lower() == special_name.lower():
        return SATURDAY
    return SUNDAY


def belongs_to(delivery: Delivery, provider: Provider) -> bool:
    if delivery.provider_id:
        return delivery.provider_id == provider.id
    return delivery.provider_name == provider.name


def provider_daily_grid(
    providers: Iterable[Provider],
    deliveries: Iterable[Delivery],
    today: date | str,
) -> list[ProviderDailyRow]:
    window = week_window(today, SUNDAY)
    in_week = [d for d in deliveries if window.contains(d.date)]

    rows: list[ProviderDailyRow] = []
    for provider in providers:
        cells: list[Optional[float]] = [None] * 7
        for d in in_week:
            if not belongs_to(d, provider):
                continue
            idx = (to_date(d.date) - window.start).days
            cells[idx] = (cells[idx] or 0.0) + float(d.quantity)
        rows.append(ProviderDailyRow(provider_name=provider.name, quantities=cells))
    return rows


def provider_weekly_totals(
    providers: Iterable[Provider],
    deliveries: Iterable[Delivery],
    today: date | str,
    special_name: str = DEFAULT_SPECIAL_PROVIDER,
) -> list[ProviderTotal]:
    deliveries = list(deliveries)
    out: list[ProviderTotal] = []
    for provider in providers:
        window = cycle_window(today, cycle_start_day(provider, special_name))
        qty = sum(float(d.quantity) for d in deliveries if belongs_to(d, provider) and window.contains(d.date))
        if qty <= 0:
            continue
        out.append(
            ProviderTotal(
                provider_name=provider.name,
                quantity=qty,
                price=float(provider.price),
                amount_owed=qty * float(provider.price),
                window=window,
            )
        )
    return out


def grand_total_owed(totals: Iterable[ProviderTotal]) -> float:
    return sum(t.amount_owed for t in totals)


def split_special_total(
    totals: Iterable[ProviderTotal],
    special_name: str = DEFAULT_SPECIAL_PROVIDER,
) -> tuple[float, float]:
    """(owed to the special-cycle provider, owed to everyone else)."""
    special = 0.0
    others = 0.0
    for t in totals:
        if special_name and t.provider_name.lower() == special_name.lower():
            special += t.amount_owed
        else:
            others += t.amount_owed
    return special, others


def client_weekly_summary(
    clients: Iterable[Client],
    sales: Iterable[Sale],
    today: date | str,
) -> list[ClientWeekSummary]:
    window = week_window(today, SUNDAY)
    by_id = {c.id: ClientWeekSummary(client_id=c.id, name=c.name, bought=0.0, paid=0.0) for c in clients}
    active: set[str] = set()

    for sale in sales:
        if not window.contains(sale.date):
            continue
        summary = by_id.get(sale.client_id)
        if summary is None:
            continue
        summary.bought += float(sale.total_amount)
        summary.paid += sale.paid
        active.add(sale.client_id)

    return [s for cid, s in by_id.items() if cid in active]


def daily_totals(deliveries: Iterable[Delivery], window: WeekWindow | None = None) -> list[tuple[str, float]]:
    """(date, total quantity) newest first."""
    totals: dict[str, float] = defaultdict(float)
    for d in deliveries:
        if window is not None and not window.contains(d.date):
            continue
        totals[d.date] += float(d.quantity)
    return sorted(totals.items(), key=lambda kv: kv[0], reverse=True)


def vendor_totals(deliveries: Iterable[Delivery]) -> list[tuple[str, float]]:
    """All-time quantity per provider name, sorted by name."""
    totals: dict[str, float] = defaultdict(float)
    for d in deliveries:
        totals[d.provider_name] += float(d.quantity)
    return sorted(totals.items(), key=lambda kv: kv[0].lower())


__all__ = [
    "ClientWeekSummary",
    "ProviderDailyRow",
    "ProviderTotal",
    "SATURDAY",
    "SUNDAY",
    "WeekWindow",
    "belongs_to",
    "client_weekly_summary",
    "cycle_start_day",
    "daily_totals",
    "grand_total_owed",
    "provider_daily_grid",
    "provider_weekly_totals",
    "split_special_total",
    "vendor_totals",
    "week_window",
]
