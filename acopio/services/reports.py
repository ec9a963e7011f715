"""Weekly business report.

All figures are computed here from a store snapshot. The optional assistant
only rewrites the five sentences; it never supplies a number.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from acopio.models import KG_PER_SACK, Production, Snapshot
from acopio.services.ai import AIResult, OllamaClient, WeeklyReportText
from acopio.services.aggregator import (
    DEFAULT_SPECIAL_PROVIDER,
    SUNDAY,
    ClientWeekSummary,
    ProviderTotal,
    WeekWindow,
    belongs_to,
    client_weekly_summary,
    split_special_total,
    week_window,
)
from acopio.services.inventory import latest_milk_price, stock_status
from acopio.utils import weekday_label

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


@dataclass
class PrintableReport:
    week_title: str
    provider_totals: list[ProviderTotal]
    total_special: float
    total_others: float
    production_history: list[Production]
    stock_usage: list[Production]
    client_summary: list[ClientWeekSummary]
    chart_rows: list[dict]  # {"date": "Lunes", "<provider>": liters, ...}


@dataclass
class WeeklyReportData:
    window: WeekWindow
    total_raw_material: float
    total_units_produced: int
    avg_transformation_index: float
    top_provider_name: str
    top_provider_total: float
    top_client_name: str
    top_client_total: float
    stock_in_sacks: float
    latest_milk_price: float
    current_week_sales: float
    previous_week_sales: float
    trend: Optional[float]
    printable: PrintableReport
    top_provider_deliveries: list = field(default_factory=list)
    top_client_sales: list = field(default_factory=list)

    def prompt_facts(self) -> dict:
        """Rounded figures handed to the assistant."""
        return {
            "totalRawMaterial": round(self.total_raw_material, 2),
            "totalUnitsProduced": int(self.total_units_produced),
            "avgTransformationIndex": round(self.avg_transformation_index, 2),
            "topProviderName": self.top_provider_name,
            "topProviderTotal": round(self.top_provider_total, 2),
            "topClientName": self.top_client_name,
            "topClientTotal": round(self.top_client_total, 2),
            "stockInSacos": round(self.stock_in_sacks, 2),
            "salesTrendPercentage": round(self.trend or 0.0, 2),
            "isTrendComparisonPossible": self.trend is not None,
        }


def sales_trend(current: float, previous: float) -> Optional[float]:
    if previous <= 0:
        return None
    return (current - previous) / previous * 100.0


def _top(totals: dict[str, float]) -> tuple[str, float]:
    if not totals:
        return NOT_AVAILABLE, 0.0
    name = max(totals, key=lambda k: totals[k])
    return name, totals[name]


def week_title(window: WeekWindow) -> str:
    return f"Semana del {window.start:%d/%m/%y} al {window.end:%d/%m/%y}"


def build_weekly_report(
    snapshot: Snapshot,
    week_start: date,
    kg_per_sack: float = KG_PER_SACK,
    special_name: str = DEFAULT_SPECIAL_PROVIDER,
) -> WeeklyReportData:
    window = week_window(week_start, SUNDAY)
    previous = window.shift(-1)

    deliveries = [d for d in snapshot.deliveries if window.contains(d.date)]
    production = [p for p in snapshot.production if window.contains(p.date)]
    sales = [s for s in snapshot.sales if window.contains(s.date)]
    previous_sales = [s for s in snapshot.sales if previous.contains(s.date)]

    by_provider: dict[str, float] = defaultdict(float)
    for d in deliveries:
        by_provider[d.provider_name] += float(d.quantity)
    top_provider_name, top_provider_total = _top(by_provider)

    client_names = {c.id: c.name for c in snapshot.clients}
    by_client: dict[str, float] = defaultdict(float)
    for s in sales:
        by_client[client_names.get(s.client_id, s.client_name)] += float(s.total_amount)
    top_client_name, top_client_total = _top(by_client)

    indices = [
        float(p.transformation_index)
        for p in production
        if p.transformation_index and math.isfinite(p.transformation_index)
    ]
    avg_index = sum(indices) / len(indices) if indices else 0.0

    current_total = sum(float(s.total_amount) for s in sales)
    previous_total = sum(float(s.total_amount) for s in previous_sales)

    top_client_id = next((c.id for c in snapshot.clients if c.name == top_client_name), None)

    return WeeklyReportData(
        window=window,
        total_raw_material=sum(float(d.quantity) for d in deliveries),
        total_units_produced=sum(int(p.produced_units) for p in production),
        avg_transformation_index=avg_index,
        top_provider_name=top_provider_name,
        top_provider_total=top_provider_total,
        top_client_name=top_client_name,
        top_client_total=top_client_total,
        stock_in_sacks=stock_status(snapshot.replenishments, snapshot.production, kg_per_sack).current_sacks,
        latest_milk_price=latest_milk_price(snapshot.replenishments),
        current_week_sales=current_total,
        previous_week_sales=previous_total,
        trend=sales_trend(current_total, previous_total),
        printable=_printable(snapshot, window, deliveries, production, special_name),
        top_provider_deliveries=[d for d in deliveries if d.provider_name == top_provider_name],
        top_client_sales=[s for s in sales if s.client_id == top_client_id] if top_client_id else [],
    )


def _printable(snapshot: Snapshot, window: WeekWindow, deliveries, production, special_name: str) -> PrintableReport:
    totals: list[ProviderTotal] = []
    for provider in snapshot.providers:
        qty = sum(float(d.quantity) for d in deliveries if belongs_to(d, provider))
        if qty > 0:
            totals.append(ProviderTotal(provider.name, qty, float(provider.price), qty * float(provider.price), window))
    special, others = split_special_total(totals, special_name)

    chart_rows: list[dict] = []
    for day in window.days():
        row: dict = {"date": weekday_label(day)}
        iso = day.isoformat()
        for provider in snapshot.providers:
            row[provider.name] = sum(float(d.quantity) for d in deliveries if d.date == iso and belongs_to(d, provider))
        chart_rows.append(row)

    return PrintableReport(
        week_title=week_title(window),
        provider_totals=totals,
        total_special=special,
        total_others=others,
        production_history=sorted(production, key=lambda p: p.date),
        stock_usage=[p for p in production if p.whole_milk_kilos > 0],
        client_summary=client_weekly_summary(snapshot.clients, snapshot.sales, window.start),
        chart_rows=chart_rows,
    )


def summarize(data: WeeklyReportData) -> WeeklyReportText:
    if data.trend is None:
        trend_sentence = "No hay datos de ventas de la semana anterior para comparar."
    else:
        verb = "aumentaron" if data.trend >= 0 else "disminuyeron"
        trend_sentence = f"Las ventas {verb} un {abs(data.trend):.2f}% con respecto a la semana anterior."

    return WeeklyReportText(
        summary=(
            f"La semana se recibieron {data.total_raw_material:.2f} L de materia prima y se produjeron "
            f"{data.total_units_produced} unidades, con un índice de transformación promedio de "
            f"{data.avg_transformation_index:.2f}%."
        ),
        top_provider_summary=f"{data.top_provider_name} fue el proveedor más destacado con {data.top_provider_total:.2f} L.",
        top_client_summary=f"{data.top_client_name} fue el cliente principal con S/. {data.top_client_total:.2f} en ventas.",
        stock_status_summary=f"Quedan {data.stock_in_sacks:.2f} sacos restantes.",
        sales_trend_summary=trend_sentence,
    )


def generate_weekly_report(
    snapshot: Snapshot,
    week_start: date,
    client: Optional[OllamaClient] = None,
    *,
    kg_per_sack: float = KG_PER_SACK,
    special_name: str = DEFAULT_SPECIAL_PROVIDER,
) -> tuple[WeeklyReportData, AIResult[WeeklyReportText]]:
    """
    Compute the week's figures and phrase them.

    Without a client the sentences come from ``summarize``. With one, its
    phrasing is used; a failure is returned as-is with no partial text.
    """
    data = build_weekly_report(snapshot, week_start, kg_per_sack, special_name)
    if client is None:
        return data, AIResult(True, content=summarize(data))

    result = client.phrase_weekly_report(data.prompt_facts())
    if not result.success:
        logger.error("Weekly report phrasing failed: %s", result.error)
    return data, result
