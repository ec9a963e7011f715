"""Tests for the weekly report figures and sentences."""

from datetime import date
from unittest.mock import Mock

import pytest

from acopio.models import Payment, Production, Sale, Snapshot, WholeMilkReplenishment
from acopio.services.ai import AIResult, WeeklyReportText
from acopio.services.reports import build_weekly_report, generate_weekly_report, sales_trend, summarize
from conftest import WEDNESDAY, delivery


def _sale(sid, day, client_id, name, total, paid=0.0):
    return Sale(
        id=sid,
        date=day,
        client_id=client_id,
        client_name=name,
        total_amount=total,
        payments=[Payment(day, paid)] if paid else [],
    )


@pytest.fixture
def snapshot(providers, clients):
    lucio, rosa = providers
    return Snapshot(
        providers=providers,
        deliveries=[
            delivery(lucio, "2024-05-13", 200),
            delivery(rosa, "2024-05-14", 100),
            delivery(lucio, "2024-05-11", 500),  # Saturday before the week
        ],
        production=[
            Production(id="a", date="2024-05-13", produced_units=20, whole_milk_kilos=25, transformation_index=8.0),
            Production(id="b", date="2024-05-14", produced_units=10, transformation_index=0),
            Production(id="c", date="2024-05-15", produced_units=6, transformation_index=12.0),
        ],
        clients=clients,
        sales=[
            _sale("s1", "2024-05-14", "c-1", "Bodega Sol", 300, paid=100),
            _sale("s2", "2024-05-15", "c-2", "Mercado", 100),
            _sale("s3", "2024-05-07", "c-2", "Mercado", 200),
        ],
        replenishments=[WholeMilkReplenishment(id="r", date="2024-05-01", quantity_sacos=4, price_per_saco=310)],
    )


def test_sales_trend():
    assert sales_trend(150, 100) == pytest.approx(50.0)
    assert sales_trend(50, 100) == pytest.approx(-50.0)
    assert sales_trend(50, 0) is None


def test_build_weekly_report_figures(snapshot):
    data = build_weekly_report(snapshot, WEDNESDAY)

    assert data.window.start == date(2024, 5, 12)
    assert data.total_raw_material == 300
    assert data.total_units_produced == 36
    assert data.avg_transformation_index == pytest.approx(10.0)
    assert (data.top_provider_name, data.top_provider_total) == ("Lucio", 200)
    assert (data.top_client_name, data.top_client_total) == ("Bodega Sol", 300)
    assert data.stock_in_sacks == pytest.approx(3.0)
    assert data.latest_milk_price == 310
    assert data.current_week_sales == 400
    assert data.previous_week_sales == 200
    assert data.trend == pytest.approx(100.0)


def test_printable_section(snapshot):
    printable = build_weekly_report(snapshot, WEDNESDAY).printable

    assert printable.week_title == "Semana del 12/05/24 al 18/05/24"
    assert {t.provider_name: t.quantity for t in printable.provider_totals} == {"Lucio": 200, "Rosa": 100}
    assert printable.total_special == pytest.approx(300.0)
    assert printable.total_others == pytest.approx(100.0)
    assert [p.date for p in printable.production_history] == ["2024-05-13", "2024-05-14", "2024-05-15"]
    assert [p.id for p in printable.stock_usage] == ["a"]
    assert {c.name: c.debt for c in printable.client_summary} == {"Bodega Sol": 200, "Mercado": 100}
    assert printable.chart_rows[1] == {"date": "Lunes", "Lucio": 200, "Rosa": 0}


def test_summarize_sentences(snapshot):
    text = summarize(build_weekly_report(snapshot, WEDNESDAY))
    assert text.summary == (
        "La semana se recibieron 300.00 L de materia prima y se produjeron 36 unidades, "
        "con un índice de transformación promedio de 10.00%."
    )
    assert text.top_provider_summary == "Lucio fue el proveedor más destacado con 200.00 L."
    assert text.top_client_summary == "Bodega Sol fue el cliente principal con S/. 300.00 en ventas."
    assert text.stock_status_summary == "Quedan 3.00 sacos restantes."
    assert text.sales_trend_summary == "Las ventas aumentaron un 100.00% con respecto a la semana anterior."


def test_empty_week_reads_not_available(providers, clients):
    empty = Snapshot(providers=providers, deliveries=[], production=[], clients=clients, sales=[], replenishments=[])
    data = build_weekly_report(empty, WEDNESDAY)
    text = summarize(data)

    assert data.top_provider_name == "N/A"
    assert data.trend is None
    assert text.sales_trend_summary == "No hay datos de ventas de la semana anterior para comparar."


def test_generate_uses_assistant_phrasing(snapshot):
    phrased = WeeklyReportText("a", "b", "c", "d", "e")
    client = Mock()
    client.phrase_weekly_report.return_value = AIResult(True, content=phrased)

    data, result = generate_weekly_report(snapshot, WEDNESDAY, client)

    facts = client.phrase_weekly_report.call_args.args[0]
    assert facts["totalRawMaterial"] == 300
    assert facts["isTrendComparisonPossible"] is True
    assert result.content is phrased


def test_generate_failure_has_no_partial_text(snapshot):
    client = Mock()
    client.phrase_weekly_report.return_value = AIResult(False, error="API Error: 500")
    _, result = generate_weekly_report(snapshot, WEDNESDAY, client)
    assert result.success is False
    assert result.content is None


def test_generate_without_assistant_uses_local_sentences(snapshot):
    _, result = generate_weekly_report(snapshot, WEDNESDAY)
    assert result.success
    assert result.content.stock_status_summary == "Quedan 3.00 sacos restantes."
