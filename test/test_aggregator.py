"""Tests for week windows and weekly aggregation."""

from datetime import date

import pytest

from acopio.models import Delivery, Payment, Provider, Sale
from acopio.services.aggregator import (
    SATURDAY,
    SUNDAY,
    client_weekly_summary,
    cycle_start_day,
    cycle_window,
    daily_totals,
    grand_total_owed,
    provider_daily_grid,
    provider_weekly_totals,
    split_special_total,
    vendor_totals,
    week_window,
)
from conftest import WEDNESDAY, delivery


# --------------------------------------------------------------------
# WINDOWS
# --------------------------------------------------------------------
def test_standard_week_runs_sunday_to_saturday():
    w = week_window(WEDNESDAY)
    assert w.start == date(2024, 5, 12)
    assert w.end == date(2024, 5, 18)
    assert len(w.days()) == 7


def test_saturday_cycle_for_a_wednesday():
    w = week_window(WEDNESDAY, SATURDAY)
    assert w.start == date(2024, 5, 11)
    assert w.end == date(2024, 5, 17)


@pytest.mark.parametrize(
    "today, start",
    [
        (date(2024, 5, 12), date(2024, 5, 12)),  # Sunday
        (date(2024, 5, 18), date(2024, 5, 12)),  # Saturday
    ],
)
def test_standard_window_edges(today, start):
    assert week_window(today, SUNDAY).start == start


@pytest.mark.parametrize("day", range(12, 19))
def test_saturday_cycle_precedes_the_standard_week_every_day(day):
    w = cycle_window(date(2024, 5, day), SATURDAY)
    assert (w.start, w.end) == (date(2024, 5, 11), date(2024, 5, 17))


def test_saturday_cycle_total_on_a_saturday(providers):
    lucio, _ = providers
    deliveries = [delivery(lucio, f"2024-05-{d}", 10, did=str(d)) for d in range(11, 19)]
    totals = provider_weekly_totals([lucio], deliveries, date(2024, 5, 18))
    assert totals[0].quantity == 70
    assert totals[0].window.start == date(2024, 5, 11)


def test_window_shift_moves_whole_weeks():
    w = week_window(WEDNESDAY).shift(-1)
    assert (w.start, w.end) == (date(2024, 5, 5), date(2024, 5, 11))


def test_cycle_start_day_rules(providers):
    lucio, rosa = providers
    assert cycle_start_day(lucio) == SATURDAY
    assert cycle_start_day(rosa) == SUNDAY
    assert cycle_start_day(rosa, special_name="rosa") == SATURDAY

    custom = Provider(id="x", name="Lucio", address="a", phone="1", price=1, cycle_start_day=3)
    assert cycle_start_day(custom) == 3


# --------------------------------------------------------------------
# PROVIDER GRID AND TOTALS
# --------------------------------------------------------------------
def test_special_provider_uses_its_own_cycle(providers):
    lucio, rosa = providers
    deliveries = [
        delivery(lucio, "2024-05-11", 10),  # Saturday before: in Lucio's cycle only
        delivery(lucio, "2024-05-13", 20),
        delivery(lucio, "2024-05-18", 40),  # Saturday after: standard week only
        delivery(rosa, "2024-05-11", 5),  # outside Rosa's week
        delivery(rosa, "2024-05-18", 7),
    ]
    totals = {t.provider_name: t for t in provider_weekly_totals(providers, deliveries, WEDNESDAY)}

    assert totals["Lucio"].quantity == 30
    assert totals["Lucio"].amount_owed == pytest.approx(45.0)
    assert totals["Lucio"].window.start == date(2024, 5, 11)
    assert totals["Rosa"].quantity == 7
    assert grand_total_owed(totals.values()) == pytest.approx(52.0)


def test_grid_cells_and_empty_days(providers):
    lucio, rosa = providers
    deliveries = [
        delivery(lucio, "2024-05-13", 20, did="a"),
        delivery(lucio, "2024-05-13", 5, did="b"),
        delivery(lucio, "2024-05-18", 40),
    ]
    rows = provider_daily_grid(providers, deliveries, WEDNESDAY)
    lucio_row = next(r for r in rows if r.provider_name == "Lucio")
    rosa_row = next(r for r in rows if r.provider_name == "Rosa")

    assert lucio_row.quantities == [None, 25.0, None, None, None, None, 40.0]
    assert rosa_row.quantities == [None] * 7
    assert rosa_row.total == 0


def test_grid_row_total_matches_weekly_total_for_standard_providers(providers):
    _, rosa = providers
    deliveries = [delivery(rosa, f"2024-05-{d}", d) for d in range(10, 21)]
    grid_total = next(r.total for r in provider_daily_grid(providers, deliveries, WEDNESDAY) if r.provider_name == "Rosa")
    weekly = next(t.quantity for t in provider_weekly_totals(providers, deliveries, WEDNESDAY) if t.provider_name == "Rosa")
    assert grid_total == weekly == sum(range(12, 19))


def test_providers_without_deliveries_are_omitted(providers):
    lucio, _ = providers
    totals = provider_weekly_totals(providers, [delivery(lucio, "2024-05-14", 3)], WEDNESDAY)
    assert [t.provider_name for t in totals] == ["Lucio"]


def test_delivery_without_id_matches_exact_name_only(providers):
    lucio, _ = providers
    legacy = delivery(lucio, "2024-05-14", 8, with_id=False)
    other_case = Delivery(id="z", provider_name="LUCIO", date="2024-05-14", quantity=3)
    totals = provider_weekly_totals(providers, [legacy, other_case], WEDNESDAY)
    assert totals[0].quantity == 8


def test_split_special_total(providers):
    lucio, rosa = providers
    deliveries = [delivery(lucio, "2024-05-13", 10), delivery(rosa, "2024-05-13", 10)]
    special, others = split_special_total(provider_weekly_totals(providers, deliveries, WEDNESDAY))
    assert special == pytest.approx(15.0)
    assert others == pytest.approx(10.0)


# --------------------------------------------------------------------
# CLIENTS AND DAILY TOTALS
# --------------------------------------------------------------------
def test_client_weekly_summary_debt(clients):
    sales = [
        Sale(
            id="s1",
            date="2024-05-14",
            client_id="c-1",
            client_name="Bodega Sol",
            total_amount=100.0,
            payments=[Payment("2024-05-14", 40.0), Payment("2024-05-15", 20.0)],
        ),
        Sale(id="s2", date="2024-05-01", client_id="c-2", client_name="Mercado", total_amount=50.0),
    ]
    summary = client_weekly_summary(clients, sales, WEDNESDAY)

    assert len(summary) == 1
    assert summary[0].name == "Bodega Sol"
    assert summary[0].bought == 100.0
    assert summary[0].paid == 60.0
    assert summary[0].debt == 40.0


def test_daily_totals_newest_first_and_windowed(providers):
    lucio, rosa = providers
    deliveries = [
        delivery(lucio, "2024-05-13", 10),
        delivery(rosa, "2024-05-13", 5),
        delivery(rosa, "2024-05-14", 2),
        delivery(rosa, "2024-05-01", 9),
    ]
    assert daily_totals(deliveries) == [("2024-05-14", 2.0), ("2024-05-13", 15.0), ("2024-05-01", 9.0)]
    assert daily_totals(deliveries, week_window(WEDNESDAY)) == [("2024-05-14", 2.0), ("2024-05-13", 15.0)]


def test_vendor_totals_sorted_by_name(providers):
    lucio, rosa = providers
    deliveries = [delivery(rosa, "2024-05-13", 5), delivery(lucio, "2024-04-01", 10), delivery(rosa, "2024-01-01", 1)]
    assert vendor_totals(deliveries) == [("Lucio", 10.0), ("Rosa", 6.0)]
