from __future__ import annotations

from datetime import date
from typing import Iterable

from acopio.models import Delivery, Production
from acopio.store import Store
from acopio.utils import new_id, safe_div, to_date

LITERS_PER_WHOLE_MILK_KG = 10.0


def raw_material_for_date(deliveries: Iterable[Delivery], on: date | str) -> float:
    day = to_date(on).isoformat()
    return sum(float(d.quantity) for d in deliveries if d.date == day)


def transformation_index(produced_units: float, raw_liters: float, whole_milk_kilos: float = 0.0) -> float:
    """Units per 100 liters of adjusted raw material (whole milk counts 10 L/kg)."""
    adjusted = float(raw_liters) + float(whole_milk_kilos) * LITERS_PER_WHOLE_MILK_KG
    if adjusted <= 0 or produced_units <= 0:
        return 0.0
    return safe_div(float(produced_units), adjusted) * 100.0


def record_production(
    store: Store,
    *,
    production_date: date | str,
    produced_units: int,
    whole_milk_kilos: float = 0.0,
) -> Production:
    """
    One record per date: saving again for the same date replaces the earlier one.
    Raw liters come from that day's deliveries.
    """
    try:
        units = int(produced_units)
        kilos = float(whole_milk_kilos or 0)
    except (TypeError, ValueError):
        raise ValueError("Units and kilos must be numbers.")
    if units < 1:
        raise ValueError("Record at least one produced unit.")
    if kilos < 0:
        raise ValueError("Whole milk kilos cannot be negative.")

    day = to_date(production_date).isoformat()
    raw = raw_material_for_date(store.deliveries(), day)

    record = Production(
        id=new_id(),
        date=day,
        produced_units=units,
        whole_milk_kilos=kilos,
        raw_material_liters=raw,
        transformation_index=transformation_index(units, raw, kilos),
    )
    history = [p for p in store.production() if p.date != day]
    history.append(record)
    history.sort(key=lambda p: p.date, reverse=True)
    store.save_production(history)
    return record
