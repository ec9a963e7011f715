from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, MutableMapping, Optional

from acopio.models import KG_PER_SACK, Production, WholeMilkReplenishment
from acopio.store import Store
from acopio.utils import new_id, to_date

LOW_STOCK_SESSION_KEY = "low_stock_alert_shown"


@dataclass(frozen=True)
class StockStatus:
    added_sacks: float
    consumed_sacks: float
    kg_per_sack: float = KG_PER_SACK

    @property
    def current_sacks(self) -> float:
        return self.added_sacks - self.consumed_sacks

    @property
    def current_kg(self) -> float:
        return self.current_sacks * self.kg_per_sack


def stock_status(
    replenishments: Iterable[WholeMilkReplenishment],
    production: Iterable[Production],
    kg_per_sack: float = KG_PER_SACK,
) -> StockStatus:
    """
    Whole-milk stock over all history (never windowed):
      added    = sum of replenished sacks
      consumed = sum of production whole-milk kg / kg_per_sack
    """
    added = sum(float(r.quantity_sacos) for r in replenishments)
    used_kg = sum(float(p.whole_milk_kilos or 0) for p in production)
    return StockStatus(added_sacks=added, consumed_sacks=used_kg / float(kg_per_sack), kg_per_sack=float(kg_per_sack))


def is_low_stock(status: StockStatus, threshold: float = 5.0, unit: str = "kg") -> bool:
    if unit == "sacks":
        return status.current_sacks <= threshold
    if unit == "kg":
        return status.current_kg <= threshold
    raise ValueError("Invalid unit. Use 'kg' or 'sacks'.")


def low_stock_warning(
    status: StockStatus,
    session: MutableMapping,
    *,
    threshold: float = 5.0,
    unit: str = "kg",
) -> Optional[str]:
    """Warning text the first time stock is low in a session, else None."""
    if session.get(LOW_STOCK_SESSION_KEY) or not is_low_stock(status, threshold, unit):
        return None
    session[LOW_STOCK_SESSION_KEY] = True
    if unit == "sacks":
        return f"Only {status.current_sacks:,.2f} sacks of whole milk left. Time to restock."
    return f"Only {status.current_kg:,.2f} kg of whole milk left. Time to restock."


def record_replenishment(
    store: Store,
    *,
    replenishment_date: date | str,
    quantity_sacos: float,
    price_per_saco: float = 0.0,
) -> WholeMilkReplenishment:
    try:
        qty = float(quantity_sacos)
        price = float(price_per_saco)
    except (TypeError, ValueError):
        raise ValueError("Sacks and price must be numbers.")
    if qty <= 0:
        raise ValueError("Sacks must be > 0.")
    if price < 0:
        raise ValueError("Price per sack cannot be negative.")

    record = WholeMilkReplenishment(
        id=new_id(),
        date=to_date(replenishment_date).isoformat(),
        quantity_sacos=qty,
        price_per_saco=price,
    )
    history = store.replenishments()
    history.append(record)
    history.sort(key=lambda r: r.date, reverse=True)
    store.save_replenishments(history)
    return record


def latest_milk_price(replenishments: Iterable[WholeMilkReplenishment]) -> float:
    ordered = sorted(replenishments, key=lambda r: r.date, reverse=True)
    return float(ordered[0].price_per_saco) if ordered else 0.0
