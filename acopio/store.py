"""Persisted store: six named slots, each one JSON array, kept in SQLite.

Reads always return a whole array and writes always replace one. A slot that
fails the shape check is discarded (deleted and logged) rather than raised, so
a corrupt payload never takes a screen down.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, TypeVar

import streamlit as st

from acopio.db import ensure_schema, get_conn, q, x
from acopio.models import (
    Client,
    Delivery,
    Production,
    Provider,
    Sale,
    Snapshot,
    WholeMilkReplenishment,
)
from acopio.utils import iso_now, to_date

logger = logging.getLogger(__name__)

DELIVERIES = "deliveries"
PROVIDERS = "providers"
PRODUCTION = "production"
SALES = "sales"
CLIENTS = "clients"
REPLENISHMENTS = "wholeMilkReplenishments"

SLOT_NAMES: tuple[str, ...] = (DELIVERIES, PROVIDERS, PRODUCTION, SALES, CLIENTS, REPLENISHMENTS)

REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    DELIVERIES: ("id", "providerName", "date", "quantity"),
    PROVIDERS: ("id", "name", "address", "phone", "price"),
    PRODUCTION: ("id", "date", "producedUnits"),
    SALES: ("id", "date", "clientId", "totalAmount"),
    CLIENTS: ("id", "name"),
    REPLENISHMENTS: ("id", "date", "quantitySacos"),
}

NUMERIC_FIELDS: dict[str, tuple[str, ...]] = {
    DELIVERIES: ("quantity",),
    PROVIDERS: ("price",),
    PRODUCTION: ("producedUnits",),
    SALES: ("totalAmount",),
    CLIENTS: (),
    REPLENISHMENTS: ("quantitySacos",),
}

Subscriber = Callable[[str], None]
T = TypeVar("T")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_iso_date(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        to_date(value)
    except ValueError:
        return False
    return True


def _payments_problem(payments: Any) -> str | None:
    # A non-list is replaced by migrate_sale; list items must be real payments
    if not isinstance(payments, list):
        return None
    for idx, payment in enumerate(payments):
        if not isinstance(payment, dict):
            return f"payment {idx} is not an object"
        if not _is_number(payment.get("amount")):
            return f"payment {idx} has non-numeric amount"
    return None


def shape_problem(slot: str, value: Any) -> str | None:
    """Return why ``value`` is not a valid payload for ``slot``, or None."""
    if not isinstance(value, list):
        return "payload is not an array"
    required = REQUIRED_FIELDS[slot]
    numeric = NUMERIC_FIELDS[slot]
    for idx, item in enumerate(value):
        if not isinstance(item, dict):
            return f"element {idx} is not an object"
        missing = [k for k in required if k not in item]
        if missing:
            return f"element {idx} is missing {', '.join(missing)}"
        bad = [k for k in numeric if not _is_number(item[k])]
        if bad:
            return f"element {idx} has non-numeric {', '.join(bad)}"
        if "date" in required and not _is_iso_date(item["date"]):
            return f"element {idx} has an invalid date"
        if slot == SALES:
            problem = _payments_problem(item.get("payments"))
            if problem:
                return f"element {idx}: {problem}"
    return None


def migrate_sale(raw: dict) -> dict:
    # Older sales carried a single downPayment instead of a payments list
    sale = dict(raw)
    if "downPayment" in sale and "payments" not in sale:
        down = sale.pop("downPayment") or 0
        sale["payments"] = [{"date": sale["date"], "amount": down}] if down > 0 else []
    elif not isinstance(sale.get("payments"), list):
        sale["payments"] = []
    return sale


class Store:
    """Explicit store object handed to services and pages.

    Writers notify subscribers with the slot name after each committed write.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._subscribers: list[Subscriber] = []

    # ---- subscriptions ----

    def subscribe(self, callback: Subscriber) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _notify(self, slot: str) -> None:
        for callback in list(self._subscribers):
            try:
                callback(slot)
            except Exception:
                logger.exception("Store subscriber %r failed for slot %s", callback, slot)

    # ---- raw slot access ----

    @staticmethod
    def _check_slot(slot: str) -> None:
        if slot not in SLOT_NAMES:
            raise ValueError(f"Unknown slot: {slot!r}")

    def _discard(self, slot: str, reason: str) -> None:
        logger.warning("Invalid data in slot %s (%s); resetting it to empty.", slot, reason)
        x(self.conn, "DELETE FROM slots WHERE name=?", (slot,))
        self._notify(slot)

    def read_raw(self, slot: str) -> list:
        self._check_slot(slot)
        rows = q(self.conn, "SELECT payload FROM slots WHERE name=?", (slot,))
        if not rows:
            return []
        try:
            value = json.loads(rows[0]["payload"])
        except ValueError as exc:
            self._discard(slot, f"unparseable JSON: {exc}")
            return []
        problem = shape_problem(slot, value)
        if problem:
            self._discard(slot, problem)
            return []
        return value

    def write_raw(self, slot: str, value: list) -> None:
        self._check_slot(slot)
        if not isinstance(value, list):
            raise ValueError(f"Slot {slot} only accepts an array.")
        self.conn.execute(
            "INSERT OR REPLACE INTO slots (name, payload, updated_at) VALUES (?, ?, ?)",
            (slot, json.dumps(value, ensure_ascii=False), iso_now()),
        )
        self.conn.commit()
        self._notify(slot)

    def replace_all(self, payloads: Mapping[str, list]) -> None:
        """Write several slots in one transaction (used by restore and wipe)."""
        for slot, value in payloads.items():
            self._check_slot(slot)
            if not isinstance(value, list):
                raise ValueError(f"Slot {slot} only accepts an array.")
        now = iso_now()
        try:
            for slot, value in payloads.items():
                self.conn.execute(
                    "INSERT OR REPLACE INTO slots (name, payload, updated_at) VALUES (?, ?, ?)",
                    (slot, json.dumps(value, ensure_ascii=False), now),
                )
        except sqlite3.Error:
            self.conn.rollback()
            raise
        self.conn.commit()
        for slot in payloads:
            self._notify(slot)

    # ---- typed access ----

    def _load(self, slot: str, parse: Callable[[dict], T], prepare: Callable[[dict], dict] | None = None) -> list[T]:
        raw = self.read_raw(slot)
        try:
            return [parse(prepare(item) if prepare else item) for item in raw]
        except (KeyError, TypeError, ValueError) as exc:
            self._discard(slot, f"unreadable record: {exc}")
            return []

    def _save(self, slot: str, records: Iterable[Any]) -> None:
        self.write_raw(slot, [r.to_dict() for r in records])

    def providers(self) -> list[Provider]:
        return self._load(PROVIDERS, Provider.from_dict)

    def deliveries(self) -> list[Delivery]:
        return self._load(DELIVERIES, Delivery.from_dict)

    def production(self) -> list[Production]:
        return self._load(PRODUCTION, Production.from_dict)

    def clients(self) -> list[Client]:
        return self._load(CLIENTS, Client.from_dict)

    def sales(self) -> list[Sale]:
        return self._load(SALES, Sale.from_dict, prepare=migrate_sale)

    def replenishments(self) -> list[WholeMilkReplenishment]:
        return self._load(REPLENISHMENTS, WholeMilkReplenishment.from_dict)

    def save_providers(self, records: Iterable[Provider]) -> None:
        self._save(PROVIDERS, records)

    def save_deliveries(self, records: Iterable[Delivery]) -> None:
        self._save(DELIVERIES, records)

    def save_production(self, records: Iterable[Production]) -> None:
        self._save(PRODUCTION, records)

    def save_clients(self, records: Iterable[Client]) -> None:
        self._save(CLIENTS, records)

    def save_sales(self, records: Iterable[Sale]) -> None:
        self._save(SALES, records)

    def save_replenishments(self, records: Iterable[WholeMilkReplenishment]) -> None:
        self._save(REPLENISHMENTS, records)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            providers=self.providers(),
            deliveries=self.deliveries(),
            production=self.production(),
            clients=self.clients(),
            sales=self.sales(),
            replenishments=self.replenishments(),
        )

    def counts(self) -> dict[str, int]:
        return {slot: len(self.read_raw(slot)) for slot in SLOT_NAMES}


@st.cache_resource
def get_store(db_path: Path) -> Store:
    conn = get_conn(db_path)
    ensure_schema(conn)
    store = Store(conn)
    store.subscribe(lambda slot: logger.debug("Slot %s changed", slot))
    return store


__all__ = [
    "CLIENTS",
    "DELIVERIES",
    "PRODUCTION",
    "PROVIDERS",
    "REPLENISHMENTS",
    "SALES",
    "SLOT_NAMES",
    "Store",
    "get_store",
    "migrate_sale",
    "shape_problem",
]
