from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from acopio.models import BUCKET_MULTIPLIER, SALE_UNITS, Client, Payment, Sale
from acopio.store import Store
from acopio.utils import clean_text, new_id, positive_number, to_date

logger = logging.getLogger(__name__)

# Balances below this are treated as settled (float noise from partial payments)
EPSILON = 1e-9


# ---- clients ----

def _validated_client(name: str, address: str, phone: str) -> tuple[str, str, str]:
    return (
        clean_text(name, "Client name", 100),
        clean_text(address, "Address", 200),
        clean_text(phone, "Phone", 20),
    )


def _find_client_by_name(clients: list[Client], name: str) -> Optional[Client]:
    key = name.strip().lower()
    return next((c for c in clients if c.name.lower() == key), None)


def create_client(store: Store, *, name: str, address: str, phone: str) -> Client:
    name, address, phone = _validated_client(name, address, phone)
    clients = store.clients()
    if _find_client_by_name(clients, name):
        raise ValueError(f'Client "{name}" already exists.')
    client = Client(id=new_id(), name=name, address=address, phone=phone)
    clients.append(client)
    store.save_clients(clients)
    return client


def update_client(store: Store, client_id: str, *, name: str, address: str, phone: str) -> Client:
    name, address, phone = _validated_client(name, address, phone)
    clients = store.clients()
    current = next((c for c in clients if c.id == client_id), None)
    if current is None:
        raise ValueError("Client not found.")
    clash = _find_client_by_name(clients, name)
    if clash and clash.id != client_id:
        raise ValueError(f'Client "{name}" already exists.')

    renamed = current.name != name
    current.name, current.address, current.phone = name, address, phone
    store.save_clients(clients)

    if renamed:
        sales = store.sales()
        for s in sales:
            if s.client_id == client_id:
                s.client_name = name
        store.save_sales(sales)
    return current


def delete_client(store: Store, client_id: str) -> None:
    clients = store.clients()
    remaining = [c for c in clients if c.id != client_id]
    if len(remaining) == len(clients):
        raise ValueError("Client not found.")
    store.save_clients(remaining)


# ---- sales ----

def sale_total(price: float, quantity: float, unit: str) -> float:
    if unit not in SALE_UNITS:
        raise ValueError("Invalid unit. Use 'baldes' or 'unidades'.")
    multiplier = BUCKET_MULTIPLIER if unit == "baldes" else 1
    return float(price) * float(quantity) * multiplier


def create_sale(
    store: Store,
    *,
    client_id: str,
    sale_date: date | str,
    price: float,
    quantity: float,
    unit: str = "baldes",
    down_payment: float = 0.0,
) -> Sale:
    client = next((c for c in store.clients() if c.id == client_id), None)
    if client is None:
        raise ValueError("Select a client first.")

    p = positive_number(price, "Price")
    qty = positive_number(quantity, "Quantity")
    total = sale_total(p, qty, unit)

    try:
        down = float(down_payment or 0)
    except (TypeError, ValueError):
        raise ValueError("Down payment must be a number.")
    if down < 0:
        raise ValueError("Down payment cannot be negative.")
    if down > total + EPSILON:
        raise ValueError("Down payment cannot exceed the sale total.")

    day = to_date(sale_date).isoformat()
    sale = Sale(
        id=new_id(),
        date=day,
        client_id=client.id,
        client_name=client.name,
        total_amount=total,
        price=p,
        quantity=qty,
        unit=unit,
        payments=[Payment(date=day, amount=down)] if down > 0 else [],
    )
    sales = store.sales()
    sales.insert(0, sale)
    store.save_sales(sales)
    return sale


def add_payment(store: Store, sale_id: str, amount: float, payment_date: date | str) -> Sale:
    amt = positive_number(amount, "Payment")
    sales = store.sales()
    sale = next((s for s in sales if s.id == sale_id), None)
    if sale is None:
        raise ValueError("Sale not found.")
    if amt > sale.balance + EPSILON:
        raise ValueError("Payment cannot exceed the outstanding balance.")
    sale.payments.append(Payment(date=to_date(payment_date).isoformat(), amount=amt))
    store.save_sales(sales)
    return sale


def delete_sale(store: Store, sale_id: str) -> None:
    sales = store.sales()
    remaining = [s for s in sales if s.id != sale_id]
    if len(remaining) == len(sales):
        raise ValueError("Sale not found.")
    store.save_sales(remaining)


def sales_for_client(sales: Iterable[Sale], client_id: str, include_paid: bool = True) -> list[Sale]:
    rows = [s for s in sales if s.client_id == client_id and (include_paid or s.balance > EPSILON)]
    return sorted(rows, key=lambda s: s.date, reverse=True)


def client_debt(sales: Iterable[Sale], client_id: str) -> float:
    return sum(s.balance for s in sales if s.client_id == client_id and s.balance > EPSILON)


def pay_total_debt(store: Store, client_id: str, amount: float, payment_date: date | str) -> float:
    """
    Spread ``amount`` over the client's unpaid sales, oldest first.
    Returns what was applied (never more than the debt).
    """
    amt = positive_number(amount, "Payment")
    sales = store.sales()
    debt = client_debt(sales, client_id)
    if debt <= EPSILON:
        raise ValueError("This client has no outstanding debt.")
    if amt > debt + EPSILON:
        raise ValueError("Payment cannot exceed the total debt.")

    day = to_date(payment_date).isoformat()
    remaining = amt
    unpaid = sorted((s for s in sales if s.client_id == client_id and s.balance > EPSILON), key=lambda s: s.date)
    for sale in unpaid:
        if remaining <= EPSILON:
            break
        portion = min(remaining, sale.balance)
        sale.payments.append(Payment(date=day, amount=portion))
        remaining -= portion

    store.save_sales(sales)
    return amt - max(remaining, 0.0)


def cancel_account(store: Store, client_id: str, cutoff: date | str) -> int:
    """Settle every unpaid sale dated on or before ``cutoff``; returns how many were settled."""
    day = to_date(cutoff).isoformat()
    sales = store.sales()
    settled = 0
    for sale in sales:
        if sale.client_id != client_id or sale.date > day or sale.balance <= EPSILON:
            continue
        sale.payments.append(Payment(date=day, amount=sale.balance))
        settled += 1
    if settled:
        store.save_sales(sales)
        logger.info("Settled %d sales for client %s up to %s", settled, client_id, day)
    return settled
