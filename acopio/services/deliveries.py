from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from acopio.models import Delivery
from acopio.services.providers import find_provider_by_name
from acopio.store import Store
from acopio.utils import new_id, positive_number, to_date

logger = logging.getLogger(__name__)


@dataclass
class ParsedEntry:
    provider_name: str
    quantity: float


@dataclass
class ParsedDeliveries:
    date: str
    entries: list[ParsedEntry] = field(default_factory=list)


@dataclass
class RegistrationOutcome:
    registered: list[Delivery] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # provider names with no match


def add_delivery(
    store: Store,
    *,
    provider_name: str,
    delivery_date: date | str,
    quantity: float,
    today: Optional[date] = None,
) -> Delivery:
    qty = positive_number(quantity, "Quantity")
    d = to_date(delivery_date)
    if d > (today or date.today()):
        raise ValueError("Delivery date cannot be in the future.")

    provider = find_provider_by_name(store.providers(), provider_name)
    if provider is None:
        raise ValueError(f'Provider "{provider_name}" not found. Add it in Providers first.')

    delivery = Delivery(
        id=new_id(),
        provider_name=provider.name,
        date=d.isoformat(),
        quantity=qty,
        provider_id=provider.id,
    )
    deliveries = store.deliveries()
    deliveries.insert(0, delivery)
    store.save_deliveries(deliveries)
    return delivery


def delete_delivery(store: Store, delivery_id: str) -> Delivery:
    deliveries = store.deliveries()
    target = next((d for d in deliveries if d.id == delivery_id), None)
    if target is None:
        raise ValueError("Delivery not found.")
    store.save_deliveries([d for d in deliveries if d.id != delivery_id])
    return target


def register_parsed_deliveries(store: Store, parsed: ParsedDeliveries) -> RegistrationOutcome:
    """
    Apply an assistant parse result:
    - each entry is matched case-insensitively to a stored provider;
    - unmatched entries are skipped (reported by name), the rest still register;
    - a matched entry replaces that provider's existing delivery on the same date.
    """
    day = to_date(parsed.date).isoformat()
    providers = store.providers()
    outcome = RegistrationOutcome()

    for entry in parsed.entries:
        provider = find_provider_by_name(providers, entry.provider_name)
        if provider is None:
            logger.info("Skipping parsed delivery for unknown provider %r", entry.provider_name)
            outcome.skipped.append(entry.provider_name)
            continue
        try:
            qty = positive_number(entry.quantity, "Quantity")
        except ValueError:
            outcome.skipped.append(entry.provider_name)
            continue
        outcome.registered.append(
            Delivery(id=new_id(), provider_name=provider.name, date=day, quantity=qty, provider_id=provider.id)
        )

    if outcome.registered:
        replaced_ids = {d.provider_id for d in outcome.registered}
        replaced_names = {d.provider_name for d in outcome.registered}
        kept = [
            d
            for d in store.deliveries()
            if d.date != day or not (d.provider_id in replaced_ids or d.provider_name in replaced_names)
        ]
        store.save_deliveries(kept + outcome.registered)

    return outcome
