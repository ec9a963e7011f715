from __future__ import annotations

import logging
from typing import Optional

from acopio.models import Provider
from acopio.store import Store
from acopio.utils import clean_text, new_id, positive_number

logger = logging.getLogger(__name__)


def _normalize_cycle_day(value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    day = int(value)
    if not 0 <= day <= 6:
        raise ValueError("Cycle start day must be between 0 (Sunday) and 6 (Saturday).")
    return day


def find_provider_by_name(providers: list[Provider], name: str) -> Optional[Provider]:
    key = str(name).strip().lower()
    return next((p for p in providers if p.name.lower() == key), None)


def _validated(name: str, address: str, phone: str, price: float) -> tuple[str, str, str, float]:
    return (
        clean_text(name, "Provider name", 100),
        clean_text(address, "Address", 200),
        clean_text(phone, "Phone", 20),
        positive_number(price, "Price"),
    )


def create_provider(
    store: Store,
    *,
    name: str,
    address: str,
    phone: str,
    price: float,
    cycle_start_day: Optional[int] = None,
) -> Provider:
    name, address, phone, price = _validated(name, address, phone, price)

    providers = store.providers()
    if find_provider_by_name(providers, name):
        raise ValueError(f'Provider "{name}" already exists.')

    provider = Provider(
        id=new_id(),
        name=name,
        address=address,
        phone=phone,
        price=price,
        cycle_start_day=_normalize_cycle_day(cycle_start_day),
    )
    providers.append(provider)
    store.save_providers(providers)
    return provider


def update_provider(
    store: Store,
    provider_id: str,
    *,
    name: str,
    address: str,
    phone: str,
    price: float,
    cycle_start_day: Optional[int] = None,
) -> Provider:
    """
    Update a provider in place. A rename is carried over to its deliveries
    so weekly totals keep finding them.
    """
    name, address, phone, price = _validated(name, address, phone, price)

    providers = store.providers()
    current = next((p for p in providers if p.id == provider_id), None)
    if current is None:
        raise ValueError("Provider not found.")

    clash = find_provider_by_name(providers, name)
    if clash and clash.id != provider_id:
        raise ValueError(f'Provider "{name}" already exists.')

    old_name = current.name
    current.name = name
    current.address = address
    current.phone = phone
    current.price = price
    current.cycle_start_day = _normalize_cycle_day(cycle_start_day)
    store.save_providers(providers)

    if old_name != name:
        deliveries = store.deliveries()
        touched = 0
        for d in deliveries:
            if d.provider_id == provider_id or (not d.provider_id and d.provider_name == old_name):
                d.provider_name = name
                d.provider_id = provider_id
                touched += 1
        if touched:
            store.save_deliveries(deliveries)
            logger.info("Renamed provider %r -> %r on %d deliveries", old_name, name, touched)

    return current


def delete_provider(store: Store, provider_id: str) -> None:
    providers = store.providers()
    remaining = [p for p in providers if p.id != provider_id]
    if len(remaining) == len(providers):
        raise ValueError("Provider not found.")
    store.save_providers(remaining)


def create_provider_from_parse(store: Store, parsed) -> Provider:
    """Create a provider from an assistant parse (anything with name/price/address/phone)."""
    name = str(getattr(parsed, "name", "") or "").strip()
    if find_provider_by_name(store.providers(), name):
        raise ValueError(f'Provider "{name}" already exists.')
    return create_provider(
        store,
        name=name,
        address=getattr(parsed, "address", "") or "-",
        phone=getattr(parsed, "phone", "") or "-",
        price=getattr(parsed, "price", 0),
    )
