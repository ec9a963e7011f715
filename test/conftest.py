from datetime import date

import pytest

from acopio.db import open_conn
from acopio.models import Client, Delivery, Provider
from acopio.store import Store

# Wednesday: standard week is Sun 12 .. Sat 18, Saturday cycle is Sat 11 .. Fri 17
WEDNESDAY = date(2024, 5, 15)


@pytest.fixture
def store(tmp_path):
    conn = open_conn(tmp_path / "app.db")
    yield Store(conn)
    conn.close()


@pytest.fixture
def providers():
    return [
        Provider(id="p-lucio", name="Lucio", address="Jr. Andes 1", phone="900", price=1.5),
        Provider(id="p-rosa", name="Rosa", address="Av. Lima 2", phone="901", price=1.0),
    ]


@pytest.fixture
def clients():
    return [
        Client(id="c-1", name="Bodega Sol", address="Plaza 1", phone="911"),
        Client(id="c-2", name="Mercado", address="Calle 2", phone="912"),
    ]


@pytest.fixture
def seeded(store, providers, clients):
    """Store holding the two providers and two clients."""
    store.save_providers(providers)
    store.save_clients(clients)
    return store


def delivery(provider, day, qty, *, with_id=True, did=None):
    return Delivery(
        id=did or f"d-{provider.id}-{day}-{qty}",
        provider_name=provider.name,
        date=day,
        quantity=qty,
        provider_id=provider.id if with_id else None,
    )
