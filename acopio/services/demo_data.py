from __future__ import annotations

import logging
import random
from datetime import date, timedelta
from typing import Optional

from acopio.services.deliveries import add_delivery
from acopio.services.inventory import record_replenishment
from acopio.services.production import record_production
from acopio.services.providers import create_provider
from acopio.services.sales import add_payment, create_client, create_sale
from acopio.store import SLOT_NAMES, Store

logger = logging.getLogger(__name__)

DEMO_PROVIDERS = [
    # name, address, phone, price per liter
    ("Lucio", "Jr. Los Andes 120", "987654321", 1.30),
    ("Rosa Quispe", "Av. Principal 45", "965432187", 1.20),
    ("Juan Mamani", "Caserío Alto s/n", "954321876", 1.25),
]
DEMO_CLIENTS = [
    ("Bodega San Martín", "Plaza de Armas 3", "944112233"),
    ("Mercado Central - Puesto 12", "Calle Comercio 8", "933221144"),
]


def wipe_all(store: Store) -> None:
    store.replace_all({slot: [] for slot in SLOT_NAMES})
    logger.info("All slots wiped")


def load_demo_data(store: Store, *, today: Optional[date] = None, seed: int = 7) -> None:
    """Replace the current data with a week of sample activity ending ``today``."""
    rng = random.Random(seed)
    today = today or date.today()
    wipe_all(store)

    for name, address, phone, price in DEMO_PROVIDERS:
        create_provider(store, name=name, address=address, phone=phone, price=price)

    clients = [create_client(store, name=n, address=a, phone=p) for n, a, p in DEMO_CLIENTS]

    record_replenishment(store, replenishment_date=today - timedelta(days=8), quantity_sacos=6, price_per_saco=310.0)
    record_replenishment(store, replenishment_date=today - timedelta(days=2), quantity_sacos=4, price_per_saco=325.0)

    # Two weeks so the report has a previous week to compare against
    for back in range(13, -1, -1):
        day = today - timedelta(days=back)
        for name, *_ in DEMO_PROVIDERS:
            if rng.random() < 0.8:
                add_delivery(store, provider_name=name, delivery_date=day, quantity=rng.randint(20, 60), today=today)

        if back % 2 == 0:
            record_production(
                store,
                production_date=day,
                produced_units=rng.randint(15, 40),
                whole_milk_kilos=rng.choice([0, 10, 25]),
            )

        if back % 3 == 0:
            client = clients[back % len(clients)]
            quantity = rng.randint(1, 4)
            sale = create_sale(
                store,
                client_id=client.id,
                sale_date=day,
                price=2.5,
                quantity=quantity,
                unit="baldes",
                down_payment=round(quantity * 100, 2),
            )
            if back > 6 and sale.balance > 0:
                add_payment(store, sale.id, round(sale.balance / 2, 2), day)

    logger.info("Demo data loaded for week ending %s", today.isoformat())
