"""Record types held in the persisted slots.

Every record round-trips to the camelCase JSON object stored in its slot.
``from_dict`` raises ``KeyError``/``TypeError``/``ValueError`` on malformed
input; the store treats any of those as a corrupt slot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

KG_PER_SACK = 25.0
BUCKET_MULTIPLIER = 100  # one "balde" is billed as 100 units

SaleUnit = Literal["baldes", "unidades"]
SALE_UNITS: tuple[str, ...] = ("baldes", "unidades")


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Expected a number, got {value!r}")
    return float(value)


def _optional_day(value: Any) -> Optional[int]:
    if value is None:
        return None
    day = int(value)
    if not 0 <= day <= 6:
        raise ValueError(f"Day of week out of range: {day}")
    return day


@dataclass
class Provider:
    id: str
    name: str
    address: str
    phone: str
    price: float
    cycle_start_day: Optional[int] = None  # 0=Sunday .. 6=Saturday

    @classmethod
    def from_dict(cls, d: dict) -> "Provider":
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            address=str(d["address"]),
            phone=str(d["phone"]),
            price=_number(d["price"]),
            cycle_start_day=_optional_day(d.get("cycleStartDay")),
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "price": self.price,
        }
        if self.cycle_start_day is not None:
            out["cycleStartDay"] = self.cycle_start_day
        return out


@dataclass
class Delivery:
    id: str
    provider_name: str
    date: str  # YYYY-MM-DD
    quantity: float
    provider_id: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Delivery":
        return cls(
            id=str(d["id"]),
            provider_name=str(d["providerName"]),
            date=str(d["date"]),
            quantity=_number(d["quantity"]),
            provider_id=str(d["providerId"]) if d.get("providerId") else None,
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "id": self.id,
            "providerName": self.provider_name,
            "date": self.date,
            "quantity": self.quantity,
        }
        if self.provider_id:
            out["providerId"] = self.provider_id
        return out


@dataclass
class Production:
    id: str
    date: str
    produced_units: int
    whole_milk_kilos: float = 0.0
    raw_material_liters: float = 0.0
    transformation_index: float = 0.0

    @classmethod
    def from_dict(cls, d: dict) -> "Production":
        return cls(
            id=str(d["id"]),
            date=str(d["date"]),
            produced_units=int(_number(d["producedUnits"])),
            whole_milk_kilos=_number(d.get("wholeMilkKilos") or 0),
            raw_material_liters=_number(d.get("rawMaterialLiters") or 0),
            transformation_index=_number(d.get("transformationIndex") or 0),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "producedUnits": self.produced_units,
            "wholeMilkKilos": self.whole_milk_kilos,
            "rawMaterialLiters": self.raw_material_liters,
            "transformationIndex": self.transformation_index,
        }


@dataclass
class Client:
    id: str
    name: str
    address: str = ""
    phone: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> "Client":
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            address=str(d.get("address", "")),
            phone=str(d.get("phone", "")),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "address": self.address, "phone": self.phone}


@dataclass
class Payment:
    date: str
    amount: float

    @classmethod
    def from_dict(cls, d: dict) -> "Payment":
        return cls(date=str(d.get("date", "")), amount=_number(d["amount"]))

    def to_dict(self) -> dict:
        return {"date": self.date, "amount": self.amount}


@dataclass
class Sale:
    id: str
    date: str
    client_id: str
    client_name: str
    total_amount: float
    price: float = 0.0
    quantity: float = 0.0
    unit: str = "baldes"
    payments: list[Payment] = field(default_factory=list)

    @property
    def paid(self) -> float:
        return sum(p.amount for p in self.payments)

    @property
    def balance(self) -> float:
        return self.total_amount - self.paid

    @classmethod
    def from_dict(cls, d: dict) -> "Sale":
        return cls(
            id=str(d["id"]),
            date=str(d["date"]),
            client_id=str(d["clientId"]),
            client_name=str(d.get("clientName", "")),
            total_amount=_number(d["totalAmount"]),
            price=_number(d.get("price") or 0),
            quantity=_number(d.get("quantity") or 0),
            unit=str(d.get("unit", "baldes")),
            payments=[Payment.from_dict(p) for p in d.get("payments") or []],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "clientId": self.client_id,
            "clientName": self.client_name,
            "price": self.price,
            "quantity": self.quantity,
            "unit": self.unit,
            "totalAmount": self.total_amount,
            "payments": [p.to_dict() for p in self.payments],
        }


@dataclass
class WholeMilkReplenishment:
    id: str
    date: str
    quantity_sacos: float
    price_per_saco: float = 0.0

    @classmethod
    def from_dict(cls, d: dict) -> "WholeMilkReplenishment":
        return cls(
            id=str(d["id"]),
            date=str(d["date"]),
            quantity_sacos=_number(d["quantitySacos"]),
            price_per_saco=_number(d.get("pricePerSaco") or 0),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "quantitySacos": self.quantity_sacos,
            "pricePerSaco": self.price_per_saco,
        }


@dataclass(frozen=True)
class Snapshot:
    """All six collections read at one point in time."""

    providers: list[Provider]
    deliveries: list[Delivery]
    production: list[Production]
    clients: list[Client]
    sales: list[Sale]
    replenishments: list[WholeMilkReplenishment]


__all__ = [
    "BUCKET_MULTIPLIER",
    "Client",
    "Delivery",
    "KG_PER_SACK",
    "Payment",
    "Production",
    "Provider",
    "SALE_UNITS",
    "Sale",
    "SaleUnit",
    "Snapshot",
    "WholeMilkReplenishment",
]
