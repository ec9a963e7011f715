from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

SPANISH_WEEKDAYS = ["domingo", "lunes", "martes", "miércoles", "jueves", "viernes", "sábado"]
SPANISH_MONTHS = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]


def iso_now() -> str:
    # Use UTC ISO timestamps for consistency.
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


def safe_div(n: float, d: float) -> float:
    return float(n) / float(d) if d else 0.0


def to_date(value: date | str) -> date:
    """Accept a date (or datetime) or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def day_of_week(d: date) -> int:
    # 0 = Sunday ... 6 = Saturday
    return (d.weekday() + 1) % 7


def weekday_label(d: date) -> str:
    return SPANISH_WEEKDAYS[day_of_week(d)].capitalize()


def month_label(d: date, with_year: bool = False) -> str:
    name = SPANISH_MONTHS[d.month - 1].capitalize()
    return f"{name[:3]} {d.strftime('%y')}" if with_year else name


def fmt_money(amount: float, currency: str = "S/.") -> str:
    return f"{currency} {amount:,.2f}"


def plain_number(value: float) -> float | int:
    """30.0 -> 30, 30.5 -> 30.5 (how quantities are written in exports)."""
    f = float(value)
    return int(f) if f.is_integer() else f


def clean_text(value: str | None, field: str, max_len: int) -> str:
    s = str(value or "").strip()
    if not s:
        raise ValueError(f"{field} is required.")
    if len(s) > max_len:
        raise ValueError(f"{field} must be {max_len} characters or fewer.")
    return s


def positive_number(value, field: str) -> float:
    try:
        f = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a number.")
    if f <= 0:
        raise ValueError(f"{field} must be > 0.")
    return f
