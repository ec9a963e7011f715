from __future__ import annotations

import csv
import io
from datetime import date
from typing import Iterable

import pandas as pd
from openpyxl import Workbook

from acopio.models import Delivery
from acopio.services.aggregator import ProviderDailyRow, ProviderTotal
from acopio.utils import plain_number, weekday_label

CSV_HEADER = ["Proveedor", "Fecha", "Cantidad"]
XLSX_SHEET = "Entregas"


def _require(deliveries: Iterable[Delivery]) -> list[Delivery]:
    rows = list(deliveries)
    if not rows:
        raise ValueError("There are no deliveries to export.")
    return rows


def deliveries_to_csv(deliveries: Iterable[Delivery]) -> str:
    """
    Proveedor,Fecha,Cantidad
    "Don Lucio","2024-05-01",30

    Text fields are always quoted (inner quotes doubled), quantities never are.
    """
    rows = _require(deliveries)
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for d in rows:
        writer.writerow([d.provider_name, d.date, plain_number(d.quantity)])
    return ",".join(CSV_HEADER) + "\n" + buf.getvalue().rstrip("\n")


def deliveries_to_xlsx(deliveries: Iterable[Delivery]) -> bytes:
    rows = _require(deliveries)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = XLSX_SHEET
    sheet.append(CSV_HEADER)
    for d in rows:
        sheet.append([d.provider_name, d.date, plain_number(d.quantity)])

    buf = io.BytesIO()
    workbook.save(buf)
    return buf.getvalue()


def deliveries_frame(deliveries: Iterable[Delivery]) -> pd.DataFrame:
    df = pd.DataFrame(
        [{"id": d.id, "Provider": d.provider_name, "Date": d.date, "Liters": float(d.quantity)} for d in deliveries],
        columns=["id", "Provider", "Date", "Liters"],
    )
    return df.sort_values("Date", ascending=False, kind="stable").reset_index(drop=True)


def weekly_grid_frame(rows: Iterable[ProviderDailyRow], days: list[date]) -> pd.DataFrame:
    labels = [weekday_label(d) for d in days]
    data = []
    for row in rows:
        rec = {"Provider": row.provider_name}
        rec.update({label: qty for label, qty in zip(labels, row.quantities)})
        rec["Total"] = row.total
        data.append(rec)
    return pd.DataFrame(data, columns=["Provider", *labels, "Total"])


def provider_totals_frame(totals: Iterable[ProviderTotal]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Provider": t.provider_name,
                "From": t.window.start.isoformat(),
                "To": t.window.end.isoformat(),
                "Liters": t.quantity,
                "Price": t.price,
                "Amount owed": t.amount_owed,
            }
            for t in totals
        ],
        columns=["Provider", "From", "To", "Liters", "Price", "Amount owed"],
    )
