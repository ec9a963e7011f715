"""Tests for JSON backup/restore and the delivery exports."""

import io
import json

import pytest
from openpyxl import load_workbook

from acopio.models import Delivery
from acopio.services.backup import export_backup, restore_backup
from acopio.services.demo_data import load_demo_data, wipe_all
from acopio.services.exports import deliveries_to_csv, deliveries_to_xlsx, provider_totals_frame
from acopio.services.aggregator import provider_weekly_totals
from acopio.store import SLOT_NAMES
from conftest import WEDNESDAY


# --------------------------------------------------------------------
# BACKUP
# --------------------------------------------------------------------
def test_backup_has_exactly_the_slot_keys(seeded):
    payload = json.loads(export_backup(seeded))
    assert set(payload) == set(SLOT_NAMES)
    assert payload["providers"][0]["name"] == "Lucio"
    assert payload["sales"] == []


def test_export_then_restore_keeps_every_slot(seeded, tmp_path):
    load_demo_data(seeded, today=WEDNESDAY)
    before = {slot: seeded.read_raw(slot) for slot in SLOT_NAMES}
    content = export_backup(seeded)

    wipe_all(seeded)
    assert all(n == 0 for n in seeded.counts().values())

    counts = restore_backup(seeded, content.encode("utf-8"))
    assert counts["providers"] == 3
    assert {slot: seeded.read_raw(slot) for slot in SLOT_NAMES} == before


@pytest.mark.parametrize(
    "content, message",
    [
        (b"\xff\xfe\x00", "UTF-8"),
        ("{not json", "valid JSON"),
        ("[]", "JSON object"),
        (json.dumps({"deliveries": []}), "missing"),
        (json.dumps({slot: [] for slot in SLOT_NAMES} | {"sales": {}}), "not lists"),
    ],
)
def test_restore_rejects_bad_files_without_writing(seeded, content, message):
    before = export_backup(seeded)
    with pytest.raises(ValueError, match=message):
        restore_backup(seeded, content)
    assert export_backup(seeded) == before


# --------------------------------------------------------------------
# CSV / XLSX
# --------------------------------------------------------------------
DELIVERIES = [
    Delivery(id="1", provider_name='Juan "El Rápido"', date="2024-05-14", quantity=30.0),
    Delivery(id="2", provider_name="Rosa, hija", date="2024-05-13", quantity=12.5),
]


def test_csv_quotes_text_but_not_quantities():
    assert deliveries_to_csv(DELIVERIES) == (
        "Proveedor,Fecha,Cantidad\n"
        '"Juan ""El Rápido""","2024-05-14",30\n'
        '"Rosa, hija","2024-05-13",12.5'
    )


def test_exports_refuse_empty_input():
    with pytest.raises(ValueError):
        deliveries_to_csv([])
    with pytest.raises(ValueError):
        deliveries_to_xlsx([])


def test_xlsx_has_entregas_sheet():
    workbook = load_workbook(io.BytesIO(deliveries_to_xlsx(DELIVERIES)))
    sheet = workbook["Entregas"]
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0] == ("Proveedor", "Fecha", "Cantidad")
    assert rows[1] == ('Juan "El Rápido"', "2024-05-14", 30)
    assert len(rows) == 3


def test_provider_totals_frame_columns(seeded):
    load_demo_data(seeded, today=WEDNESDAY)
    snap = seeded.snapshot()
    frame = provider_totals_frame(provider_weekly_totals(snap.providers, snap.deliveries, WEDNESDAY))
    assert list(frame.columns) == ["Provider", "From", "To", "Liters", "Price", "Amount owed"]
    assert (frame["Amount owed"] == frame["Liters"] * frame["Price"]).all()
