"""
Spreadsheet exports built with openpyxl.
"""
from datetime import date
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from vozip.reports.excel import (
    HEADER_ROW,
    Column,
    build_workbook,
    delinquent_workbook,
)

pytestmark = pytest.mark.unit


def test_build_workbook_layout():
    columns = [Column("ID", "id"), Column("Nombre", "name"), Column("Monto", "amount", money=True)]
    rows = [{"id": 1, "name": "Ana", "amount": Decimal("10.50")}, {"id": 2, "name": None}]

    sheet = load_workbook(build_workbook("Prueba", columns, rows, subtitle="Sub")).active

    assert sheet["A1"].value == "Prueba"
    assert sheet["A2"].value == "Sub"
    assert [c.value for c in sheet[HEADER_ROW]] == ["ID", "Nombre", "Monto"]
    assert sheet.cell(row=HEADER_ROW + 1, column=3).value == 10.5
    assert sheet.cell(row=HEADER_ROW + 1, column=3).number_format == "#,##0.00"
    assert sheet.cell(row=HEADER_ROW + 2, column=2).value is None


def test_delinquent_workbook_totals():
    rows = [
        {"client_id": 1, "first_name": "Ana", "installation_date": date(2024, 1, 15),
         "unpaid_periods": 7, "tariff_value": Decimal("50000"), "amount_owed": Decimal("350000")},
        {"client_id": 2, "first_name": "Bruno", "installation_date": date(2024, 3, 1),
         "unpaid_periods": 3, "tariff_value": Decimal("20000"), "amount_owed": Decimal("60000")},
    ]

    sheet = load_workbook(delinquent_workbook(rows, 3)).active

    totals_row = HEADER_ROW + 3
    assert sheet.cell(row=totals_row, column=1).value == "TOTALES"
    assert sheet.cell(row=totals_row, column=12).value == 410000
    assert "3 o más meses" in sheet["A2"].value
