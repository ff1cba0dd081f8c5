# vozip/reports/excel.py
"""
Exportaciones a Excel (.xlsx) con openpyxl.
"""
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
MONEY_FORMAT = "#,##0.00"
HEADER_ROW = 4


class Column(NamedTuple):
    header: str
    key: str
    width: int = 15
    money: bool = False


CLIENT_COLUMNS = [
    Column("ID", "id", 8),
    Column("Nombre", "first_name", 22),
    Column("Apellidos", "last_name", 22),
    Column("Cédula", "national_id", 15),
    Column("Teléfono", "phone", 14),
    Column("Dirección", "address", 30),
    Column("IP", "ip_address", 15),
    Column("Fecha Instalación", "installation_date", 16),
    Column("Estado", "status_name", 12),
    Column("Tipo Servicio", "service_type_name", 16),
    Column("Plan", "plan_name", 16),
    Column("Velocidad", "plan_speed", 12),
    Column("Sector", "sector_name", 16),
    Column("Tarifa", "tariff_value", 12, money=True),
]

DELINQUENT_COLUMNS = [
    Column("ID", "client_id", 8),
    Column("Nombre", "first_name", 22),
    Column("Apellidos", "last_name", 22),
    Column("Cédula", "national_id", 15),
    Column("Teléfono", "phone", 14),
    Column("Dirección", "address", 30),
    Column("Sector", "sector", 16),
    Column("Tipo Servicio", "service_type", 16),
    Column("Fecha Instalación", "installation_date", 16),
    Column("Meses Adeudados", "unpaid_periods", 10),
    Column("Tarifa", "tariff_value", 12, money=True),
    Column("Total Adeudado", "amount_owed", 14, money=True),
]

AUDIT_COLUMNS = [
    Column("ID", "id", 10),
    Column("Fecha y Hora", "created_at", 20),
    Column("Usuario ID", "user_id", 12),
    Column("Usuario", "user_full_name", 25),
    Column("Acción", "action", 18),
    Column("Módulo", "module", 18),
    Column("Descripción", "description", 50),
    Column("IP", "ip_address", 15),
]


def _cell_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, (str, int, float, Decimal, date)) or value is None:
        return value
    return str(value)


def build_workbook(
    title: str,
    columns: List[Column],
    rows: Iterable[Dict[str, Any]],
    subtitle: Optional[str] = None,
    totals: Optional[Dict[str, Any]] = None,
) -> BytesIO:
    """Una hoja con título, encabezado con estilo, filas y fila de totales opcional."""
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]

    last_col = get_column_letter(len(columns))
    ws.merge_cells(f"A1:{last_col}1")
    ws["A1"] = title
    ws["A1"].font = Font(bold=True, size=14, name="Arial")
    ws["A1"].alignment = Alignment(horizontal="center")

    ws.merge_cells(f"A2:{last_col}2")
    ws["A2"] = subtitle or f"Generado: {datetime.now():%Y-%m-%d %H:%M}"
    ws["A2"].font = Font(size=11, name="Arial")
    ws["A2"].alignment = Alignment(horizontal="center")

    header_fill = PatternFill("solid", fgColor="4472C4")
    header_font = Font(bold=True, color="FFFFFF", size=10, name="Arial")
    thin_border = Border(
        left=Side(style="thin"), right=Side(style="thin"),
        top=Side(style="thin"), bottom=Side(style="thin"),
    )

    for col, column in enumerate(columns, 1):
        cell = ws.cell(row=HEADER_ROW, column=col, value=column.header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center", wrap_text=True)
        cell.border = thin_border
        ws.column_dimensions[get_column_letter(col)].width = column.width

    row = HEADER_ROW
    for row, record in enumerate(rows, HEADER_ROW + 1):
        for col, column in enumerate(columns, 1):
            cell = ws.cell(row=row, column=col, value=_cell_value(record.get(column.key)))
            cell.border = thin_border
            if column.money:
                cell.number_format = MONEY_FORMAT
                cell.alignment = Alignment(horizontal="right")

    if totals and row > HEADER_ROW:
        tot_row = row + 1
        ws.cell(row=tot_row, column=1, value="TOTALES").font = Font(bold=True, name="Arial", size=10)
        for col, column in enumerate(columns, 1):
            if column.key in totals:
                cell = ws.cell(row=tot_row, column=col, value=totals[column.key])
                cell.font = Font(bold=True, name="Arial", size=10)
                cell.border = Border(top=Side(style="double"))
                if column.money:
                    cell.number_format = MONEY_FORMAT

    ws.freeze_panes = ws.cell(row=HEADER_ROW + 1, column=1)

    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf


def xlsx_response(buf: BytesIO, filename: str) -> StreamingResponse:
    return StreamingResponse(
        buf,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def clients_workbook(rows: List[Dict[str, Any]]) -> BytesIO:
    return build_workbook("Clientes", CLIENT_COLUMNS, rows, subtitle=f"Total clientes: {len(rows)}")


def delinquent_workbook(rows: List[Dict[str, Any]], threshold: int) -> BytesIO:
    total_owed = sum((r["amount_owed"] for r in rows), Decimal("0"))
    return build_workbook(
        "Clientes Morosos",
        DELINQUENT_COLUMNS,
        rows,
        subtitle=f"Clientes con {threshold} o más meses adeudados: {len(rows)}",
        totals={"amount_owed": total_owed},
    )


def audit_workbook(rows: List[Dict[str, Any]]) -> BytesIO:
    return build_workbook("Bitácora", AUDIT_COLUMNS, rows, subtitle=f"Registros: {len(rows)}")
