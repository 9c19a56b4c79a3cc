# Overview: Tabular sales export (CSV via the csv module, XLSX via openpyxl).

from __future__ import annotations

import csv
import io

from openpyxl import Workbook
from openpyxl.styles import Font

from ..extensions import db
from ..models import Sale
from ..money import as_float
from . import activity_service
from .tenant_service import scoped_query


EXPORT_COLUMNS = [
    "Sale ID",
    "Invoice",
    "Customer Name",
    "Phone",
    "Date",
    "Subtotal",
    "Discount",
    "GST",
    "Final Total",
    "Paid",
    "Due",
]
WALK_IN_NAME = "Walk-in Customer"
NO_PHONE = "N/A"


def sales_rows(shop_id: int) -> list[list]:
    sales = scoped_query(Sale, shop_id).order_by(Sale.created_at.desc(), Sale.id.desc()).all()
    rows = []
    for sale in sales:
        customer = sale.customer
        rows.append([
            sale.id,
            sale.invoice_number,
            customer.name if customer else WALK_IN_NAME,
            customer.phone if customer else NO_PHONE,
            sale.created_at.strftime("%Y-%m-%d %H:%M:%S") if sale.created_at else "",
            as_float(sale.subtotal),
            as_float(sale.discount),
            as_float(sale.gst),
            as_float(sale.final_total),
            as_float(sale.paid),
            as_float(sale.due),
        ])
    return rows


def to_csv(rows: list[list]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    writer.writerows(rows)
    return buffer.getvalue()


def to_xlsx(rows: list[list]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Sales"
    sheet.append(EXPORT_COLUMNS)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in rows:
        sheet.append(row)
    for index, column in enumerate(EXPORT_COLUMNS, start=1):
        sheet.column_dimensions[sheet.cell(row=1, column=index).column_letter].width = max(12, len(column) + 4)

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def record_export(shop_id: int, export_format: str, row_count: int, user_id: int | None = None) -> None:
    activity_service.log_activity(
        shop_id=shop_id,
        user_id=user_id,
        action="export_data",
        entity_type="sales",
        description=f"Exported {row_count} sales as {export_format}",
    )
    db.session.commit()
