from __future__ import annotations

import io
from typing import Literal, Sequence
from uuid import UUID

import pandas as pd
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from reportlab.lib import colors
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.api.routes.orders import order_filters
from tableside.core.deps import MANAGER, get_restaurant_id, get_restaurant_session, require_roles
from tableside.db.base import utcnow
from tableside.db.models.inventory import InventoryItem, Supplier, WasteLogEntry
from tableside.db.models.orders import Order
from tableside.repositories.orders import OrderFilters

router = APIRouter(prefix="/reports", tags=["Reports"])

ExportFormat = Literal["csv", "xlsx", "pdf"]


def _export_dataframe(
    df: pd.DataFrame,
    filename_base: str,
    export_format: str,
) -> StreamingResponse:
    """
    Convert DataFrame to the requested format and return a StreamingResponse.

    Supported formats:
      - csv: text/csv
      - xlsx: application/vnd.openxmlformats-officedocument.spreadsheetml.sheet
      - pdf: application/pdf (simple tabular rendering)
    """
    if export_format == "xlsx":
        # Excel cannot store timezone-aware datetimes; values are UTC.
        df = df.copy()
        for col in df.select_dtypes(include=["datetimetz"]).columns:
            df[col] = df[col].dt.tz_convert(None)
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Report")
        buffer.seek(0)
        headers = {"Content-Disposition": f'attachment; filename="{filename_base}.xlsx"'}
        return StreamingResponse(
            buffer,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers=headers,
        )

    if export_format == "pdf":
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=landscape(letter), leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18
        )
        styles = getSampleStyleSheet()
        title = f"{filename_base.replace('_', ' ').title()} ({utcnow().strftime('%Y-%m-%d %H:%M UTC')})"
        elements: list = [Paragraph(title, styles["Title"])]

        data = [list(df.columns)] + df.astype(str).values.tolist()
        table = Table(data, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
                    ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ]
            )
        )
        elements.append(table)
        doc.build(elements)
        buffer.seek(0)
        headers = {"Content-Disposition": f'attachment; filename="{filename_base}.pdf"'}
        return StreamingResponse(buffer, media_type="application/pdf", headers=headers)

    text = io.StringIO()
    df.to_csv(text, index=False)
    headers = {"Content-Disposition": f'attachment; filename="{filename_base}.csv"'}
    return StreamingResponse(io.BytesIO(text.getvalue().encode("utf-8")), media_type="text/csv", headers=headers)


async def _fetch_all(session: AsyncSession, stmt: Select) -> Sequence:
    """Execute a select and return the row tuples."""
    res = await session.execute(stmt)
    return list(res.all())


ORDER_COLUMNS = [
    "order_id",
    "created_at",
    "order_type",
    "table_number",
    "status",
    "items",
    "item_count",
    "total_amount",
    "customer_name",
    "customer_phone",
    "customer_notes",
]


# PUBLIC_INTERFACE
@router.get(
    "/orders",
    summary="Order history export",
    description="Orders matching the order list filters, newest first.",
    response_description="File stream (CSV/XLSX/PDF)",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def orders_report(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    filters: OrderFilters = Depends(order_filters),
    format: ExportFormat = Query("csv", description="Export format: csv | xlsx | pdf"),
):
    stmt = filters.apply(select(Order).where(Order.restaurant_id == restaurant_id)).order_by(Order.created_at.desc())
    orders = list((await session.execute(stmt)).scalars())
    data = [
        {
            "order_id": str(o.id)[:8],
            "created_at": o.created_at,
            "order_type": o.order_type,
            "table_number": o.table_number if o.order_type == "dine_in" else None,
            "status": o.status,
            "items": ", ".join(f"{i.quantity}x {i.name}" for i in o.items),
            "item_count": sum(i.quantity for i in o.items),
            "total_amount": float(o.total_amount or 0),
            "customer_name": o.customer_name,
            "customer_phone": o.customer_phone,
            "customer_notes": o.customer_notes,
        }
        for o in orders
    ]
    return _export_dataframe(pd.DataFrame(data, columns=ORDER_COLUMNS), "order_history", format)


# PUBLIC_INTERFACE
@router.get(
    "/inventory",
    summary="Inventory export",
    description="Active inventory items with stock status and valuation (quantity x cost per unit).",
    response_description="File stream (CSV/XLSX/PDF)",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def inventory_report(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    format: ExportFormat = Query("csv", description="Export format: csv | xlsx | pdf"),
):
    stmt = (
        select(InventoryItem, Supplier.name)
        .outerjoin(Supplier, Supplier.id == InventoryItem.supplier_id)
        .where(InventoryItem.restaurant_id == restaurant_id, InventoryItem.is_active.is_(True))
        .order_by(InventoryItem.name)
    )
    rows = await _fetch_all(session, stmt)
    data = []
    for item, supplier_name in rows:
        qty = float(item.quantity_in_stock or 0)
        cost = float(item.cost_per_unit or 0)
        data.append(
            {
                "name": item.name,
                "sku": item.sku,
                "category": item.category,
                "unit": item.unit,
                "quantity_in_stock": qty,
                "minimum_stock_level": float(item.minimum_stock_level or 0),
                "stock_status": item.stock_status,
                "cost_per_unit": cost,
                "valuation": round(qty * cost, 2),
                "supplier": supplier_name,
            }
        )
    df = pd.DataFrame(
        data,
        columns=[
            "name",
            "sku",
            "category",
            "unit",
            "quantity_in_stock",
            "minimum_stock_level",
            "stock_status",
            "cost_per_unit",
            "valuation",
            "supplier",
        ],
    )
    return _export_dataframe(df, "inventory", format)


# PUBLIC_INTERFACE
@router.get(
    "/waste",
    summary="Waste log export",
    description="Waste entries newest first with the estimated cost of the discarded stock.",
    response_description="File stream (CSV/XLSX/PDF)",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def waste_report(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    limit: int = Query(1000, ge=1, le=10000),
    format: ExportFormat = Query("csv", description="Export format: csv | xlsx | pdf"),
):
    stmt = (
        select(
            WasteLogEntry.created_at,
            InventoryItem.name,
            WasteLogEntry.quantity,
            InventoryItem.unit,
            InventoryItem.cost_per_unit,
            WasteLogEntry.reason,
        )
        .join(InventoryItem, InventoryItem.id == WasteLogEntry.inventory_item_id)
        .where(WasteLogEntry.restaurant_id == restaurant_id)
        .order_by(WasteLogEntry.created_at.desc())
        .limit(limit)
    )
    rows = await _fetch_all(session, stmt)
    data = [
        {
            "logged_at": logged_at,
            "item": name,
            "quantity": float(quantity or 0),
            "unit": unit,
            "estimated_cost": round(float(quantity or 0) * float(cost or 0), 2),
            "reason": reason,
        }
        for logged_at, name, quantity, unit, cost, reason in rows
    ]
    df = pd.DataFrame(data, columns=["logged_at", "item", "quantity", "unit", "estimated_cost", "reason"])
    return _export_dataframe(df, "waste_log", format)
