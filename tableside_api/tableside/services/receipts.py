from __future__ import annotations

import io

from reportlab.lib import colors
from reportlab.lib.pagesizes import A6
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from tableside.db.base import as_utc
from tableside.db.models.orders import Order

RECEIPT_WIDTH = 40
_RULE = "-" * RECEIPT_WIDTH


def short_id(order: Order) -> str:
    return str(order.id)[:8]


def receipt_filename(order: Order, extension: str) -> str:
    return f"receipt-{short_id(order)}.{extension}"


def _location(order: Order) -> str:
    if order.order_type == "delivery":
        return "Delivery"
    return f"Table {order.table_number}"


def _created(order: Order) -> str:
    return as_utc(order.created_at).strftime("%Y-%m-%d %H:%M UTC")


# PUBLIC_INTERFACE
def render_text_receipt(order: Order, restaurant_name: str) -> str:
    """Fixed-width plain text receipt suitable for thermal printers."""
    lines = [
        restaurant_name.center(RECEIPT_WIDTH).rstrip(),
        f"Order #{short_id(order)}".center(RECEIPT_WIDTH).rstrip(),
        _location(order).center(RECEIPT_WIDTH).rstrip(),
        _created(order).center(RECEIPT_WIDTH).rstrip(),
        _RULE,
    ]
    if not order.items:
        lines.append("No items found".center(RECEIPT_WIDTH).rstrip())
    for item in order.items:
        amount = f"x{item.quantity} {item.line_total:>9.2f}"
        name = item.name[: RECEIPT_WIDTH - len(amount) - 1]
        lines.append(f"{name:<{RECEIPT_WIDTH - len(amount)}}{amount}")
    lines.append(_RULE)
    total = f"{order.total_amount:.2f}"
    lines.append(f"{'TOTAL':<{RECEIPT_WIDTH - len(total)}}{total}")
    if order.customer_notes:
        lines.extend([_RULE, "Notes:", order.customer_notes])
    lines.extend([_RULE, "Thank you for dining with us!".center(RECEIPT_WIDTH).rstrip()])
    return "\n".join(lines) + "\n"


# PUBLIC_INTERFACE
def render_pdf_receipt(order: Order, restaurant_name: str) -> bytes:
    """Single-page PDF receipt."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A6, leftMargin=14, rightMargin=14, topMargin=14, bottomMargin=14)
    styles = getSampleStyleSheet()
    elements: list = [
        Paragraph(restaurant_name, styles["Title"]),
        Paragraph(f"Order #{short_id(order)} | {_location(order)}", styles["Normal"]),
        Paragraph(_created(order), styles["Normal"]),
        Spacer(1, 8),
    ]

    data = [["Item", "Qty", "Amount"]]
    data += [[item.name, str(item.quantity), f"{item.line_total:.2f}"] for item in order.items]
    data.append(["TOTAL", "", f"{order.total_amount:.2f}"])
    table = Table(data, repeatRows=1, colWidths=[150, 30, 60])
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("LINEBELOW", (0, 0), (-1, 0), 0.5, colors.black),
                ("LINEABOVE", (0, -1), (-1, -1), 0.5, colors.black),
            ]
        )
    )
    elements.append(table)
    if order.customer_notes:
        elements += [Spacer(1, 8), Paragraph(f"Notes: {order.customer_notes}", styles["Normal"])]
    doc.build(elements)
    return buffer.getvalue()
