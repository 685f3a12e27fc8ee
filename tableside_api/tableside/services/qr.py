"""QR codes linking tables and restaurants to the customer menu."""
from __future__ import annotations

import io
import zipfile
from typing import Iterable, Optional

import qrcode
from qrcode.constants import ERROR_CORRECT_H

from tableside.services.restaurants import menu_url

FILL_COLOR = "#0d0f14"
BACK_COLOR = "#f5f0e8"


# PUBLIC_INTERFACE
def qr_filename(slug: str, table_number: Optional[int] = None) -> str:
    if table_number is None:
        return f"qr-{slug}.png"
    return f"qr-{slug}-table-{table_number}.png"


# PUBLIC_INTERFACE
def render_qr_png(data: str, box_size: int = 10, border: int = 4) -> bytes:
    """PNG bytes of a high error-correction QR code for `data`."""
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, box_size=box_size, border=border)
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color=FILL_COLOR, back_color=BACK_COLOR)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


# PUBLIC_INTERFACE
def menu_qr(slug: str, table_number: Optional[int] = None) -> tuple[str, bytes]:
    """(filename, png) for the restaurant menu, optionally pinned to a table."""
    return qr_filename(slug, table_number), render_qr_png(menu_url(slug, table_number))


# PUBLIC_INTERFACE
def tables_zip(slug: str, table_numbers: Iterable[int]) -> bytes:
    """ZIP archive with one menu QR code per table."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for number in table_numbers:
            name, png = menu_qr(slug, number)
            archive.writestr(name, png)
    return buffer.getvalue()
