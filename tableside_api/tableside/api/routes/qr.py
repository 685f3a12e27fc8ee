from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.deps import STAFF, get_current_restaurant, get_restaurant_session, require_roles
from tableside.db.models.restaurants import Restaurant
from tableside.repositories.tables import TableRepository
from tableside.services.qr import menu_qr, tables_zip

router = APIRouter(prefix="/qr", tags=["QR"])


def _download(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content, media_type=media_type, headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


# PUBLIC_INTERFACE
@router.get(
    "/menu",
    summary="Menu QR code",
    description="PNG QR code pointing at the customer menu, optionally pinned to a table.",
    response_description="qr-<slug>.png or qr-<slug>-table-<n>.png",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def menu_qr_code(
    restaurant: Restaurant = Depends(get_current_restaurant),
    session: AsyncSession = Depends(get_restaurant_session),
    table_number: Optional[int] = Query(None, ge=1),
) -> Response:
    if table_number is not None and await TableRepository(session).get_by_number(restaurant.id, table_number) is None:
        raise HTTPException(status_code=404, detail=f"Table {table_number} not found")
    filename, png = menu_qr(restaurant.slug, table_number)
    return _download(png, filename, "image/png")


# PUBLIC_INTERFACE
@router.get(
    "/tables.zip",
    summary="All table QR codes",
    description="ZIP archive with a QR code for every active table.",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def all_table_qr_codes(
    restaurant: Restaurant = Depends(get_current_restaurant),
    session: AsyncSession = Depends(get_restaurant_session),
) -> Response:
    tables = await TableRepository(session).list_tables(restaurant.id)
    if not tables:
        raise HTTPException(status_code=404, detail="No tables to export")
    archive = tables_zip(restaurant.slug, (t.table_number for t in tables))
    return _download(archive, f"qr-{restaurant.slug}-tables.zip", "application/zip")
