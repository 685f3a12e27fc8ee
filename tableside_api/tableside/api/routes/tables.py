from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.deps import MANAGER, STAFF, get_current_restaurant, get_restaurant_id, get_restaurant_session, require_roles
from tableside.db.base import utcnow
from tableside.db.models.restaurants import Restaurant, RestaurantTable, Shift, StaffTableAssignment
from tableside.repositories.restaurants import StaffRepository
from tableside.repositories.tables import TableRepository
from tableside.schemas.tables import (
    AssignmentCreate,
    AssignmentRead,
    ShiftCreate,
    ShiftRead,
    TableCreate,
    TableRead,
    TableUpdate,
)

router = APIRouter(tags=["Tables"])


def _assignment_read(
    a: StaffTableAssignment, table: Optional[RestaurantTable], shift: Optional[Shift]
) -> AssignmentRead:
    return AssignmentRead(
        id=a.id,
        staff_user_id=a.staff_user_id,
        table_id=a.table_id,
        table_number=table.table_number if table else None,
        shift_id=a.shift_id,
        shift_name=shift.name if shift else None,
        assignment_date=a.assignment_date,
        is_active=a.is_active,
    )


async def _get_table(repo: TableRepository, restaurant_id: UUID, table_id: UUID) -> RestaurantTable:
    table = await repo.get_scoped(RestaurantTable, table_id, restaurant_id)
    if table is None or not table.is_active:
        raise HTTPException(status_code=404, detail="Table not found")
    return table


# PUBLIC_INTERFACE
@router.get(
    "/tables",
    response_model=List[TableRead],
    summary="List tables",
    description="Active tables ordered by table number.",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def list_tables(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> List[TableRead]:
    rows = await TableRepository(session).list_tables(restaurant_id)
    return [TableRead.model_validate(t) for t in rows]


# PUBLIC_INTERFACE
@router.post(
    "/tables",
    response_model=TableRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create table",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def create_table(
    payload: TableCreate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> TableRead:
    repo = TableRepository(session)
    if await repo.get_by_number(restaurant_id, payload.table_number) is not None:
        raise HTTPException(status_code=409, detail=f"Table {payload.table_number} already exists")
    table = RestaurantTable(restaurant_id=restaurant_id, status="available", is_active=True, **payload.model_dump())
    await repo.add(table)
    await repo.commit()
    return TableRead.model_validate(table)


# PUBLIC_INTERFACE
@router.patch(
    "/tables/{table_id}",
    response_model=TableRead,
    summary="Update table",
    description="Waiters may change the status; other fields need a manager.",
)
async def update_table(
    table_id: UUID,
    payload: TableUpdate,
    role: str = Depends(require_roles(*STAFF)),
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> TableRead:
    repo = TableRepository(session)
    table = await _get_table(repo, restaurant_id, table_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if role == "wait_staff" and set(changes) - {"status"}:
        raise HTTPException(status_code=403, detail="Insufficient role")
    number = changes.get("table_number")
    if number is not None and number != table.table_number:
        if await repo.get_by_number(restaurant_id, number) is not None:
            raise HTTPException(status_code=409, detail=f"Table {number} already exists")
    for field, value in changes.items():
        setattr(table, field, value)
    await repo.commit()
    return TableRead.model_validate(table)


# PUBLIC_INTERFACE
@router.delete(
    "/tables/{table_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete table",
    description="Soft delete: the table is deactivated and its number can be reused.",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def delete_table(
    table_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> Response:
    repo = TableRepository(session)
    table = await _get_table(repo, restaurant_id, table_id)
    table.is_active = False
    await repo.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Shifts

# PUBLIC_INTERFACE
@router.get(
    "/shifts",
    response_model=List[ShiftRead],
    summary="List shifts",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def list_shifts(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> List[ShiftRead]:
    return [ShiftRead.model_validate(s) for s in await TableRepository(session).list_shifts(restaurant_id)]


# PUBLIC_INTERFACE
@router.post(
    "/shifts",
    response_model=ShiftRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create shift",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def create_shift(
    payload: ShiftCreate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> ShiftRead:
    repo = TableRepository(session)
    shift = Shift(restaurant_id=restaurant_id, is_active=True, **payload.model_dump())
    await repo.add(shift)
    await repo.commit()
    return ShiftRead.model_validate(shift)


# Assignments

# PUBLIC_INTERFACE
@router.get(
    "/assignments",
    response_model=List[AssignmentRead],
    summary="List table assignments",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def list_assignments(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    on: Optional[date] = Query(None, description="Only assignments for this date"),
    staff_user_id: Optional[UUID] = Query(None),
) -> List[AssignmentRead]:
    rows = await TableRepository(session).list_assignments(restaurant_id, on=on, staff_user_id=staff_user_id)
    return [_assignment_read(a, a.table, a.shift) for a in rows]


# PUBLIC_INTERFACE
@router.post(
    "/assignments",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Assign staff to a table",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def create_assignment(
    payload: AssignmentCreate,
    restaurant: Restaurant = Depends(get_current_restaurant),
    session: AsyncSession = Depends(get_restaurant_session),
) -> AssignmentRead:
    repo = TableRepository(session)
    table = await _get_table(repo, restaurant.id, payload.table_id)

    shift = None
    if payload.shift_id is not None:
        shift = await repo.get_scoped(Shift, payload.shift_id, restaurant.id)
        if shift is None:
            raise HTTPException(status_code=400, detail="Shift not found")

    if payload.staff_user_id != restaurant.owner_id:
        membership = await StaffRepository(session).get_membership(restaurant.id, payload.staff_user_id)
        if membership is None or not membership.is_active:
            raise HTTPException(status_code=400, detail="User is not a member of this restaurant's staff")

    assignment = StaffTableAssignment(
        restaurant_id=restaurant.id,
        staff_user_id=payload.staff_user_id,
        table_id=table.id,
        shift_id=payload.shift_id,
        assignment_date=payload.assignment_date or utcnow().date(),
        is_active=True,
    )
    await repo.add(assignment)
    await repo.commit()
    return _assignment_read(assignment, table, shift)
