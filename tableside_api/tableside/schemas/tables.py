from __future__ import annotations

from datetime import date, datetime, time
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

TableStatus = Literal["available", "occupied", "reserved"]


class TableCreate(BaseModel):
    """Create a table."""
    table_number: int = Field(..., ge=1)
    capacity: int = Field(4, ge=1)
    location: Optional[str] = Field(None, description="e.g. Patio, Window")


class TableUpdate(BaseModel):
    """Update a table."""
    table_number: Optional[int] = Field(None, ge=1)
    capacity: Optional[int] = Field(None, ge=1)
    location: Optional[str] = Field(None)
    status: Optional[TableStatus] = Field(None)


class TableRead(BaseModel):
    """Table read model."""
    id: UUID = Field(...)
    table_number: int = Field(...)
    capacity: int = Field(...)
    status: str = Field(...)
    location: Optional[str] = Field(None)
    is_active: bool = Field(...)
    created_at: datetime = Field(...)

    class Config:
        from_attributes = True


class ShiftCreate(BaseModel):
    """Create a shift."""
    name: str = Field(..., min_length=1)
    start_time: time = Field(...)
    end_time: time = Field(...)

    @model_validator(mode="after")
    def _distinct_times(self):
        if self.start_time == self.end_time:
            raise ValueError("start_time and end_time must differ")
        return self


class ShiftRead(BaseModel):
    """Shift read model."""
    id: UUID = Field(...)
    name: str = Field(...)
    start_time: time = Field(...)
    end_time: time = Field(...)
    is_active: bool = Field(...)

    class Config:
        from_attributes = True


class AssignmentCreate(BaseModel):
    """Assign a staff member to a table."""
    staff_user_id: UUID = Field(...)
    table_id: UUID = Field(...)
    shift_id: Optional[UUID] = Field(None)
    assignment_date: Optional[date] = Field(None, description="Defaults to today (UTC)")


class AssignmentRead(BaseModel):
    """Assignment read model."""
    id: UUID = Field(...)
    staff_user_id: UUID = Field(...)
    table_id: UUID = Field(...)
    table_number: Optional[int] = Field(None)
    shift_id: Optional[UUID] = Field(None)
    shift_name: Optional[str] = Field(None)
    assignment_date: date = Field(...)
    is_active: bool = Field(...)
