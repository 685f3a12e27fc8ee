from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.deps import (
    MANAGER,
    OWNER,
    STAFF,
    get_current_active_user,
    get_current_restaurant,
    get_restaurant_id,
    get_restaurant_session,
    get_session_no_tenant,
    require_roles,
)
from tableside.db.models.restaurants import Restaurant, RestaurantStaff, StaffInvitation
from tableside.db.models.security import User
from tableside.repositories.restaurants import StaffRepository
from tableside.repositories.tables import NotificationRepository
from tableside.schemas.staff import (
    InvitationAccept,
    InvitationCreate,
    InvitationRead,
    NotificationRead,
    StaffMemberRead,
    StaffMemberUpdate,
)
from tableside.services.staff import StaffService

router = APIRouter(tags=["Staff"])


def _invitation_read(inv: StaffInvitation, restaurant_name: Optional[str], *, include_token: bool) -> InvitationRead:
    return InvitationRead(
        id=inv.id,
        restaurant_id=inv.restaurant_id,
        restaurant_name=restaurant_name,
        email=inv.email,
        role=inv.role,
        status=inv.status,
        token=inv.token if include_token else None,
        expires_at=inv.expires_at,
        accepted_at=inv.accepted_at,
        created_at=inv.created_at,
    )


def _member_read(m: RestaurantStaff) -> StaffMemberRead:
    return StaffMemberRead(
        id=m.id,
        user_id=m.user_id,
        email=m.user.email,
        full_name=m.user.full_name,
        avatar_url=m.user.avatar_url,
        role=m.role,
        is_active=m.is_active,
        created_at=m.created_at,
    )


# Invitations managed by the restaurant

# PUBLIC_INTERFACE
@router.get(
    "/staff/invitations",
    response_model=List[InvitationRead],
    summary="List invitations",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def list_invitations(
    restaurant: Restaurant = Depends(get_current_restaurant),
    session: AsyncSession = Depends(get_restaurant_session),
    status_filter: Optional[str] = Query(None, alias="status", description="pending | accepted | declined | expired"),
) -> List[InvitationRead]:
    rows = await StaffRepository(session).list_invitations(restaurant.id, status=status_filter)
    return [_invitation_read(i, restaurant.name, include_token=True) for i in rows]


# PUBLIC_INTERFACE
@router.post(
    "/staff/invitations",
    response_model=InvitationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Invite staff member",
    description="Create a pending invitation valid for 7 days. Only one pending invitation per email.",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def create_invitation(
    payload: InvitationCreate,
    restaurant: Restaurant = Depends(get_current_restaurant),
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_restaurant_session),
) -> InvitationRead:
    invitation = await StaffService(session).create_invitation(restaurant, payload, invited_by=user.id)
    return _invitation_read(invitation, restaurant.name, include_token=True)


# PUBLIC_INTERFACE
@router.delete(
    "/staff/invitations/{invitation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete invitation",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def delete_invitation(
    invitation_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> Response:
    await StaffService(session).delete_invitation(restaurant_id, invitation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Invitations addressed to the current user

# PUBLIC_INTERFACE
@router.get(
    "/invitations/pending",
    response_model=List[InvitationRead],
    summary="My pending invitations",
    description="Unexpired pending invitations sent to the caller's email.",
)
async def my_pending_invitations(
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> List[InvitationRead]:
    rows = await StaffService(session).pending_for(user)
    return [_invitation_read(i, i.restaurant.name, include_token=False) for i in rows]


# PUBLIC_INTERFACE
@router.post(
    "/invitations/accept",
    response_model=InvitationRead,
    summary="Accept invitation by token",
)
async def accept_invitation_by_token(
    payload: InvitationAccept,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> InvitationRead:
    invitation = await StaffService(session).accept_invitation(user, token=payload.token)
    return _invitation_read(invitation, invitation.restaurant.name, include_token=False)


# PUBLIC_INTERFACE
@router.post(
    "/invitations/{invitation_id}/accept",
    response_model=InvitationRead,
    summary="Accept invitation",
    description="Join the restaurant staff. The matching role is granted to the account.",
)
async def accept_invitation(
    invitation_id: UUID,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> InvitationRead:
    invitation = await StaffService(session).accept_invitation(user, invitation_id=invitation_id)
    return _invitation_read(invitation, invitation.restaurant.name, include_token=False)


# PUBLIC_INTERFACE
@router.post(
    "/invitations/{invitation_id}/decline",
    response_model=InvitationRead,
    summary="Decline invitation",
)
async def decline_invitation(
    invitation_id: UUID,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> InvitationRead:
    invitation = await StaffService(session).decline_invitation(user, invitation_id)
    return _invitation_read(invitation, invitation.restaurant.name, include_token=False)


# Members

# PUBLIC_INTERFACE
@router.get(
    "/staff/members",
    response_model=List[StaffMemberRead],
    summary="List staff members",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def list_members(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    include_inactive: bool = Query(False),
) -> List[StaffMemberRead]:
    rows = await StaffRepository(session).list_members(restaurant_id, include_inactive=include_inactive)
    return [_member_read(m) for m in rows]


# PUBLIC_INTERFACE
@router.patch(
    "/staff/members/{membership_id}",
    response_model=StaffMemberRead,
    summary="Update staff member",
    dependencies=[Depends(require_roles(*OWNER))],
)
async def update_member(
    membership_id: UUID,
    payload: StaffMemberUpdate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> StaffMemberRead:
    membership = await StaffService(session).update_member(restaurant_id, membership_id, payload)
    return _member_read(membership)


# PUBLIC_INTERFACE
@router.delete(
    "/staff/members/{membership_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove staff member",
    description="Deactivates the membership.",
    dependencies=[Depends(require_roles(*OWNER))],
)
async def remove_member(
    membership_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> Response:
    await StaffService(session).remove_member(restaurant_id, membership_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Notifications

# PUBLIC_INTERFACE
@router.get(
    "/staff/notifications",
    response_model=List[NotificationRead],
    summary="My notifications",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def my_notifications(
    restaurant_id: UUID = Depends(get_restaurant_id),
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_restaurant_session),
    unread_only: bool = Query(True),
    limit: int = Query(50, ge=1, le=200),
) -> List[NotificationRead]:
    rows = await NotificationRepository(session).list_for_staff(
        restaurant_id, user.id, unread_only=unread_only, limit=limit
    )
    return [NotificationRead.model_validate(n) for n in rows]


# PUBLIC_INTERFACE
@router.post(
    "/staff/notifications/{notification_id}/read",
    response_model=NotificationRead,
    summary="Mark notification read",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def mark_notification_read(
    notification_id: UUID,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_restaurant_session),
) -> NotificationRead:
    notification = await StaffService(session).mark_notification_read(notification_id, user.id)
    return NotificationRead.model_validate(notification)
