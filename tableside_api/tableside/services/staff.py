from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.settings import get_app_settings
from tableside.db.base import as_utc, utcnow
from tableside.db.models.restaurants import Restaurant, RestaurantStaff, StaffInvitation, StaffNotification
from tableside.db.models.security import User
from tableside.repositories.restaurants import StaffRepository
from tableside.repositories.security import SecurityRepository
from tableside.repositories.tables import NotificationRepository
from tableside.schemas.staff import InvitationCreate, StaffMemberUpdate
from tableside.services.base import BaseService
from tableside.services.errors import ConflictError, DomainValidationError, NotFoundError, PermissionDeniedError

logger = logging.getLogger(__name__)


class StaffService(BaseService):
    """
    Staff onboarding and membership management.

    An invitation is addressed to an email. Accepting it creates (or reactivates)
    the restaurant membership and grants the matching global role.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.staff = StaffRepository(session)
        self.security = SecurityRepository(session)
        self.notifications = NotificationRepository(session)

    # Invitations

    # PUBLIC_INTERFACE
    async def create_invitation(self, restaurant: Restaurant, payload: InvitationCreate, invited_by: UUID) -> StaffInvitation:
        """
        Create a pending invitation. A second unexpired pending one for the same
        email is a conflict; a lapsed one is marked expired and replaced.
        """
        email = payload.email.strip().lower()
        pending = await self.staff.find_pending_invitation(restaurant.id, email)
        if pending is not None:
            if as_utc(pending.expires_at) > utcnow():
                raise ConflictError("An invitation is already pending for this email")
            pending.status = "expired"

        days = get_app_settings().INVITATION_EXPIRE_DAYS
        invitation = StaffInvitation(
            restaurant_id=restaurant.id,
            email=email,
            role=payload.role,
            invited_by=invited_by,
            status="pending",
            token=secrets.token_urlsafe(32),
            expires_at=utcnow() + timedelta(days=days),
        )
        await self.staff.add(invitation)
        await self.staff.commit()
        logger.info("Invited %s as %s", email, payload.role)
        return invitation

    # PUBLIC_INTERFACE
    async def delete_invitation(self, restaurant_id: UUID, invitation_id: UUID) -> None:
        invitation = await self.staff.get_scoped(StaffInvitation, invitation_id, restaurant_id)
        if invitation is None:
            raise NotFoundError("Invitation not found")
        await self.staff.delete(invitation)
        await self.staff.commit()

    # PUBLIC_INTERFACE
    async def pending_for(self, user: User) -> List[StaffInvitation]:
        """Unexpired pending invitations addressed to the user's email."""
        return await self.staff.list_pending_for_email(user.email.lower(), now=utcnow())

    async def _load_invitation(self, *, invitation_id: Optional[UUID] = None, token: Optional[str] = None) -> StaffInvitation:
        invitation = None
        if invitation_id is not None:
            invitation = await self.staff.get_invitation(invitation_id)
        elif token:
            invitation = await self.staff.get_invitation_by_token(token)
        if invitation is None:
            raise NotFoundError("Invitation not found")
        return invitation

    async def _check_open(self, invitation: StaffInvitation, user: User) -> None:
        if invitation.email.lower() != user.email.lower():
            raise PermissionDeniedError("This invitation was sent to a different email address")
        if invitation.status != "pending":
            raise ConflictError(f"Invitation is already {invitation.status}")
        if as_utc(invitation.expires_at) <= utcnow():
            invitation.status = "expired"
            await self.staff.commit()
            raise DomainValidationError("Invitation has expired")

    # PUBLIC_INTERFACE
    async def accept_invitation(
        self, user: User, *, invitation_id: Optional[UUID] = None, token: Optional[str] = None
    ) -> StaffInvitation:
        """
        Accept an invitation by id or token.

        Creates the membership (or reactivates a removed one with the new role),
        grants the global role unless already held and marks the invitation accepted.
        """
        invitation = await self._load_invitation(invitation_id=invitation_id, token=token)
        await self._check_open(invitation, user)

        membership = await self.staff.get_membership(invitation.restaurant_id, user.id)
        if membership is None:
            await self.staff.add(
                RestaurantStaff(
                    restaurant_id=invitation.restaurant_id, user_id=user.id, role=invitation.role, is_active=True
                )
            )
        else:
            membership.role = invitation.role
            membership.is_active = True

        await self.security.grant_role(user, invitation.role)
        invitation.status = "accepted"
        invitation.accepted_at = utcnow()
        await self.staff.commit()
        logger.info("User %s joined restaurant %s as %s", user.id, invitation.restaurant_id, invitation.role)
        return invitation

    # PUBLIC_INTERFACE
    async def decline_invitation(self, user: User, invitation_id: UUID) -> StaffInvitation:
        invitation = await self._load_invitation(invitation_id=invitation_id)
        await self._check_open(invitation, user)
        invitation.status = "declined"
        await self.staff.commit()
        return invitation

    # Members

    async def _get_member(self, restaurant_id: UUID, membership_id: UUID) -> RestaurantStaff:
        membership = await self.staff.get_scoped(RestaurantStaff, membership_id, restaurant_id)
        if membership is None:
            raise NotFoundError("Staff member not found")
        return membership

    # PUBLIC_INTERFACE
    async def update_member(self, restaurant_id: UUID, membership_id: UUID, payload: StaffMemberUpdate) -> RestaurantStaff:
        """Change a member's role or active flag; a new role is also granted globally."""
        membership = await self._get_member(restaurant_id, membership_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "role" in changes and changes["role"] != membership.role:
            membership.role = changes["role"]
            user = await self.security.get_user_by_id(membership.user_id)
            if user is not None:
                await self.security.grant_role(user, membership.role)
        if "is_active" in changes:
            membership.is_active = changes["is_active"]
        await self.staff.commit()
        return membership

    # PUBLIC_INTERFACE
    async def remove_member(self, restaurant_id: UUID, membership_id: UUID) -> None:
        """Deactivate a membership; the row is kept for history."""
        membership = await self._get_member(restaurant_id, membership_id)
        membership.is_active = False
        await self.staff.commit()
        logger.info("Removed staff member %s", membership.user_id)

    # Notifications

    # PUBLIC_INTERFACE
    async def mark_notification_read(self, notification_id: UUID, user_id: UUID) -> StaffNotification:
        notification = await self.notifications.get_for_staff(notification_id, user_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        notification.is_read = True
        await self.notifications.commit()
        return notification
