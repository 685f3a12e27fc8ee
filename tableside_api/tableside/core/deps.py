from __future__ import annotations

import logging
from typing import AsyncGenerator, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.security import decode_token
from tableside.db.models.restaurants import Restaurant
from tableside.db.models.security import AppRole, User
from tableside.db.session import get_async_session, tenant_context
from tableside.repositories.restaurants import RestaurantRepository, StaffRepository
from tableside.repositories.security import SecurityRepository

logger = logging.getLogger(__name__)

# OAuth2 bearer (used by docs); login endpoint path referenced here
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Role groups accepted by restaurant-scoped endpoints. super_admin always passes.
OWNER = (AppRole.RESTAURANT_OWNER.value,)
MANAGER = (AppRole.RESTAURANT_OWNER.value, AppRole.SUPERVISOR.value)
STAFF = (AppRole.RESTAURANT_OWNER.value, AppRole.SUPERVISOR.value, AppRole.WAIT_STAFF.value)


# PUBLIC_INTERFACE
async def get_restaurant_id(
    x_restaurant_id: str | None = Header(default=None, alias="X-Restaurant-ID"),
) -> UUID:
    """
    Extract and validate the restaurant id from the X-Restaurant-ID header.

    Raises:
        HTTPException: 400 Bad Request if header missing or invalid UUID.
    Returns:
        UUID: restaurant identifier
    """
    if not x_restaurant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Restaurant-ID header is required.",
        )
    try:
        return UUID(x_restaurant_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Restaurant-ID header must be a valid UUID string.",
        )


# PUBLIC_INTERFACE
async def get_restaurant_session(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_async_session),
) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an AsyncSession with row-level security configured for the given restaurant.

    The Postgres GUC `app.restaurant_id` is applied to every transaction the
    session opens while the request is in flight.
    """
    async with tenant_context(session, restaurant_id):
        yield session


# PUBLIC_INTERFACE
async def get_session_no_tenant(
    session: AsyncSession = Depends(get_async_session),
) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an AsyncSession without restaurant context.

    Used by auth, public (slug based) and platform admin endpoints.
    """
    yield session


# PUBLIC_INTERFACE
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_async_session),
) -> User:
    """Resolve the current user from the Authorization bearer (access) token."""
    try:
        payload = decode_token(token)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user_id = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    try:
        user = await SecurityRepository(session).get_user_by_id(UUID(user_id))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


# PUBLIC_INTERFACE
async def get_current_active_user(user: User = Depends(get_current_user)) -> User:
    """Ensure user is active."""
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    return user


# PUBLIC_INTERFACE
async def get_current_restaurant(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    user: User = Depends(get_current_active_user),
) -> Restaurant:
    """Load the restaurant named by X-Restaurant-ID; deactivated ones are visible to super admins only."""
    restaurant = await RestaurantRepository(session).get(restaurant_id)
    if restaurant is None or (not restaurant.is_active and not is_super_admin(user)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")
    return restaurant


def is_super_admin(user: User) -> bool:
    return AppRole.SUPER_ADMIN.value in user.role_names


# PUBLIC_INTERFACE
async def effective_role(session: AsyncSession, user: User, restaurant: Restaurant) -> Optional[str]:
    """
    The user's role in a restaurant: super_admin, restaurant_owner, the active
    staff role, or None.
    """
    if is_super_admin(user):
        return AppRole.SUPER_ADMIN.value
    if restaurant.owner_id == user.id:
        return AppRole.RESTAURANT_OWNER.value
    membership = await StaffRepository(session).get_membership(restaurant.id, user.id)
    if membership is not None and membership.is_active:
        return membership.role
    return None


# PUBLIC_INTERFACE
def require_roles(*required: str):
    """
    Create a dependency that requires the current user to hold one of the given
    roles in the X-Restaurant-ID restaurant. Super admins always pass.

    The dependency returns the effective role.
    """

    async def _dep(
        user: User = Depends(get_current_active_user),
        restaurant: Restaurant = Depends(get_current_restaurant),
        session: AsyncSession = Depends(get_restaurant_session),
    ) -> str:
        role = await effective_role(session, user, restaurant)
        if role is None or (role != AppRole.SUPER_ADMIN.value and role not in required):
            logger.info("User %s denied (role=%s, required=%s)", user.id, role, ",".join(required))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return role

    return _dep


# PUBLIC_INTERFACE
async def require_super_admin(user: User = Depends(get_current_active_user)) -> User:
    """Platform administration guard."""
    if not is_super_admin(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super admin only")
    return user
