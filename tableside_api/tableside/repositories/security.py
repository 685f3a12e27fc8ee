from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select

from tableside.db.models.security import AppRole, User, UserRole
from .base import BaseRepository


class SecurityRepository(BaseRepository):
    """Repository for platform users and their global role grants."""

    # Users
    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email.strip().lower())
        return await self.scalar_one_or_none(stmt)

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        return await self.scalar_one_or_none(stmt)

    async def count_users(self) -> int:
        result = await self.execute(select(func.count(User.id)))
        return int(result.scalar_one())

    async def create_user(
        self,
        *,
        email: str,
        full_name: Optional[str],
        hashed_password: str,
        is_active: bool = True,
    ) -> User:
        user = User(
            email=email.strip().lower(),
            full_name=full_name,
            hashed_password=hashed_password,
            is_active=is_active,
            roles=[],
        )
        await self.add(user)
        await self.flush()
        return user

    # Roles
    async def list_role_names(self, user_id: UUID) -> List[str]:
        stmt = select(UserRole.role).where(UserRole.user_id == user_id).order_by(UserRole.role)
        return list(await self.scalars(stmt))

    async def has_role(self, user_id: UUID, role: AppRole | str) -> bool:
        value = role.value if isinstance(role, AppRole) else role
        stmt = select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == value)
        return (await self.scalar_one_or_none(stmt)) is not None

    async def grant_role(self, user: User, role: AppRole | str) -> bool:
        """Grant a global role; returns False when the user already had it."""
        value = role.value if isinstance(role, AppRole) else role
        if any(r.role == value for r in user.roles):
            return False
        user.roles.append(UserRole(role=value))
        await self.flush()
        return True

    async def any_user_with_role(self, role: AppRole | str) -> bool:
        value = role.value if isinstance(role, AppRole) else role
        stmt = select(func.count(UserRole.id)).where(UserRole.role == value)
        result = await self.execute(stmt)
        return int(result.scalar_one()) > 0
