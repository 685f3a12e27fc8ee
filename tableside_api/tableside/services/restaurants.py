from __future__ import annotations

import logging
import re
import secrets
import unicodedata
from typing import Optional
from urllib.parse import urlencode
from uuid import UUID

from tableside.core.settings import get_app_settings
from tableside.db.models.restaurants import Restaurant
from tableside.db.models.security import AppRole, User
from tableside.repositories.restaurants import RestaurantRepository
from tableside.repositories.security import SecurityRepository
from tableside.schemas.restaurants import RestaurantCreate, RestaurantUpdate, ShareLink
from tableside.services.base import BaseService
from tableside.services.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def slugify(value: str) -> str:
    """Lower-case ASCII slug: 'Café Roma!' -> 'cafe-roma'."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug or "restaurant"


# PUBLIC_INTERFACE
def menu_url(slug: str, table_number: Optional[int] = None) -> str:
    """Customer-facing menu URL for a restaurant, optionally pinned to a table."""
    base = get_app_settings().PUBLIC_APP_URL.rstrip("/")
    url = f"{base}/r/{slug}"
    if table_number is not None:
        url = f"{url}?{urlencode({'t': table_number})}"
    return url


class RestaurantService(BaseService):
    """Restaurant lifecycle: creation with a unique slug and settings updates."""

    def __init__(self, session) -> None:
        super().__init__(session)
        self.repo = RestaurantRepository(session)
        self.security = SecurityRepository(session)

    async def _unique_slug(self, base: str, exclude_id: Optional[UUID] = None) -> str:
        candidate = base
        attempt = 1
        while await self.repo.slug_exists(candidate, exclude_id=exclude_id):
            attempt += 1
            candidate = f"{base}-{attempt}" if attempt < 10 else f"{base}-{secrets.token_hex(3)}"
        return candidate

    # PUBLIC_INTERFACE
    async def create_restaurant(self, owner: User, payload: RestaurantCreate) -> Restaurant:
        """
        Create a restaurant owned by `owner` and grant them the owner role.

        An explicit slug must be free; a derived one gets a numeric suffix on collision.
        Does not commit.
        """
        if payload.slug:
            if await self.repo.slug_exists(payload.slug):
                raise ConflictError("Slug is already taken")
            slug = payload.slug
        else:
            slug = await self._unique_slug(slugify(payload.name))

        restaurant = Restaurant(
            owner_id=owner.id,
            name=payload.name.strip(),
            slug=slug,
            description=payload.description,
            address=payload.address,
            phone=payload.phone,
        )
        await self.repo.add(restaurant)
        await self.security.grant_role(owner, AppRole.RESTAURANT_OWNER)
        await self.repo.flush()
        logger.info("Created restaurant %s (slug=%s) for user %s", restaurant.id, slug, owner.id)
        return restaurant

    # PUBLIC_INTERFACE
    async def update_restaurant(self, restaurant_id: UUID, payload: RestaurantUpdate) -> Restaurant:
        """Apply owner edits; a changed slug must stay unique."""
        restaurant = await self.repo.get(restaurant_id)
        if restaurant is None:
            raise NotFoundError("Restaurant not found")
        changes = payload.model_dump(exclude_unset=True)
        if "slug" in changes and changes["slug"] and changes["slug"] != restaurant.slug:
            if await self.repo.slug_exists(changes["slug"], exclude_id=restaurant.id):
                raise ConflictError("Slug is already taken")
        for field, value in changes.items():
            if field in ("name", "slug") and not value:
                continue
            setattr(restaurant, field, value)
        await self.repo.commit()
        return restaurant

    # PUBLIC_INTERFACE
    def share_link(self, restaurant: Restaurant, table_number: Optional[int] = None) -> ShareLink:
        """Build the shareable menu link."""
        return ShareLink(url=menu_url(restaurant.slug, table_number), slug=restaurant.slug, table_number=table_number)
