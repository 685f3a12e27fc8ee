from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.deps import MANAGER, STAFF, get_restaurant_id, get_restaurant_session, require_roles
from tableside.db.models.inventory import InventoryItem
from tableside.db.models.menu import Category, MenuItem, MenuItemIngredient
from tableside.repositories.menu import CategoryRepository, MenuItemRepository
from tableside.schemas.common import MessageResponse
from tableside.schemas.menu import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    IngredientLinkCreate,
    IngredientLinkRead,
    MenuItemCreate,
    MenuItemRead,
    MenuItemUpdate,
    ReorderRequest,
)

router = APIRouter(prefix="/menu", tags=["Menu"])


async def _get_category(repo: CategoryRepository, restaurant_id: UUID, category_id: UUID) -> Category:
    category = await repo.get_scoped(Category, category_id, restaurant_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


async def _get_item(repo: MenuItemRepository, restaurant_id: UUID, item_id: UUID) -> MenuItem:
    item = await repo.get_scoped(MenuItem, item_id, restaurant_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return item


async def _check_category(session: AsyncSession, restaurant_id: UUID, category_id: Optional[UUID]) -> None:
    if category_id is not None:
        await _get_category(CategoryRepository(session), restaurant_id, category_id)


def _ingredient_read(link: MenuItemIngredient, inventory_item: Optional[InventoryItem]) -> IngredientLinkRead:
    return IngredientLinkRead(
        id=link.id,
        menu_item_id=link.menu_item_id,
        inventory_item_id=link.inventory_item_id,
        inventory_item_name=inventory_item.name if inventory_item else None,
        unit=inventory_item.unit if inventory_item else None,
        quantity_required=link.quantity_required,
    )


# Categories

# PUBLIC_INTERFACE
@router.get(
    "/categories",
    response_model=List[CategoryRead],
    summary="List categories",
    description="Menu categories ordered by sort_order.",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def list_categories(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> List[CategoryRead]:
    rows = await CategoryRepository(session).list_categories(restaurant_id)
    return [CategoryRead.model_validate(c) for c in rows]


# PUBLIC_INTERFACE
@router.post(
    "/categories",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def create_category(
    payload: CategoryCreate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> CategoryRead:
    repo = CategoryRepository(session)
    category = Category(restaurant_id=restaurant_id, **payload.model_dump())
    await repo.add(category)
    await repo.commit()
    return CategoryRead.model_validate(category)


# PUBLIC_INTERFACE
@router.patch(
    "/categories/{category_id}",
    response_model=CategoryRead,
    summary="Update category",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def update_category(
    category_id: UUID,
    payload: CategoryUpdate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> CategoryRead:
    repo = CategoryRepository(session)
    category = await _get_category(repo, restaurant_id, category_id)
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(category, field, value)
    await repo.commit()
    return CategoryRead.model_validate(category)


# PUBLIC_INTERFACE
@router.delete(
    "/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete category",
    description="Items in the category become uncategorized.",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def delete_category(
    category_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> Response:
    repo = CategoryRepository(session)
    category = await _get_category(repo, restaurant_id, category_id)
    for item in await MenuItemRepository(session).list_items(restaurant_id, category_id=category.id):
        item.category_id = None
    await repo.delete(category)
    await repo.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Menu items

# PUBLIC_INTERFACE
@router.get(
    "/items",
    response_model=List[MenuItemRead],
    summary="List menu items",
    description="Menu items ordered by sort_order, optionally filtered by category.",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def list_menu_items(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    category_id: Optional[UUID] = Query(None, description="Filter by category"),
    available_only: bool = Query(False),
) -> List[MenuItemRead]:
    rows = await MenuItemRepository(session).list_items(
        restaurant_id, category_id=category_id, available_only=available_only
    )
    return [MenuItemRead.model_validate(m) for m in rows]


# PUBLIC_INTERFACE
@router.post(
    "/items",
    response_model=MenuItemRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create menu item",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def create_menu_item(
    payload: MenuItemCreate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> MenuItemRead:
    await _check_category(session, restaurant_id, payload.category_id)
    repo = MenuItemRepository(session)
    item = MenuItem(restaurant_id=restaurant_id, **payload.model_dump())
    await repo.add(item)
    await repo.commit()
    return MenuItemRead.model_validate(item)


# PUBLIC_INTERFACE
@router.put(
    "/items/reorder",
    response_model=MessageResponse,
    summary="Reorder menu items",
    description="Bulk update of sort_order values.",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def reorder_menu_items(
    payload: ReorderRequest,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> MessageResponse:
    repo = MenuItemRepository(session)
    touched = await repo.reorder(restaurant_id, [(p.id, p.sort_order) for p in payload.items])
    await repo.commit()
    return MessageResponse(message="Menu reordered", details={"updated": touched})


# PUBLIC_INTERFACE
@router.get(
    "/items/{item_id}",
    response_model=MenuItemRead,
    summary="Get menu item",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def get_menu_item(
    item_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> MenuItemRead:
    item = await _get_item(MenuItemRepository(session), restaurant_id, item_id)
    return MenuItemRead.model_validate(item)


# PUBLIC_INTERFACE
@router.patch(
    "/items/{item_id}",
    response_model=MenuItemRead,
    summary="Update menu item",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def update_menu_item(
    item_id: UUID,
    payload: MenuItemUpdate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> MenuItemRead:
    repo = MenuItemRepository(session)
    item = await _get_item(repo, restaurant_id, item_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("category_id") is not None:
        await _check_category(session, restaurant_id, changes["category_id"])
    for field, value in changes.items():
        # Only these may be cleared explicitly.
        if value is None and field not in ("category_id", "description", "image_url", "model_url"):
            continue
        setattr(item, field, value)
    await repo.commit()
    return MenuItemRead.model_validate(item)


# PUBLIC_INTERFACE
@router.delete(
    "/items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete menu item",
    description="Past orders keep their snapshotted name and price.",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def delete_menu_item(
    item_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> Response:
    repo = MenuItemRepository(session)
    item = await _get_item(repo, restaurant_id, item_id)
    await repo.delete(item)
    await repo.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Ingredients

# PUBLIC_INTERFACE
@router.get(
    "/items/{item_id}/ingredients",
    response_model=List[IngredientLinkRead],
    summary="List ingredients of a menu item",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def list_ingredients(
    item_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> List[IngredientLinkRead]:
    repo = MenuItemRepository(session)
    await _get_item(repo, restaurant_id, item_id)
    return [_ingredient_read(link, link.inventory_item) for link in await repo.list_ingredients(item_id)]


# PUBLIC_INTERFACE
@router.post(
    "/items/{item_id}/ingredients",
    response_model=IngredientLinkRead,
    status_code=status.HTTP_201_CREATED,
    summary="Link an ingredient",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def link_ingredient(
    item_id: UUID,
    payload: IngredientLinkCreate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> IngredientLinkRead:
    repo = MenuItemRepository(session)
    await _get_item(repo, restaurant_id, item_id)
    inventory_item = await repo.get_scoped(InventoryItem, payload.inventory_item_id, restaurant_id)
    if inventory_item is None:
        raise HTTPException(status_code=400, detail="Inventory item not found")
    if await repo.find_ingredient(item_id, payload.inventory_item_id) is not None:
        raise HTTPException(status_code=409, detail="Ingredient is already linked")

    link = MenuItemIngredient(
        menu_item_id=item_id,
        inventory_item_id=payload.inventory_item_id,
        quantity_required=payload.quantity_required,
    )
    await repo.add(link)
    await repo.commit()
    return _ingredient_read(link, inventory_item)


# PUBLIC_INTERFACE
@router.delete(
    "/items/{item_id}/ingredients/{ingredient_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unlink an ingredient",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def unlink_ingredient(
    item_id: UUID,
    ingredient_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> Response:
    repo = MenuItemRepository(session)
    await _get_item(repo, restaurant_id, item_id)
    link = await repo.get_ingredient(item_id, ingredient_id)
    if link is None:
        raise HTTPException(status_code=404, detail="Ingredient link not found")
    await repo.delete(link)
    await repo.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
