from sqlalchemy import func, select

from tableside.db import seed
from tableside.db.models import InventoryItem, MenuItem, MenuItemIngredient, Restaurant, RestaurantTable


async def test_seed_is_idempotent(session_maker, monkeypatch):
    async def fake_session():
        async with session_maker() as session:
            yield session

    monkeypatch.setattr(seed, "get_async_session", fake_session)
    await seed.seed_all()
    await seed.seed_all()

    async with session_maker() as session:
        restaurants = (await session.execute(select(Restaurant))).scalars().all()
        assert [r.slug for r in restaurants] == [seed.DEMO_SLUG]
        assert restaurants[0].bank_account_number == "000123456789"

        async def count(model):
            return (await session.execute(select(func.count()).select_from(model))).scalar_one()

        assert await count(MenuItem) == sum(len(dishes) for dishes in seed.MENU.values())
        assert await count(RestaurantTable) == 6
        assert await count(InventoryItem) == len(seed.INVENTORY)
        assert await count(MenuItemIngredient) == sum(len(needs) for needs in seed.INGREDIENTS.values())
