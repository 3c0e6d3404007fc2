import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finflow.models.transaction import Category

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = {
    "inflow": ["Salary", "Freelance", "Investments", "Gifts", "Other Income"],
    "outflow": ["Food", "Rent", "Transport", "Utilities", "Shopping", "Health", "Entertainment", "Misc"],
}


async def seed_default_categories(db: AsyncSession, user_id: int) -> int:
    res = await db.execute(select(Category.name, Category.type).where(Category.user_id == user_id))
    existing = {(r.name, r.type) for r in res.all()}

    to_add = [
        Category(user_id=user_id, name=name, type=flow_type)
        for flow_type, names in DEFAULT_CATEGORIES.items()
        for name in names
        if (name, flow_type) not in existing
    ]
    if to_add:
        db.add_all(to_add)
        await db.commit()
        logger.info(f"Seeded {len(to_add)} default categories for user {user_id}")
    return len(to_add)
