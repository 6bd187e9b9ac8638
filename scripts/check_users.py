import asyncio
from sqlalchemy import select
from homeease.db.database import AsyncSessionLocal
from homeease.db.db_models import User


async def check_users():
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).order_by(User.role, User.email))
        for u in result.scalars().all():
            print(f"{u.role:<9} {u.status:<10} {u.email} ({u.name})")


if __name__ == '__main__':
    asyncio.run(check_users())
