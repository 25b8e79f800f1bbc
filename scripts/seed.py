import asyncio
import sys
import os

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import settings
from core.logger import setup_logging, logger
from db.session import Database
from models.user import UserRole
from services.user_service import UserService


async def seed(create_tables: bool = False):
    database = Database.from_settings(settings)
    try:
        if create_tables:
            print("Creating missing tables...")
            await database.create_all()

        accounts = [
            (settings.DEFAULT_ADMIN_USERNAME, settings.DEFAULT_ADMIN_PASSWORD, UserRole.admin),
            (settings.DEFAULT_USER_USERNAME, settings.DEFAULT_USER_PASSWORD, UserRole.user),
        ]
        async with database.sessionmaker() as session:
            service = UserService(session)
            for username, password, role in accounts:
                if await service.get_by_username(username):
                    print(f"Account '{username}' already exists, skipping.")
                    continue
                await service.create_user(username, password, role)
                print(f"Created {role.value} account '{username}'.")
        print("Seeding finished.")
    except Exception as e:
        logger.error("Seeding failed", error=str(e))
        raise
    finally:
        await database.dispose()


if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL)
    if os.name == 'nt':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(seed(create_tables="--create-tables" in sys.argv))
