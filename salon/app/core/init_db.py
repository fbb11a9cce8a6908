"""
Database initialization script.

Creates the schema and seeds the configured admin user.
Run this to initialize a fresh database:

    python -m salon.app.core.init_db          # create tables, seed admin
    python -m salon.app.core.init_db --drop   # drop all tables
"""

import asyncio
import sys
from typing import Optional

from salon.app.core.config import Settings, get_settings
from salon.app.core.database import Database
from salon.app.services.auth_service import seed_admin


def _require_database(settings: Settings) -> Database:
    database = Database.from_settings(settings)
    if database is None:
        raise SystemExit("DATABASE_URL is not set")
    return database


async def init_database(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    database = _require_database(settings)
    try:
        print(f"📦 Creating tables at {database.engine.url.render_as_string(hide_password=True)}...")
        await database.create_all()
        async with database.session() as session:
            admin = await seed_admin(session, settings)
        if admin is not None:
            print(f"👤 Seeded admin {admin.username!r}")
        else:
            print("👤 Admin seed skipped (exists or ADMIN_PASSWORD unset)")
    finally:
        await database.dispose()
    print("✅ Database initialized successfully!")


async def drop_all_tables(settings: Optional[Settings] = None) -> None:
    """Drop all tables (use with caution!)."""
    database = _require_database(settings or get_settings())
    try:
        print("⚠️ Dropping all tables...")
        await database.drop_all()
    finally:
        await database.dispose()
    print("✅ All tables dropped.")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "--drop":
        print("⚠️ WARNING: This will drop all tables!")
        confirm = input("Type 'yes' to confirm: ")
        if confirm == "yes":
            asyncio.run(drop_all_tables())
        else:
            print("Aborted.")
    else:
        asyncio.run(init_database())
