"""Fixtures for tests that run against a migrated SQLite file."""

import pytest

from invoicekit.config import get_settings
from invoicekit.core.entities import Client, User
from invoicekit.infrastructure.storage.sqlite import (
    SQLiteClientStore,
    SQLiteUserStore,
    close_pool,
)
from invoicekit.infrastructure.storage.sqlite.migrations.migrator import (
    initialize_database,
)


@pytest.fixture
async def db_path():
    path = get_settings().storage.db_path
    await initialize_database(path, create_backup_before=False)
    yield path
    await close_pool()


@pytest.fixture
async def user(db_path):
    return await SQLiteUserStore().create_user(
        User(email="owner@studionorth.test", name="Studio North")
    )


@pytest.fixture
async def client(user):
    return await SQLiteClientStore().create(
        Client(user_id=user.id, name="Ada Lovelace", email="ada@example.com")
    )
