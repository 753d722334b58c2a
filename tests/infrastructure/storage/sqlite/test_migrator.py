"""Tests for the schema migrator."""

import shutil

import aiosqlite
import pytest

from invoicekit.infrastructure.storage.sqlite.migrations import (
    MigrationInfo,
    discover_migrations,
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)
from invoicekit.infrastructure.storage.sqlite.migrations.migrator import MIGRATIONS_DIR


@pytest.fixture
def db_file(tmp_path):
    return tmp_path / "migrate.db"


@pytest.fixture
def initial_only(tmp_path):
    """A migrations directory holding only the initial schema."""
    directory = tmp_path / "migrations"
    directory.mkdir()
    shutil.copy(MIGRATIONS_DIR / "v001_initial_schema.sql", directory)
    return directory


def test_discovers_migrations_in_order():
    versions = [m.version for m in discover_migrations()]

    assert versions[:3] == ["001", "002", "003"]
    assert versions == sorted(versions)


def test_rejects_badly_named_file(tmp_path):
    path = tmp_path / "initial.sql"
    path.write_text("SELECT 1;")

    with pytest.raises(ValueError):
        MigrationInfo.from_file(path)


async def test_fresh_database_gets_every_migration(db_file):
    results = await initialize_database(db_file, create_backup_before=False)

    assert [r.version for r in results] == ["001", "002", "003"]
    assert all(r.success for r in results)

    status = await get_migration_status(db_file)
    assert status["exists"] is True
    assert status["current_version"] == "003"
    assert status["pending_migrations"] == []


async def test_second_run_is_a_no_op(db_file):
    await initialize_database(db_file, create_backup_before=False)

    assert await initialize_database(db_file) == []
    assert list(db_file.parent.glob("*.backup_*")) == []


async def test_status_for_missing_database(db_file):
    status = await get_migration_status(db_file)

    assert status["exists"] is False
    assert status["pending_migrations"] == ["001", "002", "003"]


async def test_schema_checks_pass(db_file):
    await initialize_database(db_file, create_backup_before=False)

    checks = await verify_schema_integrity(db_file)

    assert {c["check"]: c["status"] for c in checks} == {
        "foreign_keys": "PASS",
        "integrity": "PASS",
        "required_tables": "PASS",
    }


async def test_unique_key_migration_collapses_duplicates(db_file, initial_only):
    await initialize_database(db_file, migrations_dir=initial_only)
    async with aiosqlite.connect(db_file) as conn:
        await conn.execute("INSERT INTO users (id, email) VALUES (1, 'a@b.test')")
        await conn.execute(
            "INSERT INTO invoices (id, user_id, invoice_number, status, issue_date) "
            "VALUES (1, 1, 'INV-1', 'sent', '2025-02-01')"
        )
        for created_at in ("2025-03-01 09:00:00", "2025-03-02 09:00:00"):
            await conn.execute(
                "INSERT INTO reminders (invoice_id, tier, status, created_at) "
                "VALUES (1, 'friendly', 'sent', ?)",
                (created_at,),
            )
        await conn.commit()

    results = await initialize_database(db_file)

    assert [r.version for r in results] == ["002", "003"]
    async with aiosqlite.connect(db_file) as conn:
        cursor = await conn.execute("SELECT id, created_at FROM reminders")
        rows = await cursor.fetchall()
        assert rows == [(2, "2025-03-02 09:00:00")]

        with pytest.raises(aiosqlite.IntegrityError):
            await conn.execute(
                "INSERT INTO reminders (invoice_id, tier, status) "
                "VALUES (1, 'friendly', 'sent')"
            )


async def test_edited_migration_stops_the_run(db_file, initial_only):
    await initialize_database(db_file, migrations_dir=initial_only)
    migration = initial_only / "v001_initial_schema.sql"
    migration.write_text(migration.read_text() + "\n-- edited\n")

    results = await initialize_database(
        db_file, create_backup_before=False, migrations_dir=initial_only
    )

    assert results == []


async def test_estimate_statuses_renamed_on_upgrade(db_file, initial_only):
    await initialize_database(db_file, migrations_dir=initial_only)
    async with aiosqlite.connect(db_file) as conn:
        await conn.execute("INSERT INTO users (id, email) VALUES (1, 'a@b.test')")
        for number, status in (("EST-1", "accepted"), ("EST-2", "declined"), ("EST-3", "sent")):
            await conn.execute(
                "INSERT INTO estimates (user_id, estimate_number, status) VALUES (1, ?, ?)",
                (number, status),
            )
        await conn.commit()

    await initialize_database(db_file, create_backup_before=False)

    async with aiosqlite.connect(db_file) as conn:
        cursor = await conn.execute(
            "SELECT estimate_number, status, converted_invoice_id FROM estimates ORDER BY id"
        )
        rows = await cursor.fetchall()
    assert rows == [("EST-1", "approved", None), ("EST-2", "rejected", None), ("EST-3", "sent", None)]
