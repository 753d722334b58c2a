"""Pytest configuration and shared fixtures."""

from collections.abc import Generator
from pathlib import Path

import pytest

from invoicekit.config import reset_settings
from invoicekit.core.entities import BusinessProfile, Invoice
from tests.factories import make_invoice


@pytest.fixture(autouse=True)
def isolated_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Point settings at a per-test data dir and drop the cached instance."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("EMAIL_RETRY_DELAY", "0")
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def sample_invoice() -> Invoice:
    return make_invoice()


@pytest.fixture
def sample_profile() -> BusinessProfile:
    return BusinessProfile(
        user_id=1,
        business_name="Studio North",
        email="billing@studionorth.test",
        phone="+1 555 0100",
    )
