"""
Tests for the sqlite preference store.
"""
import pytest

from database import PreferenceStore, get_preference, init_db, set_preference
from errors import PersistenceError


def test_set_and_overwrite(tmp_path):
    db_path = tmp_path / "prefs.db"
    init_db(db_path)

    assert get_preference("userPostcode", db_path) is None
    set_preference("userPostcode", "SW1A 1AA", db_path)
    set_preference("userPostcode", "M1 1AE", db_path)

    assert get_preference("userPostcode", db_path) == "M1 1AE"


@pytest.mark.asyncio
async def test_store_round_trip(tmp_path):
    store = PreferenceStore(tmp_path / "prefs.db")

    assert await store.get("userPostcode") is None
    await store.set("userPostcode", "SW1A 1AA")
    assert await store.get("userPostcode") == "SW1A 1AA"


@pytest.mark.asyncio
async def test_unusable_path_raises_persistence_error(tmp_path):
    store = PreferenceStore(tmp_path / "missing-dir" / "prefs.db")

    with pytest.raises(PersistenceError):
        await store.set("userPostcode", "SW1A 1AA")
    with pytest.raises(PersistenceError):
        await store.get("userPostcode")
