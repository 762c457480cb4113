import asyncio
import math
import pytest
import pytest_asyncio
from streamx.database.models import Badge, progress_badge
from streamx.database.progress import ProgressStore

@pytest_asyncio.fixture
async def store(tmp_path):
    store = ProgressStore(str(tmp_path / "test_streamx.db"))
    assert await store.initialize()
    yield store

@pytest.mark.asyncio
async def test_unknown_id_reads_zero(store):
    assert await store.get("never-watched") == 0

@pytest.mark.asyncio
async def test_set_overwrites(store):
    await store.set("ep1", 40)
    await store.set("ep1", 25)
    assert await store.get("ep1") == 25

@pytest.mark.asyncio
async def test_set_clamps(store):
    await store.set("ep1", 150)
    assert await store.get("ep1") == 100
    await store.set("ep1", -20)
    assert await store.get("ep1") == 0

@pytest.mark.asyncio
async def test_non_finite_percent_is_ignored(store):
    await store.set("ep1", math.nan)
    assert await store.get("ep1") == 0
    await store.set("ep1", 40)
    await store.set("ep1", math.nan)
    await store.set("ep1", math.inf)
    await store.set("ep1", "half")
    assert await store.get("ep1") == 40

@pytest.mark.asyncio
async def test_all_and_in_progress(store):
    await store.set("done", 100)
    await store.set("older", 30)
    await asyncio.sleep(0.01)
    await store.set("newer", 60)
    await store.set("untouched", 0)

    assert await store.all() == {"done": 100, "older": 30, "newer": 60, "untouched": 0}

    entries = await store.in_progress()
    assert [e.content_id for e in entries] == ["newer", "older"]
    assert entries[0].percent == 60

@pytest.mark.asyncio
async def test_unavailable_storage_degrades(tmp_path):
    # a directory cannot be opened as a database file
    broken = ProgressStore(str(tmp_path))
    assert await broken.initialize() is False
    await broken.set("ep1", 50)
    assert await broken.get("ep1") == 0
    assert await broken.all() == {}
    assert await broken.in_progress() == []

@pytest.mark.parametrize("percent,badge", [
    (0, Badge.NONE),
    (1, Badge.IN_PROGRESS),
    (99, Badge.IN_PROGRESS),
    (100, Badge.WATCHED),
])
def test_progress_badge(percent, badge):
    assert progress_badge(percent) == badge
