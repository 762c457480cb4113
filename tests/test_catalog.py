import aiosqlite
import pytest
import pytest_asyncio
from streamx.database.catalog import CatalogManager
from streamx.database.models import Episode, Movie, Season, Series, content_unit_from_dict
from streamx.player.session import WatchSession
from fakes import FakePrimitive, ManualScheduler, MemoryProgress

@pytest_asyncio.fixture
async def catalog(tmp_path):
    manager = CatalogManager(str(tmp_path / "test_streamx.db"))
    await manager.initialize()
    yield manager

@pytest.mark.asyncio
async def test_movie_round_trip(catalog):
    movie = Movie(id="m1", title="Night Drive", video_url="https://cdn.example/m1.mp4", year=2021, rating=7.5)
    await catalog.add_content_unit(movie)

    loaded = await catalog.get_content_unit("m1")
    assert isinstance(loaded, Movie)
    assert loaded.video_url == "https://cdn.example/m1.mp4"
    assert loaded.year == 2021
    assert loaded.type == "movie"

@pytest.mark.asyncio
async def test_series_keeps_seasons(catalog):
    series = Series(id="s", title="Harbor", seasons=[
        Season(id="s1", season_number=1, episodes=[
            Episode(id="e1", title="Pilot", video_url="https://cdn.example/e1.mp4", duration="45m"),
            Episode(id="e2", title="Tide", video_url="https://cdn.example/e2.mp4", order=2),
        ]),
        Season(id="s2", season_number=2, episodes=[]),
    ])
    await catalog.add_content_unit(series)

    loaded = await catalog.get_content_unit("s")
    assert isinstance(loaded, Series)
    assert [s.id for s in loaded.seasons] == ["s1", "s2"]
    assert loaded.seasons[0].episodes[0].duration == "45m"
    assert loaded.seasons[0].episodes[1].order == 2
    assert loaded.seasons[1].episodes == []

@pytest.mark.asyncio
async def test_add_is_upsert_and_delete(catalog):
    await catalog.add_content_unit(Movie(id="m1", title="Old", video_url="a"))
    await catalog.add_content_unit(Movie(id="m1", title="New", video_url="b"))
    all_units = await catalog.get_all()
    assert len(all_units) == 1
    assert all_units[0].title == "New"

    await catalog.delete_content_unit("m1")
    assert await catalog.get_content_unit("m1") is None

@pytest.mark.asyncio
async def test_missing_unit_is_none(catalog):
    assert await catalog.get_content_unit("nope") is None

def test_from_dict_accepts_camel_case_and_sorts_seasons():
    unit = content_unit_from_dict({
        "id": 7,
        "title": "Harbor",
        "type": "series",
        "thumbnailUrl": "https://img.example/7.jpg",
        "seasons": [
            {"id": "b", "seasonNumber": 2, "episodes": [{"id": "e3", "title": "C", "videoUrl": "c.mp4"}]},
            {"id": "a", "seasonNumber": 1, "episodes": [{"id": "e1", "title": "A", "videoUrl": "a.mp4"}]},
        ],
    })
    assert unit.id == "7"
    assert unit.thumbnail_url == "https://img.example/7.jpg"
    assert [s.season_number for s in unit.seasons] == [1, 2]
    assert unit.seasons[0].episodes[0].video_url == "a.mp4"

def test_from_dict_rejects_unknown_type():
    with pytest.raises(ValueError):
        content_unit_from_dict({"id": "x", "title": "X", "type": "podcast"})

async def insert_raw(db_path, content_id, type_, seasons):
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            "INSERT INTO media (id, title, type, video_url, seasons) VALUES (?, ?, ?, ?, ?)",
            (content_id, "Broken", type_, "", seasons)
        )
        await db.commit()

@pytest.mark.asyncio
async def test_corrupt_row_reads_as_missing(catalog):
    await insert_raw(catalog.db_path, "bad-json", "series", "{not json")
    await insert_raw(catalog.db_path, "bad-type", "podcast", "[]")
    await insert_raw(catalog.db_path, "bad-episode", "series",
                     '[{"id": "s1", "seasonNumber": 1, "episodes": [{"title": "no id"}]}]')

    assert await catalog.get_content_unit("bad-json") is None
    assert await catalog.get_content_unit("bad-type") is None
    assert await catalog.get_content_unit("bad-episode") is None

@pytest.mark.asyncio
async def test_mounting_corrupt_row_navigates_away(catalog):
    await insert_raw(catalog.db_path, "bad-json", "series", "{not json")
    primitive = FakePrimitive()
    session = WatchSession(catalog, MemoryProgress(), primitive, scheduler=ManualScheduler())
    left = []
    session.on_navigate_away(lambda: left.append(True))

    assert await session.mount("bad-json") is None
    assert left == [True]
    assert primitive.loaded == []
