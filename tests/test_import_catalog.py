import json
import pytest
import sys
from streamx.cli import import_catalog
from streamx.cli.import_catalog import run_delete, run_import, run_list
from streamx.database.catalog import CatalogManager
from streamx.database.models import Episode, Movie, Season, Series
from streamx.database.progress import ProgressStore

@pytest.mark.asyncio
async def test_import_writes_units_and_skips_bad_entries(tmp_path, capsys):
    source = tmp_path / "catalog.json"
    source.write_text(json.dumps([
        {"id": "m1", "title": "Night Drive", "type": "movie", "videoUrl": "https://cdn.example/m1.mp4"},
        {"id": "s", "title": "Harbor", "type": "series", "seasons": [
            {"id": "s1", "seasonNumber": 1, "episodes": [{"id": "e1", "title": "Pilot", "videoUrl": "e1.mp4"}]},
        ]},
        {"id": "x", "title": "Mystery", "type": "podcast"},
    ]), encoding="utf-8")
    db_path = str(tmp_path / "test_streamx.db")

    assert await run_import(str(source), db_path) == 0

    catalog = CatalogManager(db_path)
    units = await catalog.get_all()
    assert sorted(u.id for u in units) == ["m1", "s"]
    series = await catalog.get_content_unit("s")
    assert isinstance(series, Series)
    assert series.seasons[0].episodes[0].title == "Pilot"

    out = capsys.readouterr().out
    assert "Imported: 2" in out
    assert "Skipped:  1" in out

@pytest.mark.asyncio
async def test_dry_run_writes_nothing(tmp_path):
    source = tmp_path / "catalog.json"
    source.write_text(json.dumps({"id": "m1", "title": "Solo", "type": "movie", "videoUrl": "a.mp4"}), encoding="utf-8")
    db_path = tmp_path / "test_streamx.db"

    assert await run_import(str(source), str(db_path), dry_run=True) == 0
    assert not db_path.exists()

@pytest.mark.asyncio
async def test_missing_file(tmp_path):
    assert await run_import(str(tmp_path / "nope.json"), str(tmp_path / "db.sqlite")) == 1

async def seed(db_path):
    catalog = CatalogManager(db_path)
    await catalog.initialize()
    await catalog.add_content_unit(Movie(id="m1", title="Night Drive", video_url="m1.mp4"))
    await catalog.add_content_unit(Series(id="show", title="Harbor", seasons=[
        Season(id="s1", season_number=1, episodes=[
            Episode(id="e1", title="Pilot", video_url="e1.mp4"),
            Episode(id="e2", title="Tide", video_url="e2.mp4"),
        ]),
    ]))
    progress = ProgressStore(db_path)
    await progress.initialize()
    await progress.set("m1", 100)
    await progress.set("e1", 100)
    await progress.set("e2", 35)
    return catalog

@pytest.mark.asyncio
async def test_list_shows_badges_and_continue_watching(tmp_path, capsys):
    db_path = str(tmp_path / "test_streamx.db")
    await seed(db_path)

    assert await run_list(db_path) == 0

    out = capsys.readouterr().out
    assert "[x] m1" in out
    assert "Harbor (1/2 watched)" in out
    continue_watching = out.split("Continue watching:")[1]
    assert " 35%  Harbor S1: Tide" in continue_watching
    assert "Pilot" not in continue_watching

@pytest.mark.asyncio
async def test_delete_removes_unit(tmp_path, capsys):
    db_path = str(tmp_path / "test_streamx.db")
    catalog = await seed(db_path)

    assert await run_delete("m1", db_path) == 0
    assert await catalog.get_content_unit("m1") is None
    assert [u.id for u in await catalog.get_all()] == ["show"]

    assert await run_delete("m1", db_path) == 1
    assert "not in the catalog" in capsys.readouterr().out

def test_main_dispatches_list(tmp_path, monkeypatch, capsys):
    db_path = str(tmp_path / "test_streamx.db")
    monkeypatch.setattr(sys, "argv", ["streamx-import-catalog", "--list", "--db", db_path])
    assert import_catalog.main() == 0
    assert "(empty)" in capsys.readouterr().out

def test_main_rejects_unknown_flag(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["streamx-import-catalog", "--bogus"])
    assert import_catalog.main() == 1
    assert "Usage:" in capsys.readouterr().out
