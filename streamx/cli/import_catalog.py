import asyncio
import json
import sys
from pathlib import Path
from ..config import DB_PATH
from ..database.catalog import CatalogManager
from ..database.models import Badge, Movie, content_unit_from_dict, progress_badge
from ..database.progress import ProgressStore
from ..utils.logger import get_logger

logger = get_logger(__name__)

USAGE = """Usage:
  streamx-import-catalog <catalog.json> [--db PATH] [--dry-run]
  streamx-import-catalog --list [--db PATH]
  streamx-import-catalog --delete <content_id> [--db PATH]"""

BADGE_MARKS = {
    Badge.NONE: "   ",
    Badge.IN_PROGRESS: "[~]",
    Badge.WATCHED: "[x]",
}

async def run_import(json_path: str, db_path: str = str(DB_PATH), dry_run: bool = False) -> int:
    source = Path(json_path)
    if not source.exists():
        print(f"Error: Catalog file '{json_path}' does not exist.")
        return 1

    try:
        with open(source, encoding="utf-8") as f:
            entries = json.load(f)
    except json.JSONDecodeError as e:
        print(f"Error: '{json_path}' is not valid JSON ({e}).")
        return 1

    if isinstance(entries, dict):
        entries = [entries]

    print(f"\nImporting catalog from: {json_path}")
    if dry_run:
        print("[DRY RUN] Nothing will be written.")
    print("-" * 60)

    units = []
    skipped = 0
    for entry in entries:
        try:
            units.append(content_unit_from_dict(entry))
        except (KeyError, ValueError, TypeError) as e:
            skipped += 1
            logger.warning(f"Skipping catalog entry {entry.get('id', '?') if isinstance(entry, dict) else entry!r}: {e}")

    for unit in units:
        if unit.type == "series":
            episodes = sum(len(s.episodes) for s in unit.seasons)
            print(f"  - [series] {unit.title} ({len(unit.seasons)} seasons, {episodes} episodes)")
        else:
            print(f"  - [movie]  {unit.title}")

    if not dry_run and units:
        catalog = CatalogManager(db_path)
        await catalog.initialize()
        await ProgressStore(db_path).initialize()
        for unit in units:
            await catalog.add_content_unit(unit)

    print("\n" + "=" * 60)
    print(f"Summary:")
    print(f"  Imported: {len(units)}")
    print(f"  Skipped:  {skipped}")
    print("=" * 60 + "\n")
    return 0

async def run_list(db_path: str = str(DB_PATH)) -> int:
    """Prints the catalog with watched badges, then the continue-watching list."""
    catalog = CatalogManager(db_path)
    progress = ProgressStore(db_path)
    await catalog.initialize()
    await progress.initialize()

    units = await catalog.get_all()
    percents = await progress.all()
    titles = {}

    print(f"\nCatalog: {db_path}")
    print("-" * 60)
    if not units:
        print("  (empty)")
    for unit in units:
        if isinstance(unit, Movie):
            titles[unit.id] = unit.title
            mark = BADGE_MARKS[progress_badge(percents.get(unit.id, 0))]
            print(f"  {mark} {unit.id:<12} [movie]  {unit.title}")
            continue
        episodes = [e for s in unit.seasons for e in s.episodes]
        watched = sum(1 for e in episodes if percents.get(e.id, 0) >= 100)
        print(f"      {unit.id:<12} [series] {unit.title} ({watched}/{len(episodes)} watched)")
        for season in unit.seasons:
            for episode in season.episodes:
                titles[episode.id] = f"{unit.title} S{season.season_number}: {episode.title}"

    entries = await progress.in_progress()
    if entries:
        print("\nContinue watching:")
        for entry in entries:
            print(f"  {entry.percent:>3}%  {titles.get(entry.content_id, entry.content_id)}")
    print()
    return 0

async def run_delete(content_id: str, db_path: str = str(DB_PATH)) -> int:
    catalog = CatalogManager(db_path)
    await catalog.initialize()
    if not await catalog.delete_content_unit(content_id):
        print(f"Error: '{content_id}' is not in the catalog.")
        return 1
    logger.info(f"Deleted catalog entry {content_id}")
    print(f"Deleted: {content_id}")
    return 0

def main():
    args = sys.argv[1:]
    dry_run = False
    db_path = str(DB_PATH)

    if "--dry-run" in args:
        dry_run = True
        args.remove("--dry-run")

    if "--db" in args:
        idx = args.index("--db")
        if idx + 1 >= len(args):
            print(USAGE)
            return 1
        db_path = args[idx + 1]
        del args[idx:idx + 2]

    if args == ["--list"]:
        return asyncio.run(run_list(db_path))

    if len(args) == 2 and args[0] == "--delete":
        return asyncio.run(run_delete(args[1], db_path))

    if len(args) != 1 or args[0].startswith("--"):
        print(USAGE)
        return 1

    return asyncio.run(run_import(args[0], db_path, dry_run))

if __name__ == "__main__":
    sys.exit(main())
