"""Populate the reference data (carnival groups and categories).

Safe to run repeatedly: rows that already exist are reported as skipped.
"""
import logging
import sys
from typing import Dict, Iterable, Type

from sqlalchemy.orm import Session

from carnival.core.config import Settings
from carnival.core.errors import CarnivalError
from carnival.db.repository import Repository
from carnival.db.session import build_session_factory, check_connection, create_db_engine, sync_schema
from carnival.models.entities import CarnivalGroup, Category

logger = logging.getLogger(__name__)

CARNIVAL_GROUPS = [
    {
        "name": "Antwerp Devils",
        "city": "Antwerp",
        "province": "Antwerp",
        "country": "Belgium",
        "description": "Traditional carnival group from Antwerp, known for colorful costumes and elaborate floats.",
        "verified": True,
    },
    {
        "name": "Brussels Masqueraders",
        "city": "Brussels",
        "province": "Brussels-Capital",
        "country": "Belgium",
        "description": "Historic carnival society celebrating Brussels heritage with masks and traditional dances.",
        "verified": True,
    },
    {
        "name": "Ghent Carnival Society",
        "city": "Ghent",
        "province": "East Flanders",
        "country": "Belgium",
        "description": "Centuries-old carnival tradition in Ghent, featuring parades and community celebrations.",
        "verified": True,
    },
    {
        "name": "Aalst Carnivalists",
        "city": "Aalst",
        "province": "East Flanders",
        "country": "Belgium",
        "description": "UNESCO recognized carnival group famous for satirical floats and costumes.",
        "verified": True,
    },
    {
        "name": "Binche Gilles",
        "city": "Binche",
        "province": "Hainaut",
        "country": "Belgium",
        "description": "World-famous Gilles of Binche, UNESCO Intangible Cultural Heritage.",
        "verified": True,
    },
]

CATEGORIES = [
    {"name": "Costumes", "slug": "costumes", "description": "Complete carnival costumes, outfits, and traditional wear", "emoji": "👗"},
    {"name": "Masks", "slug": "masks", "description": "Carnival masks, face coverings, and character pieces", "emoji": "🎭"},
    {"name": "Accessories", "slug": "accessories", "description": "Carnival accessories, jewelry, hats, and decorative items", "emoji": "🎩"},
    {"name": "Decorations", "slug": "decorations", "description": "Carnival decorations, banners, lights, and party supplies", "emoji": "🎨"},
    {"name": "Instruments", "slug": "instruments", "description": "Musical instruments, drums, and performance equipment", "emoji": "🥁"},
    {"name": "Props", "slug": "props", "description": "Carnival props, float decorations, and performance pieces", "emoji": "🎪"},
]


def _seed(db: Session, model: Type, records: Iterable[dict], keys: tuple) -> Dict[str, int]:
    stats = {"created": 0, "skipped": 0, "failed": 0}
    repo = Repository(db, model)
    for record in records:
        where = {key: record[key] for key in keys}
        defaults = {key: value for key, value in record.items() if key not in keys}
        try:
            row, created = repo.find_or_create(defaults=defaults, **where)
        except CarnivalError as exc:
            logger.error("Error creating %s %s: %s", model.__tablename__, record["name"], exc.message)
            stats["failed"] += 1
            continue
        if created:
            logger.info("Created %s: %s", model.__tablename__, row.name)
            stats["created"] += 1
        else:
            logger.info("%s already exists: %s", model.__tablename__, row.name)
            stats["skipped"] += 1
    return stats


def seed_database(db: Session) -> dict:
    return {
        "carnivalGroups": _seed(db, CarnivalGroup, CARNIVAL_GROUPS, ("name", "city")),
        "categories": _seed(db, Category, CATEGORIES, ("slug",)),
    }


def main() -> int:
    config = Settings()
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    engine = create_db_engine(config)
    try:
        check_connection(engine)
        sync_schema(engine)
        db = build_session_factory(engine)()
        try:
            stats = seed_database(db)
        finally:
            db.close()
    except CarnivalError as exc:
        logger.error("Seeding failed: %s", exc.message)
        return 1
    finally:
        engine.dispose()

    for name, counts in stats.items():
        logger.info(
            "%s: %d created, %d skipped, %d failed",
            name, counts["created"], counts["skipped"], counts["failed"],
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
