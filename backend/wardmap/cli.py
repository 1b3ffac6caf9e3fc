"""
wardmap-import — load ward boundaries from a GeoJSON URL into PostGIS.

    wardmap-import https://example.org/wards.geojson --municipality-id JHB
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from wardmap.config import get_settings
from wardmap.errors import WardmapError
from wardmap.models.database import engine, init_models, session_scope
from wardmap.services.importer import ImportResult, import_from_url
from wardmap.services.ward_store import WardRepository

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="wardmap-import",
        description="Import ward boundaries from a GeoJSON FeatureCollection URL.",
    )
    parser.add_argument("url", help="URL of the GeoJSON FeatureCollection")
    parser.add_argument("--municipality-id", default=None, help="Municipality stamped on every ward")
    parser.add_argument(
        "--tolerance",
        type=float,
        default=settings.import_tolerance,
        help="Decimation step as a fraction of ring length (default: %(default)s)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=settings.import_batch_size,
        help="Wards per upsert batch (default: %(default)s)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


async def run_import(args: argparse.Namespace) -> ImportResult:
    await init_models()
    try:
        async with session_scope() as session:
            return await import_from_url(
                args.url,
                WardRepository(session),
                municipality_id=args.municipality_id,
                tolerance=args.tolerance,
                batch_size=args.batch_size,
            )
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        result = asyncio.run(run_import(args))
    except (WardmapError, SQLAlchemyError, OSError) as exc:
        logger.error("Import failed: %s", exc)
        return 1

    print(f"Imported {result.imported_count} of {result.total_features} features")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
