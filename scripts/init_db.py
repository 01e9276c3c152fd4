#!/usr/bin/env python3
"""Create the KaziConnect tables and enum types (idempotent)."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os

import asyncpg  # type: ignore[import-untyped]

from kaziconnect.services.schema import TABLES_BY_DEPENDENCY, apply_schema

logger = logging.getLogger("kaziconnect.init_db")


async def _init(database_url: str, *, reset: bool) -> None:
    conn = await asyncpg.connect(database_url)
    try:
        if reset:
            await conn.execute(f"drop table if exists {', '.join(TABLES_BY_DEPENDENCY)} cascade")
            logger.warning("dropped tables=%s", ",".join(TABLES_BY_DEPENDENCY))
        await apply_schema(conn)
    finally:
        await conn.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply the KaziConnect schema to a PostgreSQL database.")
    parser.add_argument(
        "--database-url",
        default=os.getenv("KC_DATABASE_URL") or os.getenv("DATABASE_URL"),
        help="PostgreSQL DSN (defaults to KC_DATABASE_URL, then DATABASE_URL)",
    )
    parser.add_argument("--reset", action="store_true", help="Drop existing tables before creating them")
    args = parser.parse_args()
    if not args.database_url:
        parser.error("a database URL is required (--database-url or KC_DATABASE_URL)")

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    asyncio.run(_init(args.database_url, reset=args.reset))
    logger.info("schema applied")


if __name__ == "__main__":
    main()
