#!/usr/bin/env python3
"""
Seed runner: loads the OPMC directory into the database.

Usage:
  # Development (local Postgres):
  ENVIRONMENT=development python migrations/seeds/seed.py

  # Production:
  ENVIRONMENT=production python migrations/seeds/seed.py

Seeds are idempotent, safe to re-run (INSERT ... ON CONFLICT DO NOTHING).
"""
import logging
import sys
from pathlib import Path

import psycopg2
from dotenv import load_dotenv
from sqlalchemy.engine import make_url

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Load .env before Settings is built
# ---------------------------------------------------------------------------
_repo_root = Path(__file__).resolve().parent.parent.parent
load_dotenv(dotenv_path=_repo_root / ".env", override=False)

from opmc_ops.core.config import get_settings  # noqa: E402

# (region, province, rtom)
OPMC_DIRECTORY = [
    ("METRO", "METRO 01", "R-HK"),
    ("METRO", "METRO 01", "R-KX"),
    ("METRO", "METRO 01", "R-MD"),
    ("METRO", "METRO 02", "R-HO"),
    ("METRO", "METRO 02", "R-ND"),
    ("METRO", "METRO 02", "R-RM"),
    ("REGION 01", "CP", "R-GP"),
    ("REGION 01", "CP", "R-HT"),
    ("REGION 01", "CP", "R-KY"),
    ("REGION 01", "CP", "R-MT"),
    ("REGION 01", "CP", "R-NW"),
    ("REGION 01", "NWP", "R-CW"),
    ("REGION 01", "NWP", "R-KG"),
    ("REGION 01", "NWP", "R-KLY"),
    ("REGION 01", "WPN", "R-GQ"),
    ("REGION 01", "WPN", "R-KI"),
    ("REGION 01", "WPN", "R-NG"),
    ("REGION 01", "WPN", "R-NTB"),
    ("REGION 01", "WPN", "R-WT"),
    ("REGION 02", "UVA", "R-BD"),
    ("REGION 02", "UVA", "R-BW"),
    ("REGION 02", "UVA", "R-KE"),
    ("REGION 02", "SAB", "R-MRG"),
    ("REGION 02", "SAB", "R-RN"),
    ("REGION 02", "SP", "R-GL"),
    ("REGION 02", "SP", "R-HB"),
    ("REGION 02", "SP", "R-EMB"),
    ("REGION 02", "SP", "R-MH"),
    ("REGION 02", "WPS", "R-AG"),
    ("REGION 02", "WPS", "R-HR"),
    ("REGION 02", "WPS", "R-KT"),
    ("REGION 02", "WPS", "R-PH"),
    ("REGION 03", "EP", "R-AP"),
    ("REGION 03", "EP", "R-BC"),
    ("REGION 03", "EP", "R-KL"),
    ("REGION 03", "EP", "R-PR"),
    ("REGION 03", "EP", "R-TC"),
    ("REGION 03", "NP", "R-AD"),
    ("REGION 03", "NP", "R-JA"),
    ("REGION 03", "NP", "R-KO"),
    ("REGION 03", "NP", "R-MB"),
    ("REGION 03", "NP", "R-VA"),
    ("REGION 03", "NP", "R-MLT"),
]

INSERT_OPMC = """
    INSERT INTO opmcs (rtom, name, region, province)
    VALUES (%s, %s, %s, %s)
    ON CONFLICT (rtom) DO NOTHING
"""


def _get_connection() -> psycopg2.extensions.connection:
    settings = get_settings()
    url = make_url(settings.database_url_sync)
    return psycopg2.connect(
        host=url.host,
        port=url.port,
        dbname=url.database,
        user=url.username,
        password=url.password,
        sslmode="prefer" if settings.is_development else "require",
    )


def run_seeds() -> None:
    conn = _get_connection()
    conn.autocommit = False
    cur = conn.cursor()

    try:
        logger.info("Seeding %d OPMCs", len(OPMC_DIRECTORY))
        cur.executemany(
            INSERT_OPMC,
            [(rtom, f"{rtom} OPMC", region, province) for region, province, rtom in OPMC_DIRECTORY],
        )
        conn.commit()
        logger.info("All seeds committed successfully.")
    except Exception:
        conn.rollback()
        logger.exception("Seed failed, transaction rolled back.")
        sys.exit(1)
    finally:
        cur.close()
        conn.close()


def verify() -> None:
    conn = _get_connection()
    cur = conn.cursor()

    try:
        cur.execute("SELECT rtom FROM opmcs")
        present = {row[0] for row in cur.fetchall()}
    finally:
        cur.close()
        conn.close()

    missing = sorted({rtom for _, _, rtom in OPMC_DIRECTORY} - present)
    if missing:
        logger.error("Verification failed, missing OPMCs: %s", ", ".join(missing))
        sys.exit(1)

    logger.info("Verification passed (%d OPMCs present).", len(present))


if __name__ == "__main__":
    logger.info("Environment: %s", get_settings().environment)
    logger.info("--- Running seeds ---")
    run_seeds()
    logger.info("--- Verifying OPMC directory ---")
    verify()
