# app/forecast/services/prediction_cache.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from psycopg.types.json import Jsonb

from app.forecast.services.par_model import confidence_for, weekday_weights
from app.forecast.services.pg_client import fetch_all, get_pg_conn

logger = logging.getLogger(__name__)

UPSERT_SQL = """
    INSERT INTO dish_par_predictions
        (org_id, item_name, avg_qty_per_cover, total_historical_qty,
         total_historical_covers, confidence, day_of_week_weights, last_trained_at)
    VALUES
        (%s, %s, %s, %s, %s, %s, %s, %s)
    ON CONFLICT (org_id, item_name)
    DO UPDATE SET
        avg_qty_per_cover=EXCLUDED.avg_qty_per_cover,
        total_historical_qty=EXCLUDED.total_historical_qty,
        total_historical_covers=EXCLUDED.total_historical_covers,
        confidence=EXCLUDED.confidence,
        day_of_week_weights=EXCLUDED.day_of_week_weights,
        last_trained_at=EXCLUDED.last_trained_at
"""


def init_prediction_table():
    conn = get_pg_conn()
    try:
        with conn.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS dish_par_predictions (
                    org_id                   TEXT NOT NULL,
                    item_name                TEXT NOT NULL,
                    avg_qty_per_cover        NUMERIC,
                    total_historical_qty     NUMERIC,
                    total_historical_covers  NUMERIC,
                    confidence               VARCHAR(10),
                    day_of_week_weights      JSONB,
                    last_trained_at          TIMESTAMPTZ DEFAULT NOW(),
                    PRIMARY KEY (org_id, item_name)
                );
            """)
        conn.commit()
    finally:
        conn.close()


def build_cache_rows(org_id: str, stats: Dict[str, Dict[str, Any]], trained_at: datetime | None = None) -> List[Dict[str, Any]]:
    trained_at = trained_at or datetime.now(timezone.utc)
    rows = []
    for stat in stats.values():
        if stat["total_covers"] <= 0:
            continue
        rows.append({
            "org_id": org_id,
            "item_name": stat["item_name"],
            "avg_qty_per_cover": round(stat["total_qty"] / stat["total_covers"], 4),
            "total_historical_qty": stat["total_qty"],
            "total_historical_covers": stat["total_covers"],
            "confidence": confidence_for(stat["occurrences"]),
            "day_of_week_weights": weekday_weights(stat),
            "last_trained_at": trained_at,
        })
    return rows


def upsert_predictions(rows: List[Dict[str, Any]]) -> int:
    """Overwrite the cached prediction for each (org_id, item_name); nothing is merged."""
    if not rows:
        return 0

    params = [
        (
            r["org_id"],
            r["item_name"],
            r["avg_qty_per_cover"],
            r["total_historical_qty"],
            r["total_historical_covers"],
            r["confidence"],
            Jsonb(r["day_of_week_weights"]),
            r["last_trained_at"],
        )
        for r in rows
    ]

    conn = get_pg_conn()
    try:
        with conn.cursor() as cur:
            cur.executemany(UPSERT_SQL, params)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    logger.info("Upserted %d dish par predictions", len(rows))
    return len(rows)


def fetch_cached_predictions(org_id: str) -> List[Dict[str, Any]]:
    sql = """
        SELECT
            item_name,
            avg_qty_per_cover,
            total_historical_qty,
            total_historical_covers,
            confidence,
            day_of_week_weights,
            last_trained_at
        FROM dish_par_predictions
        WHERE org_id = %s
        ORDER BY item_name
    """
    return fetch_all(sql, (org_id,))
