# app/forecast/services/reservation_covers.py
from __future__ import annotations

from datetime import date
from typing import Dict

from app.forecast.services.pg_client import fetch_all

# Reservations that will actually be fed on the day being predicted
TARGET_STATUSES = ("CONFIRMED", "SEATED")
# Reservations that count as past covers
HISTORY_STATUSES = ("CONFIRMED", "SEATED", "COMPLETED")


def fetch_target_covers(org_id: str, target_date: date) -> int:
    sql = """
        SELECT COALESCE(SUM(r.party_size), 0) AS covers
        FROM res_reservations r
        WHERE r.org_id = %s
          AND r.date = %s
          AND UPPER(r.status::text) = ANY(%s)
    """
    rows = fetch_all(sql, (org_id, target_date, list(TARGET_STATUSES)))
    if not rows:
        return 0
    return int(rows[0]["covers"] or 0)


def fetch_covers_by_date(org_id: str, start_date: date, end_date: date) -> Dict[date, int]:
    sql = """
        SELECT
            r.date                           AS cover_date,
            COALESCE(SUM(r.party_size), 0)   AS covers
        FROM res_reservations r
        WHERE r.org_id = %s
          AND r.date BETWEEN %s AND %s
          AND UPPER(r.status::text) = ANY(%s)
        GROUP BY r.date
    """
    rows = fetch_all(sql, (org_id, start_date, end_date, list(HISTORY_STATUSES)))
    return {row["cover_date"]: int(row["covers"] or 0) for row in rows}
