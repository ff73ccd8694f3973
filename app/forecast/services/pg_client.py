# app/forecast/services/pg_client.py
from __future__ import annotations

from typing import Any, Dict, List, Sequence

import psycopg
from psycopg.rows import dict_row

from app.config import _require_env


def get_pg_conn() -> psycopg.Connection:
    # psycopg only accepts a plain postgresql:// scheme
    raw_conn_str = _require_env("DATABASE_URL").replace("+psycopg2", "").replace("+psycopg", "")
    return psycopg.connect(raw_conn_str, row_factory=dict_row)


def fetch_all(sql: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
    conn = get_pg_conn()
    try:
        with conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchall()
    finally:
        conn.close()
