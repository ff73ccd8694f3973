# app/forecast/services/sales_import.py
from __future__ import annotations

import base64
import binascii
import io
import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from app.errors import SalesImportError
from app.forecast.services.feature_builder import to_dates
from app.forecast.services.pg_client import get_pg_conn

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["date", "item_name", "quantity_sold"]
COLUMN_ALIASES = {"sale_date": "date", "item": "item_name", "qty": "quantity_sold", "quantity": "quantity_sold"}

INSERT_SQL = """
    INSERT INTO historical_sales
        (org_id, sale_date, item_name, quantity_sold, covers)
    VALUES
        (%s, %s, %s, %s, %s)
"""


def decode_csv(file_base64: str) -> pd.DataFrame:
    # data URLs arrive as "data:text/csv;base64,<payload>"
    payload = file_base64.split(",", 1)[1] if file_base64.startswith("data:") else file_base64
    try:
        raw = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise SalesImportError("fileBase64 is not valid base64") from e

    try:
        return pd.read_csv(io.BytesIO(raw), dtype=str, skipinitialspace=True)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise SalesImportError(f"Could not read CSV: {e}") from e


def _resolve_aliases(columns: List[str]) -> Dict[str, str]:
    # first alias present wins; later aliases for the same target are ignored
    renames: Dict[str, str] = {}
    for alias, target in COLUMN_ALIASES.items():
        if alias in columns and target not in columns and target not in renames.values():
            renames[alias] = target
    return renames


def parse_sales_csv(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalise an uploaded CSV into sale_date, item_name, quantity_sold, covers.
    Rows with a bad date, a blank item name or a non-positive quantity are dropped.
    """
    df = df.rename(columns=lambda c: str(c).strip().lower())
    if df.columns.duplicated().any():
        dupes = sorted(set(df.columns[df.columns.duplicated()]))
        raise SalesImportError(f"CSV has duplicate column(s): {', '.join(dupes)}")
    df = df.rename(columns=_resolve_aliases(list(df.columns)))

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise SalesImportError(f"CSV is missing required column(s): {', '.join(missing)}")

    out = pd.DataFrame({
        "sale_date": to_dates(df["date"]),
        "item_name": df["item_name"].fillna("").astype(str).str.strip(),
        "quantity_sold": pd.to_numeric(df["quantity_sold"], errors="coerce"),
    })
    if "covers" in df.columns:
        out["covers"] = pd.to_numeric(df["covers"], errors="coerce")
    else:
        out["covers"] = float("nan")

    out = out[out["sale_date"].notna() & (out["item_name"] != "") & (out["quantity_sold"] > 0)]
    return out.reset_index(drop=True)


def _covers_or_none(value: Any) -> Optional[int]:
    if pd.isna(value) or value <= 0:
        return None
    return int(value)


def insert_sales_rows(org_id: str, rows: pd.DataFrame) -> int:
    params: List[tuple] = [
        (org_id, r.sale_date, r.item_name, float(r.quantity_sold), _covers_or_none(r.covers))
        for r in rows.itertuples(index=False)
    ]
    conn = get_pg_conn()
    try:
        with conn.cursor() as cur:
            cur.executemany(INSERT_SQL, params)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    return len(params)


def import_sales_history(org_id: str, file_base64: str, file_name: Optional[str] = None) -> Dict[str, Any]:
    rows = parse_sales_csv(decode_csv(file_base64))
    if rows.empty:
        raise SalesImportError("CSV contains no usable rows")

    imported = insert_sales_rows(org_id, rows)
    logger.info("[SalesImport] org=%s file=%s rows=%d", org_id, file_name, imported)

    return {
        "rows_imported": imported,
        "unique_items": int(rows["item_name"].nunique()),
        "date_range": {
            "start": min(rows["sale_date"]).isoformat(),
            "end": max(rows["sale_date"]).isoformat(),
        },
    }
