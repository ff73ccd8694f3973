# app/forecast/services/sales_history.py
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List

from app.forecast.services.pg_client import fetch_all

POS_SALE_STATUSES = ("COMPLETED", "PAID")


def fetch_pos_sales(org_id: str, start_date: date, end_date: date) -> List[Dict[str, Any]]:
    """
    Line items of completed/paid POS orders, dated by the order's UTC creation date.
    Returns: [{sale_date, item_name, quantity}, ...]
    """
    sql = """
        SELECT
            (o.created_at AT TIME ZONE 'UTC')::date AS sale_date,
            i.item_name                             AS item_name,
            i.quantity                              AS quantity
        FROM pos_orders o
        JOIN pos_order_items i
          ON i.order_id = o.id
        WHERE o.org_id = %s
          AND UPPER(o.status::text) = ANY(%s)
          AND (o.created_at AT TIME ZONE 'UTC')::date BETWEEN %s AND %s
        ORDER BY o.created_at
    """
    return fetch_all(sql, (org_id, list(POS_SALE_STATUSES), start_date, end_date))


def fetch_imported_sales(org_id: str, start_date: date, end_date: date) -> List[Dict[str, Any]]:
    """
    Rows loaded through the sales-history CSV importer.
    Returns: [{sale_date, item_name, quantity, covers}, ...]
    """
    sql = """
        SELECT
            h.sale_date      AS sale_date,
            h.item_name      AS item_name,
            h.quantity_sold  AS quantity,
            h.covers         AS covers
        FROM historical_sales h
        WHERE h.org_id = %s
          AND h.sale_date BETWEEN %s AND %s
        ORDER BY h.sale_date
    """
    return fetch_all(sql, (org_id, start_date, end_date))
