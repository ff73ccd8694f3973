# app/forecast/services/feature_builder.py
import pandas as pd
from datetime import date
from typing import Any, Dict, Iterable, List

OBSERVATION_COLUMNS = ["sale_date", "item_name", "quantity"]


def to_dates(values: pd.Series) -> pd.Series:
    """Dates, datetimes or date strings -> datetime.date; unparsable -> NaT."""
    return pd.to_datetime(values, errors="coerce", format="mixed").dt.date


def sales_to_observations(pos_rows: List[Dict], imported_rows: List[Dict]) -> pd.DataFrame:
    """
    POS line items and imported rows are equivalent evidence: both are stacked
    into one frame without reconciliation.
    """
    rows = list(pos_rows) + list(imported_rows)
    if not rows:
        return pd.DataFrame(columns=OBSERVATION_COLUMNS)

    df = pd.DataFrame(rows)
    df["sale_date"] = to_dates(df["sale_date"])
    df["quantity"] = pd.to_numeric(df["quantity"], errors="coerce").fillna(0)
    df = df.dropna(subset=["sale_date", "item_name"])
    return df[OBSERVATION_COLUMNS].reset_index(drop=True)


def merge_history_covers(covers_by_date: Dict[date, int], imported_rows: Iterable[Dict]) -> Dict[date, int]:
    # an explicit covers figure on an imported row wins over reservations
    merged = dict(covers_by_date)
    df = pd.DataFrame(list(imported_rows))
    if df.empty or "covers" not in df.columns or "sale_date" not in df.columns:
        return merged

    df["sale_date"] = to_dates(df["sale_date"])
    df["covers"] = pd.to_numeric(df["covers"], errors="coerce")
    df = df[df["sale_date"].notna() & (df["covers"] > 0)]
    for sale_date, covers in zip(df["sale_date"], df["covers"]):
        merged[sale_date] = int(covers)
    return merged


def build_item_statistics(observations: pd.DataFrame, covers_by_date: Dict[date, int]) -> Dict[str, Dict[str, Any]]:
    """
    Fold observations into per-item totals and weekday buckets.

    Observations on a date with no covers carry no signal and are dropped.
    Each surviving observation adds its date's covers once to total_covers.

    Returns: {item_name: {item_name, total_qty, total_covers, occurrences,
                          dow: {weekday: {qty, count}}}}
    """
    if observations.empty:
        return {}

    df = observations.copy()
    df["covers"] = df["sale_date"].map(lambda d: covers_by_date.get(d, 0))
    df = df[df["covers"] > 0].copy()
    if df.empty:
        return {}

    # Monday == 0
    df["weekday"] = df["sale_date"].map(lambda d: d.weekday())

    totals = df.groupby("item_name", sort=True).agg(
        total_qty=("quantity", "sum"),
        total_covers=("covers", "sum"),
        occurrences=("quantity", "size"),
    )
    buckets = df.groupby(["item_name", "weekday"], sort=True).agg(
        qty=("quantity", "sum"),
        count=("quantity", "size"),
    )

    stats: Dict[str, Dict[str, Any]] = {}
    for item_name, row in totals.iterrows():
        stats[item_name] = {
            "item_name": item_name,
            "total_qty": float(row["total_qty"]),
            "total_covers": float(row["total_covers"]),
            "occurrences": int(row["occurrences"]),
            "dow": {},
        }
    for (item_name, weekday), row in buckets.iterrows():
        stats[item_name]["dow"][int(weekday)] = {
            "qty": float(row["qty"]),
            "count": int(row["count"]),
        }
    return stats
