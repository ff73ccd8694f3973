import base64
from datetime import date

import pandas as pd
import pytest

from app.errors import SalesImportError
from app.forecast.services import sales_import
from app.forecast.services.sales_import import (
    decode_csv,
    parse_sales_csv,
    import_sales_history,
    insert_sales_rows,
    _covers_or_none,
)


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def test_decode_csv_accepts_data_url():
    df = decode_csv("data:text/csv;base64," + _b64("date,item_name,quantity_sold\n2025-01-01,Burger,3\n"))
    assert list(df.columns) == ["date", "item_name", "quantity_sold"]
    assert len(df) == 1


def test_parse_sales_csv_filters_bad_rows():
    df = pd.DataFrame({
        "Date": ["2025-01-01", "2025-01-02", "nope", "2025-01-03", "2025-01-04"],
        " Item_Name ": ["Burger", "Chips", "Burger", "  ", "Burger"],
        "quantity_sold": ["3", "2.5", "1", "4", "0"],
        "covers": ["40", "", "10", "10", "10"],
    })

    out = parse_sales_csv(df)

    assert list(out["item_name"]) == ["Burger", "Chips"]
    assert list(out["sale_date"]) == [date(2025, 1, 1), date(2025, 1, 2)]
    assert list(out["quantity_sold"]) == [3.0, 2.5]
    assert out["covers"].iloc[0] == 40
    assert pd.isna(out["covers"].iloc[1])


def test_parse_sales_csv_accepts_aliases():
    df = pd.DataFrame({"sale_date": ["2025-01-01"], "item_name": ["Pie"], "quantity": ["2"]})
    out = parse_sales_csv(df)
    assert len(out) == 1
    assert out["quantity_sold"].iloc[0] == 2


def test_parse_sales_csv_missing_columns():
    with pytest.raises(SalesImportError) as e:
        parse_sales_csv(pd.DataFrame({"date": ["2025-01-01"], "item_name": ["Pie"]}))
    assert "quantity_sold" in str(e.value)


def test_import_sales_history(monkeypatch):
    inserted = {}

    def fake_insert(org_id, rows):
        inserted["org_id"] = org_id
        inserted["rows"] = rows
        return len(rows)

    monkeypatch.setattr("app.forecast.services.sales_import.insert_sales_rows", fake_insert)

    csv_text = (
        "date,item_name,quantity_sold,covers\n"
        "2025-01-03,Burger,4,60\n"
        "2025-01-01,Burger,3,55\n"
        "2025-01-02,Chips,6,\n"
    )
    result = import_sales_history("org-1", _b64(csv_text), "sales.csv")

    assert result == {
        "rows_imported": 3,
        "unique_items": 2,
        "date_range": {"start": "2025-01-01", "end": "2025-01-03"},
    }
    assert inserted["org_id"] == "org-1"


def test_import_sales_history_no_usable_rows(monkeypatch):
    monkeypatch.setattr(
        "app.forecast.services.sales_import.insert_sales_rows",
        lambda *a: pytest.fail("nothing should be inserted"),
    )
    with pytest.raises(SalesImportError):
        import_sales_history("org-1", _b64("date,item_name,quantity_sold\nbad,Burger,1\n"))


def test_parse_sales_csv_accepts_timestamps_and_other_date_formats():
    csv_text = (
        "date,item_name,quantity_sold\n"
        "2025-01-01 00:00:00,Pie,2\n"
        "01/02/2025,Pie,3\n"
        "2025-01-03T18:30:00,Pie,4\n"
    )
    out = parse_sales_csv(decode_csv(_b64(csv_text)))

    assert list(out["sale_date"]) == [date(2025, 1, 1), date(2025, 1, 2), date(2025, 1, 3)]
    assert list(out["quantity_sold"]) == [2, 3, 4]


def test_parse_sales_csv_two_quantity_aliases_uses_first():
    csv_text = "date,item_name,qty,quantity\n2025-01-01,Pie,2,9\n"

    out = parse_sales_csv(decode_csv(_b64(csv_text)))

    assert list(out.columns) == ["sale_date", "item_name", "quantity_sold", "covers"]
    assert out["quantity_sold"].iloc[0] == 2


def test_parse_sales_csv_canonical_column_beats_alias():
    df = pd.DataFrame({"date": ["2025-01-01"], "item_name": ["Pie"], "quantity_sold": ["5"], "qty": ["1"]})
    assert parse_sales_csv(df)["quantity_sold"].iloc[0] == 5


def test_parse_sales_csv_case_duplicate_columns():
    df = pd.DataFrame([["2025-01-01", "Pie", "1", "2"]], columns=["date", "item_name", "quantity_sold", "Quantity_Sold"])
    with pytest.raises(SalesImportError) as e:
        parse_sales_csv(df)
    assert "quantity_sold" in str(e.value)


def test_covers_or_none():
    assert _covers_or_none(float("nan")) is None
    assert _covers_or_none(None) is None
    assert _covers_or_none(0) is None
    assert _covers_or_none(-3) is None
    assert _covers_or_none(42.0) == 42


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def executemany(self, sql, params):
        if self.conn.fail:
            raise RuntimeError("write failed")
        self.conn.executed.append((sql, list(params)))


class FakeConn:
    def __init__(self, fail=False):
        self.fail = fail
        self.executed = []
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


def _parsed_rows():
    return parse_sales_csv(pd.DataFrame({
        "date": ["2025-01-01", "2025-01-02", "2025-01-03"],
        "item_name": ["Burger", "Chips", "Pie"],
        "quantity_sold": ["3", "2.5", "1"],
        "covers": ["40", "", "0"],
    }))


def test_insert_sales_rows_stores_missing_covers_as_null(monkeypatch):
    conn = FakeConn()
    monkeypatch.setattr("app.forecast.services.sales_import.get_pg_conn", lambda: conn)

    assert insert_sales_rows("org-1", _parsed_rows()) == 3

    sql, params = conn.executed[0]
    assert "INSERT INTO historical_sales" in sql
    assert params == [
        ("org-1", date(2025, 1, 1), "Burger", 3.0, 40),
        ("org-1", date(2025, 1, 2), "Chips", 2.5, None),
        ("org-1", date(2025, 1, 3), "Pie", 1.0, None),
    ]
    assert conn.committed and conn.closed
    assert not conn.rolled_back


def test_insert_sales_rows_rolls_back_on_failure(monkeypatch):
    conn = FakeConn(fail=True)
    monkeypatch.setattr("app.forecast.services.sales_import.get_pg_conn", lambda: conn)

    with pytest.raises(RuntimeError):
        insert_sales_rows("org-1", _parsed_rows())

    assert conn.rolled_back and conn.closed
    assert not conn.committed


def test_insert_sql_targets_history_table():
    assert "historical_sales" in sales_import.INSERT_SQL
