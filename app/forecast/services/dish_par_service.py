import logging
from datetime import date
from typing import Any, Dict, Optional

from dateutil.relativedelta import relativedelta

from app.forecast.services.sales_history import fetch_pos_sales, fetch_imported_sales
from app.forecast.services.reservation_covers import fetch_target_covers, fetch_covers_by_date
from app.forecast.services.feature_builder import (
    sales_to_observations, merge_history_covers, build_item_statistics
)
from app.forecast.services.par_model import predict_items, WEEKDAY_NAMES
from app.forecast.services.prediction_cache import build_cache_rows, upsert_predictions

logger = logging.getLogger(__name__)

HISTORY_WINDOW_DAYS = 365
NO_COVERS_MESSAGE = "No covers for this date"


def _today() -> date:
    return date.today()


def run_dish_par_prediction(
        org_id: str,
        target_date: Optional[date] = None,
        cover_count: Optional[int] = None,
) -> Dict[str, Any]:
    today = _today()
    target_date = target_date or today

    # 1) covers for the service being predicted
    covers = cover_count if cover_count is not None else fetch_target_covers(org_id, target_date)
    if covers <= 0:
        logger.info("[DishPar] org=%s date=%s: no covers, skipping", org_id, target_date)
        return {"predictions": [], "covers": 0, "message": NO_COVERS_MESSAGE}

    # 2) a year of sales evidence
    history_start = today - relativedelta(days=HISTORY_WINDOW_DAYS)
    pos_rows = fetch_pos_sales(org_id, history_start, today)
    imported_rows = fetch_imported_sales(org_id, history_start, today)
    logger.info(
        "[DishPar] org=%s window=%s~%s pos=%d imported=%d",
        org_id, history_start, today, len(pos_rows), len(imported_rows)
    )

    # 3) covers per historical day
    covers_by_date = fetch_covers_by_date(org_id, history_start, today)
    covers_by_date = merge_history_covers(covers_by_date, imported_rows)

    # 4) fold
    observations = sales_to_observations(pos_rows, imported_rows)
    stats = build_item_statistics(observations, covers_by_date)

    # 5) predict
    weekday = target_date.weekday()
    predictions = predict_items(stats, covers, weekday)

    # 6) persist trained rates
    upsert_predictions(build_cache_rows(org_id, stats))

    return {
        "predictions": predictions,
        "covers": covers,
        "date": target_date.isoformat(),
        "day": WEEKDAY_NAMES[weekday],
    }
