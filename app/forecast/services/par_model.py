# app/forecast/services/par_model.py
import math
from typing import Any, Dict, List, Optional

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

MIN_WEEKDAY_OCCURRENCES = 3
HIGH_CONFIDENCE_MIN_POINTS = 90
MEDIUM_CONFIDENCE_MIN_POINTS = 30


def confidence_for(data_points: int) -> str:
    if data_points >= HIGH_CONFIDENCE_MIN_POINTS:
        return "high"
    if data_points >= MEDIUM_CONFIDENCE_MIN_POINTS:
        return "medium"
    return "low"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def weekday_weight(stat: Dict[str, Any], weekday: int) -> float:
    """
    Ratio of the item's mean quantity on `weekday` to its overall mean quantity.
    Falls back to 1.0 below MIN_WEEKDAY_OCCURRENCES samples for that weekday.
    """
    bucket = stat["dow"].get(weekday)
    if not bucket or bucket["count"] < MIN_WEEKDAY_OCCURRENCES:
        return 1.0

    occurrences = sum(b["count"] for b in stat["dow"].values())
    overall_mean = stat["total_qty"] / occurrences
    if overall_mean == 0:
        return 1.0
    return (bucket["qty"] / bucket["count"]) / overall_mean


def weekday_weights(stat: Dict[str, Any]) -> Dict[str, float]:
    return {name: round(weekday_weight(stat, i), 4) for i, name in enumerate(WEEKDAY_NAMES)}


def predict_item(stat: Dict[str, Any], covers: int, weekday: int) -> Optional[Dict[str, Any]]:
    if stat["total_covers"] <= 0:
        return None

    avg_per_cover = stat["total_qty"] / stat["total_covers"]
    dow_weight = weekday_weight(stat, weekday)
    predicted = round_half_up(avg_per_cover * covers * dow_weight)
    if predicted <= 0:
        return None

    data_points = sum(b["count"] for b in stat["dow"].values())
    return {
        "item_name": stat["item_name"],
        "predicted_qty": predicted,
        "avg_per_cover": round(avg_per_cover, 4),
        "dow_weight": round(dow_weight, 4),
        "confidence": confidence_for(data_points),
        "data_points": data_points,
    }


def predict_items(stats: Dict[str, Dict[str, Any]], covers: int, weekday: int) -> List[Dict[str, Any]]:
    predictions = []
    for stat in stats.values():
        p = predict_item(stat, covers, weekday)
        if p is not None:
            predictions.append(p)
    predictions.sort(key=lambda p: (-p["predicted_qty"], p["item_name"]))
    return predictions
