# app/forecast/routers/forecast_router.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.auth.supabase_auth import get_current_user
from app.errors import InvalidRequestError
from app.forecast.schemas.forecast import (
    DishParRequest, DishParResponse,
    CachedPredictionsResponse,
    SalesImportRequest, SalesImportResponse,
)
from app.forecast.services.dish_par_service import run_dish_par_prediction
from app.forecast.services.prediction_cache import fetch_cached_predictions
from app.forecast.services.sales_import import import_sales_history

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forecast", tags=["Forecast"])


def _require_org(org_id: Optional[str]) -> str:
    if not org_id or not org_id.strip():
        raise InvalidRequestError("orgId required")
    return org_id.strip()


@router.post("/dish-par", response_model=DishParResponse, response_model_exclude_none=True)
def predict_dish_par(req: DishParRequest, user: dict = Depends(get_current_user)):
    org_id = _require_org(req.orgId)
    try:
        return run_dish_par_prediction(
            org_id=org_id,
            target_date=req.target_date,
            cover_count=req.coverCount,
        )
    except Exception as e:
        logger.exception("predict-dish-par failed (org=%s, user=%s)", org_id, user.get("id"))
        return JSONResponse(status_code=500, content={"error": str(e) or "Prediction failed"})


@router.get("/dish-par/cached", response_model=CachedPredictionsResponse)
def cached_dish_par(orgId: Optional[str] = Query(None), user: dict = Depends(get_current_user)):
    org_id = _require_org(orgId)
    try:
        rows = fetch_cached_predictions(org_id)
    except Exception as e:
        logger.exception("cached dish par lookup failed (org=%s)", org_id)
        return JSONResponse(status_code=500, content={"error": str(e) or "Lookup failed"})
    return {"orgId": org_id, "predictions": rows}


@router.post("/sales-history/import", response_model=SalesImportResponse)
def import_sales(req: SalesImportRequest, user: dict = Depends(get_current_user)):
    org_id = _require_org(req.orgId)
    try:
        return import_sales_history(org_id, req.fileBase64, req.fileName)
    except InvalidRequestError:
        raise
    except Exception as e:
        logger.exception("sales history import failed (org=%s, file=%s)", org_id, req.fileName)
        return JSONResponse(status_code=500, content={"error": str(e) or "Import failed"})
