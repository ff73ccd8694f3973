# app/forecast/schemas/forecast.py
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List, Dict


class DishParRequest(BaseModel):
    # checked in the router so a missing id is a 400, not a 422
    orgId: Optional[str] = Field(None, description="Organisation id")
    target_date: Optional[date] = Field(None, alias="date", description="Service date (YYYY-MM-DD), defaults to today")
    coverCount: Optional[int] = Field(None, ge=0, description="Projected covers, overrides reservations")


class DishPrediction(BaseModel):
    item_name: str
    predicted_qty: int
    avg_per_cover: float
    dow_weight: float
    confidence: str
    data_points: int


class DishParResponse(BaseModel):
    predictions: List[DishPrediction]
    covers: int
    date: Optional[str] = None
    day: Optional[str] = None
    message: Optional[str] = None


class CachedPrediction(BaseModel):
    item_name: str
    avg_qty_per_cover: float
    total_historical_qty: float
    total_historical_covers: float
    confidence: str
    day_of_week_weights: Dict[str, float]
    last_trained_at: datetime


class CachedPredictionsResponse(BaseModel):
    orgId: str
    predictions: List[CachedPrediction]


class SalesImportRequest(BaseModel):
    orgId: Optional[str] = None
    fileBase64: str = Field(..., description="Base64 encoded CSV: date,item_name,quantity_sold[,covers]")
    fileName: Optional[str] = None


class DateRange(BaseModel):
    start: str
    end: str


class SalesImportResponse(BaseModel):
    rows_imported: int
    unique_items: int
    date_range: DateRange
