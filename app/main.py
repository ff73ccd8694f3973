import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import CORS_ALLOW_ORIGINS, LOG_LEVEL
from app.errors import UnauthorizedError, InvalidRequestError
from app.forecast.routers.forecast_router import router as forecast_router
from app.forecast.services.prediction_cache import init_prediction_table

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


# -----------------------------
# Lifespan
# -----------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        init_prediction_table()
        logger.info("[DB Init] dish_par_predictions table ready")
    except Exception as e:
        logger.error(f"[DB Init] could not create dish_par_predictions: {e}")
    yield


app = FastAPI(title="Dish Par Forecaster", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(forecast_router)


# -----------------------------
# Error responses: {"error": "..."}
# -----------------------------
@app.exception_handler(UnauthorizedError)
async def unauthorized_handler(request: Request, exc: UnauthorizedError):
    return JSONResponse(status_code=401, content={"error": exc.message})


@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "Invalid request")
    logger.info("Rejected request to %s: %s", request.url.path, errors)
    return JSONResponse(status_code=400, content={"error": f"{field}: {msg}" if field else msg})


@app.get("/health")
def health():
    return {"status": "ok"}
