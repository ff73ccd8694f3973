# app/run.py
import argparse

import uvicorn

from app.config import API_HOST, API_PORT, LOG_LEVEL


def serve(argv=None):
    parser = argparse.ArgumentParser(description="Run the dish par forecasting API")
    parser.add_argument("--host", default=API_HOST)
    parser.add_argument("--port", type=int, default=API_PORT)
    parser.add_argument("--reload", action="store_true")
    args, _ = parser.parse_known_args(argv)

    uvicorn.run("app.main:app", host=args.host, port=args.port, reload=args.reload, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    serve()
