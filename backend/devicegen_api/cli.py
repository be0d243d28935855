from __future__ import annotations

import argparse
import os

import uvicorn

from devicegen.config import API_HOST, API_PORT


def main() -> None:
    parser = argparse.ArgumentParser(prog="devicegen-api", description="Run the device page generator API")
    parser.add_argument("--host", default=API_HOST)
    parser.add_argument("--port", type=int, default=API_PORT)
    parser.add_argument("--log-level", default=os.environ.get("DEVICEGEN_LOG_LEVEL", "info"))
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    # import string so uvicorn manages the lifespan
    uvicorn.run(
        "devicegen_api.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        reload=args.reload,
    )
