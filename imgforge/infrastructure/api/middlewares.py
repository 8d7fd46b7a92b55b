from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware

access_logger = logging.getLogger("imgforge.access")


def add_default_middlewares(app: FastAPI) -> None:
    # Explicit origins win; otherwise development allows the usual local
    # frontends and production allows any origin.
    configured = os.getenv("IMGFORGE_CORS_ORIGINS")
    env = os.getenv("ENV", "development")

    if configured:
        allowed_origins = [origin.strip() for origin in configured.split(",") if origin.strip()]
    elif env in ("development", "staging"):
        allowed_origins = [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]
    else:
        allowed_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Image-Width", "X-Image-Height", "X-Image-Name"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        client_host = request.client.host if request.client is not None else "-"
        access_logger.info(
            '%s - "%s %s" %s',
            client_host or "-",
            request.method,
            request.url.path,
            response.status_code,
        )
        return response
