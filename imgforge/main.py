from __future__ import annotations

import os

from fastapi import FastAPI

from imgforge.application.dtos.common_dto import HealthResponse, RootResponse
from imgforge.infrastructure.api.middlewares import add_default_middlewares
from imgforge.infrastructure.api.routes.image_routes import router as image_router
from imgforge.infrastructure.api.routes.processing_routes import router as processing_router
from imgforge.infrastructure.logging_config import configure_logging


def create_app() -> FastAPI:
    configure_logging(debug=os.getenv("DEBUG", "false").lower() == "true")
    app = FastAPI(
        title="imgforge",
        version="0.1.0",
        description="""
        ## imgforge API

        Stateless image ingestion, conversion and fingerprinting.

        ### Features
        - **Validation**: size, content-sniffed MIME type, format allow-list and
          resolution limits
        - **Import**: from uploads, remote URLs and data-URLs
        - **Conversion**: cover-fit crop, high quality resampling and re-encoding
        - **Fingerprints**: DCT perceptual hash, imagehash algorithms and content
          digests
        - **Animation detection**: GIF and WEBP

        ### Error Responses
        - **400 Bad Request**: malformed URL or parameters
        - **413 Payload Too Large**: size or resolution above the configured limits
        - **415 Unsupported Media Type**: unknown MIME type or disallowed format
        - **422 Unprocessable Entity**: not an image, or target dimensions out of range
        - **502 Bad Gateway**: a remote image could not be loaded
        """,
    )
    add_default_middlewares(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the imgforge API",
    )
    def root():
        """Get API root information."""
        return RootResponse(status="ok", service="imgforge", version=app.version)

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
    )
    def health():
        """Check API health status."""
        return HealthResponse(status="healthy")

    app.include_router(image_router)
    app.include_router(processing_router)
    return app


app = create_app()
