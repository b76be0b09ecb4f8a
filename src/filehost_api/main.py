import logging
from textwrap import dedent

import pydantic
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from filehost_api.adapters.storage import get_blob_store
from filehost_api.auth import CredentialVerifier
from filehost_api.database.local import init_db
from filehost_api.db_layer.file_service import FileService
from filehost_api.errors import (
    FileError,
    handle_broad_exceptions,
    handle_file_errors,
    handle_pydantic_validation_errors,
    reject_oversized_uploads,
)
from filehost_api.routers.files import router as files_router
from filehost_api.routers.health import router as health_router
from filehost_api.settings import Settings, get_settings

logger = logging.getLogger(__name__)

FILES_PREFIX = "/api/files"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="File Hosting API",
        summary="Upload, tag and share images and videos",
        version="v1",
        description=dedent(
            """\
        Authenticated users upload files; each file can be tagged and shared
        through a public link that counts views.

        | Helpful Links | Notes |
        | --- | --- |
        | [FastAPI Documentation](https://fastapi.tiangolo.com/) | |
        """
        ),
        docs_url="/",
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    logger.info(f"Starting {settings.app_name} in {settings.deployment_mode} mode")
    record_store = init_db(settings)
    blob_store = get_blob_store(settings)

    app.state.settings = settings
    app.state.record_store = record_store
    app.state.blob_store = blob_store
    app.state.file_service = FileService.from_settings(settings, record_store, blob_store)
    app.state.credential_verifier = CredentialVerifier.from_settings(settings)

    app.include_router(files_router, prefix=FILES_PREFIX, tags=["files"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(FileError, handle_file_errors)
    app.add_exception_handler(RequestValidationError, handle_pydantic_validation_errors)
    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(reject_oversized_uploads(f"{FILES_PREFIX}/upload", settings.max_upload_bytes))
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
