# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

import aip_processor.api.endpoints  # noqa: F401, pylint: disable=unused-import  # Importing for endpoint registration
from aip_processor.api.routers import processing_router, processor_router
from aip_processor.exceptions import ProtocolError
from aip_processor.exceptions.handler import custom_exception_handler
from aip_processor.runtime.components import ProcessingRuntime
from aip_processor.settings import get_settings

settings = get_settings()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """FastAPI lifespan context manager"""
    # Startup actions
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=settings.log_format,
        force=True,
    )
    logger.info("Starting %s application...", settings.app_name)
    app.state.runtime = ProcessingRuntime(settings)
    logger.info("Application startup completed")
    yield

    # Shutdown actions
    logger.info("Shutting down %s application...", settings.app_name)
    app.state.runtime.stop()


fastapi_app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description=settings.description,
    openapi_url=settings.openapi_url,
    redoc_url=None,
    lifespan=lifespan,
)

fastapi_app.add_exception_handler(Exception, custom_exception_handler)
fastapi_app.add_exception_handler(ProtocolError, custom_exception_handler)
fastapi_app.add_exception_handler(RequestValidationError, custom_exception_handler)


@fastapi_app.get(path="/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint"""
    return {"status": "ok"}


fastapi_app.include_router(processing_router, prefix="/api/v1")
fastapi_app.include_router(processor_router, prefix="/api/v1")


def main(host: str | None = None, port: int | None = None) -> None:
    """Main application entry point"""
    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_config["formatters"]["access"]["fmt"] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logger.info("Starting %s in %s mode", settings.app_name, settings.environment)
    uvicorn.run(
        fastapi_app,
        host=host or settings.host,
        port=port or settings.port,
        log_level="debug" if settings.debug else "info",
        log_config=log_config,
    )


if __name__ == "__main__":
    main()
