#!/usr/bin/env python3
"""Gatepass - Event registration and check-in API server"""

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from gatepass.config import config
from gatepass.errors import DuplicateTokenError, GatepassError
from gatepass.logging_config import setup_logging
from gatepass.routers.events import router as events_router
from gatepass.routers.health import health
from gatepass.routers.registrations import router as registrations_router

# Configure logging (INFO -> stdout, WARNING/ERROR -> stderr)
setup_logging()
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Gatepass",
    description="Event registration with per-group capacity, QR tokens and check-in",
    version="1.0.0",
)

# Trust proxy headers from the TLS-terminating load balancer
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")


@app.exception_handler(GatepassError)
async def handle_gatepass_error(request: Request, exc: GatepassError) -> JSONResponse:
    """Turn a domain error into ``{"kind", "message", ...extra}``"""
    if isinstance(exc, DuplicateTokenError):
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"kind": "InternalError", "message": "Internal server error"},
    )


app.include_router(health)
app.include_router(events_router)
app.include_router(registrations_router)


if __name__ == "__main__":
    port = config.get("port")
    logger.info(f"Starting Gatepass on 0.0.0.0:{port}")
    logger.info(f"Health check available at /health")

    try:
        uvicorn.run(
            app, host="0.0.0.0", port=port, log_level=config["log_level"].lower()
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise
