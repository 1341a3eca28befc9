"""Main FastAPI application for the regtest explorer API."""

import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import structlog

from regtest_explorer import __version__
from regtest_explorer.api.dependencies import app_state, get_config
from regtest_explorer.api.routers import explorer as explorer_router
from regtest_explorer.core.exceptions import (
    NodeUnavailableError, RPCMethodError, ResourceNotFoundError
)
from regtest_explorer.core.explorer import BlockExplorer
from regtest_explorer.models.config import ExplorerConfig
from regtest_explorer.utils.logging import setup_logging
from regtest_explorer.utils.metrics import metrics

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    config = app_state["config"]
    setup_logging(config)

    logger.info("Starting regtest explorer API", rpc_url=config.bitcoin_rpc_url)
    app_state["explorer"] = BlockExplorer(config)
    app_state["startup_time"] = datetime.now()

    yield

    logger.info("Shutting down regtest explorer API")
    explorer = app_state.get("explorer")
    if explorer:
        explorer.close()
    app_state["explorer"] = None


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "timestamp": datetime.now().isoformat()
            }
        }
    )


def setup_metrics(app: FastAPI):
    """Setup metrics endpoint."""

    @app.get("/metrics", include_in_schema=False)
    async def get_metrics():
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def create_app(config: Optional[ExplorerConfig] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    config = config or ExplorerConfig()
    app_state["config"] = config

    app = FastAPI(
        title="Regtest Explorer API",
        description="Derived views of a Bitcoin Core regtest node",
        version=__version__,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Request logging middleware."""
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("Request failed",
                         method=request.method,
                         url=str(request.url),
                         error=str(e),
                         process_time=time.time() - start_time)
            metrics.request_count.labels(
                method=request.method, endpoint=request.url.path, status=500
            ).inc()
            raise

        process_time = time.time() - start_time
        logger.info("Request completed",
                    method=request.method,
                    url=str(request.url),
                    status_code=response.status_code,
                    process_time=process_time)

        metrics.request_count.labels(
            method=request.method, endpoint=request.url.path, status=response.status_code
        ).inc()
        metrics.request_duration.labels(
            method=request.method, endpoint=request.url.path
        ).observe(process_time)

        response.headers["X-Process-Time"] = str(process_time)
        return response

    app.include_router(explorer_router.router, prefix="/api/v1", tags=["explorer"])

    if config.enable_metrics:
        setup_metrics(app)

    @app.exception_handler(NodeUnavailableError)
    async def node_unavailable_handler(request: Request, exc: NodeUnavailableError):
        logger.error("Bitcoin node unavailable", url=str(request.url), error=str(exc))
        return _error_response(503, "NODE_UNAVAILABLE", str(exc))

    @app.exception_handler(ResourceNotFoundError)
    async def not_found_handler(request: Request, exc: ResourceNotFoundError):
        logger.info("Resource not found", url=str(request.url), error=exc.message)
        return _error_response(404, "NOT_FOUND", exc.message)

    @app.exception_handler(RPCMethodError)
    async def rpc_method_error_handler(request: Request, exc: RPCMethodError):
        logger.warning("Node rejected request", url=str(request.url), code=exc.code, error=exc.message)
        return _error_response(400, f"RPC_{exc.code}", exc.message)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _error_response(400, "BAD_REQUEST", str(exc))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions."""
        logger.warning("HTTP exception",
                       status_code=exc.status_code,
                       detail=exc.detail,
                       url=str(request.url))
        return _error_response(exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail))

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        settings = get_config()
        startup_time = app_state.get("startup_time")

        return {
            "service": "Regtest Explorer API",
            "version": __version__,
            "node": settings.bitcoin_rpc_url,
            "startup_time": startup_time.isoformat() if startup_time else None,
            "endpoints": {
                "chain": "/api/v1/chain",
                "blocks": "/api/v1/blocks",
                "transactions": "/api/v1/transactions",
                "addresses": "/api/v1/addresses/{address}",
                "mempool": "/api/v1/mempool",
                "fees": "/api/v1/fees",
                "difficulty": "/api/v1/difficulty"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app_state["config"]

    uvicorn.run(
        "regtest_explorer.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower()
    )
