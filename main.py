# main.py
from __future__ import annotations

import functools
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from tortoise import Tortoise
from tortoise.exceptions import BaseORMException

from integration.s3_gateway import S3Gateway
from routers import auth, health, invoices
from services import config
from services.background import BackgroundRunner
from services.errors import InvoiceServiceError
from services.invoice_pipeline import InvoicePipeline
from services.invoice_store import InvoiceStore
from services.pdf_builder import render_invoice_pdf
from services.rate_limiter import RateLimiter, SlidingWindowRateLimiter

logger = logging.getLogger("uvicorn")


# ----- lifespan -----
@asynccontextmanager
async def lifespan(app: FastAPI):
    # 1) DB init
    await Tortoise.init(
        db_url=config.DATABASE_URL,
        modules={"models": ["models"]},
    )
    await Tortoise.generate_schemas()
    logger.info(f"[startup] database ready, bucket={config.AWS_S3_BUCKET_NAME or '<unset>'}")
    try:
        yield
    finally:
        # 2) let in-flight PDF generation finish before the DB goes away
        await app.state.runner.shutdown(config.SHUTDOWN_GRACE_SECONDS)
        await Tortoise.close_connections()


# ----- error mapping -----
async def _service_error(request: Request, exc: InvoiceServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def _orm_error(request: Request, exc: BaseORMException) -> JSONResponse:
    logger.error(f"[db] {request.method} {request.url.path} failed: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Server error while accessing invoices."})


# ----- app & routers -----
def create_app(
    *,
    gateway=None,
    rate_limiter: RateLimiter | None = None,
    renderer=None,
    runner: BackgroundRunner | None = None,
    use_lifespan: bool = True,
) -> FastAPI:
    app = FastAPI(lifespan=lifespan if use_lifespan else None, title="Invoice Generator API")

    app.state.runner = runner or BackgroundRunner()
    app.state.pipeline = InvoicePipeline(
        store=InvoiceStore(),
        rate_limiter=rate_limiter or SlidingWindowRateLimiter(
            limit=config.RATE_LIMIT_COUNT,
            window_seconds=config.RATE_LIMIT_WINDOW_SECONDS,
        ),
        gateway=gateway or S3Gateway.from_config(),
        runner=app.state.runner,
        renderer=renderer or functools.partial(render_invoice_pdf, currency=config.INVOICE_CURRENCY),
        download_ttl=config.DOWNLOAD_URL_TTL_SECONDS,
        key_prefix=config.INVOICE_KEY_PREFIX,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(InvoiceServiceError, _service_error)
    app.add_exception_handler(BaseORMException, _orm_error)

    app.include_router(auth.router)
    app.include_router(invoices.router)
    app.include_router(health.router)

    for route in app.routes:
        if isinstance(route, APIRoute):
            logger.debug("%s -> %s", list(route.methods), route.path)

    return app


app = create_app()
