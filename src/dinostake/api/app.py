# src/dinostake/api/app.py
from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dinostake.api.errors import ApiError
from dinostake.api.routes_public import public_router
from dinostake.api.structured_logging import RequestLogMiddleware
from dinostake.runtime.config import load_econ_config
from dinostake.runtime.econ_boot import build_runtime as _build_runtime


def build_runtime():
    """Build the EconRuntime for the API.

    This wrapper exists so tests can monkeypatch `dinostake.api.app.build_runtime`
    without reaching into runtime modules.
    """
    return _build_runtime(load_econ_config())


def _env_bool(name: str, default: bool) -> bool:
    v = os.environ.get(name)
    if v is None:
        return bool(default)
    return (v or "").strip().lower() in {"1", "true", "yes", "y", "on"}


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load config, open the store, attach app.state.runtime
      - False: keep lightweight for unit tests / import-time validation

    The accrual/sale ticker is started by the lifespan only when
    DINOSTAKE_SCHEDULER_AUTOSTART is set; otherwise app.state.scheduler is
    built but idle (reads still recompute from absolute timestamps).
    """
    mode = os.environ.get("DINOSTAKE_MODE", "prod").strip().lower()

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        sched = None
        rt = getattr(app.state, "runtime", None)
        if rt is not None:
            sched = rt.build_scheduler()
            if _env_bool("DINOSTAKE_SCHEDULER_AUTOSTART", False):
                sched.start()
        app.state.scheduler = sched
        yield
        if sched is not None:
            sched.stop()

    if mode == "prod":
        app = FastAPI(
            title="DinoStake Economy API",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            lifespan=_lifespan,
        )
    else:
        app = FastAPI(title="DinoStake Economy API", lifespan=_lifespan)

    if boot_runtime:
        app.state.runtime = build_runtime()
    else:
        app.state.runtime = None

    # scheduler is attached by lifespan
    app.state.scheduler = None

    @app.exception_handler(ApiError)
    async def _api_error(_request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_json())

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        err = ApiError.bad_request("bad_request", "Request body failed validation", {"errors": exc.errors()})
        return JSONResponse(status_code=err.status_code, content=jsonable_encoder(err.to_json()))

    app.add_middleware(RequestLogMiddleware)
    app.include_router(public_router)

    return app
