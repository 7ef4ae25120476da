"""FastAPI application exposing the sync trigger over HTTP."""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from .config import AppConfig
from .errors import StoreReadError
from .logging_conf import get_logger
from .orchestrator import Orchestrator
from .trigger import SyncTrigger

router = APIRouter(prefix="/api", tags=["options"])


def _trigger(request: Request) -> SyncTrigger:
    return request.app.state.trigger


@router.get("/cron")
@router.get("/notify-options-change")
def run_cron(request: Request, authorization: str | None = Header(default=None)) -> JSONResponse:
    """Scrape, reconcile and notify; requires ``Authorization: Bearer <secret>``."""
    result = _trigger(request).handle(authorization)
    return JSONResponse(result.as_payload(), status_code=result.status_code)


@router.get("/options")
def list_options(request: Request) -> JSONResponse:
    factory: Callable[[], Orchestrator] = request.app.state.orchestrator_factory
    try:
        options = factory().list_options()
    except StoreReadError as exc:
        get_logger("api").error("stored_options_read_failed", error=str(exc))
        return JSONResponse({"message": "Error fetching stored options"}, status_code=500)
    return JSONResponse({"options": [option.as_dict() for option in options]})


def create_app(config: AppConfig, orchestrator_factory: Callable[[], Orchestrator]) -> FastAPI:
    app = FastAPI(title="option-sync")
    app.state.config = config
    app.state.orchestrator_factory = orchestrator_factory
    app.state.trigger = SyncTrigger(config.auth, orchestrator_factory)
    app.include_router(router)

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app


__all__ = ["create_app", "router"]
