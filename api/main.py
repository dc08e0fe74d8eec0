import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from docfill.errors import (
    ConfigResolutionError,
    DocfillError,
    ProjectNotFound,
    ValidationError,
)
from docfill.logger_config import setup_logging
from docfill.orchestrator import Orchestrator
from docfill.system_config import load_app_config
from docfill.utils.snitch import start_trace

from api.routers import contracts, credit_notes, invoices, projects

logger = logging.getLogger(__name__)


def create_app(orchestrator: Optional[Orchestrator] = None) -> FastAPI:
    """
    Build the HTTP app. Without an orchestrator the configuration is loaded
    from the environment and logging is initialized.
    """
    if orchestrator is None:
        config = load_app_config()
        setup_logging(log_dir=config.run_log_dir)
        orchestrator = Orchestrator(config)

    app = FastAPI(title="docfill")
    app.state.orchestrator = orchestrator

    @app.middleware("http")
    async def trace_requests(request: Request, call_next):
        trace_id = start_trace(request.headers.get("X-Trace-Id"))
        response = await call_next(request)
        response.headers["X-Trace-Id"] = trace_id
        return response

    @app.exception_handler(ValidationError)
    async def validation_failed(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc), "errors": exc.errors})

    @app.exception_handler(ProjectNotFound)
    async def project_not_found(request: Request, exc: ProjectNotFound):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(ConfigResolutionError)
    async def config_failed(request: Request, exc: ConfigResolutionError):
        return JSONResponse(status_code=422, content={"error": str(exc)})

    @app.exception_handler(DocfillError)
    async def generation_failed(request: Request, exc: DocfillError):
        logger.error(f"Request {request.url.path} failed: {exc}")
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok"}

    app.include_router(invoices.router)
    app.include_router(credit_notes.router)
    app.include_router(contracts.router)
    app.include_router(projects.router)
    return app
