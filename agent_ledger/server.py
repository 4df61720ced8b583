"""
HTTP transport for the ledger tools.

POST /tools/{toolName} takes the tool's camelCase input as a JSON body and
returns the tool output. Failures come back as `{"error": {kind, message}}`
with a status derived from the kind.

The backend is selected once, when the app is created. An unknown
LEDGER_PROVIDER therefore fails startup instead of the first request.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import structlog
from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from agent_ledger import __version__
from agent_ledger.audit import AuditLogger
from agent_ledger.config import Settings, get_settings
from agent_ledger.ledger.errors import InvalidInputError, LedgerErrorKind, VALIDATION_KINDS
from agent_ledger.orchestrator import LedgerToolService, ToolResponse, create_ledger_service

logger = structlog.get_logger("agent_ledger.server")


KIND_STATUS_CODES = {
    LedgerErrorKind.INVALID_PROVIDER.value: 500,
    LedgerErrorKind.PROVIDER_NOT_CONFIGURED.value: 503,
    LedgerErrorKind.PROVIDER_UNAVAILABLE.value: 503,
    LedgerErrorKind.NOT_IMPLEMENTED.value: 501,
    LedgerErrorKind.INTERNAL_ERROR.value: 500,
}


def status_for_kind(kind: str) -> int:
    """HTTP status for an error kind: caller mistakes are 400."""
    if kind in {k.value for k in VALIDATION_KINDS}:
        return 400
    return KIND_STATUS_CODES.get(kind, 500)


def to_http_response(response: ToolResponse) -> JSONResponse:
    if response.ok:
        return JSONResponse(content=response.output)

    error = response.error or {}
    return JSONResponse(
        status_code=status_for_kind(error.get("kind", "")),
        content={"error": error},
    )


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[LedgerToolService] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Raises:
        InvalidProviderError: LEDGER_PROVIDER names an unknown backend
    """
    settings = settings or get_settings()
    audit_logger = audit_logger or AuditLogger()
    service = service or create_ledger_service(settings, audit_logger=audit_logger)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=settings.app.log_level.upper())

        await audit_logger.log_provider_selected(service.provider_name)
        await service.provision()

        yield

        await service.close()

    app = FastAPI(
        title="Agent Ledger",
        version=__version__,
        description="Ledger tools for agent expenses and balances",
        lifespan=lifespan,
    )
    app.state.service = service

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        if any(error.get("type") == "json_invalid" for error in exc.errors()):
            err = InvalidInputError("Request body is not valid JSON.")
        else:
            err = InvalidInputError("Request body must be a JSON object.")
        logger.warning("request_body_rejected", path=request.url.path, error=err.message)
        return JSONResponse(status_code=status_for_kind(err.code), content={"error": err.to_dict()})

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "provider": service.provider_name, "version": __version__}

    @app.get("/tools")
    async def list_tools() -> list[dict[str, Any]]:
        return service.describe_tools()

    @app.post("/tools/getExpenses")
    async def get_expenses(body: Optional[dict[str, Any]] = Body(default=None)) -> JSONResponse:
        return to_http_response(await service.get_expenses(body))

    @app.post("/tools/getBalance")
    async def get_balance(body: Optional[dict[str, Any]] = Body(default=None)) -> JSONResponse:
        return to_http_response(await service.get_balance(body))

    @app.post("/tools/trackExpense")
    async def track_expense(body: Optional[dict[str, Any]] = Body(default=None)) -> JSONResponse:
        return to_http_response(await service.track_expense(body))

    return app


def main() -> None:
    """Run the tool server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.app.server_host,
        port=settings.app.server_port,
    )


if __name__ == "__main__":
    main()
