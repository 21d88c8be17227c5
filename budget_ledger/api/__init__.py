"""
Budget Ledger API Application Factory
"""

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import get_config
from ..errors import LedgerError, ErrorKind
from ..logging_config import setup_logging, get_logger, log_action
from .banks import router as banks_router
from .transactions import router as transactions_router
from .transfers import router as transfers_router
from .summary import router as summary_router


STATUS_BY_KIND = {
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.INSUFFICIENT_FUNDS: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL_FAILURE: 500,
}

logger = get_logger("api")


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = STATUS_BY_KIND[exc.kind]
    if status_code >= 500:
        log_action(
            logger, "error", f"{request.method} {request.url.path} failed: {exc.message}",
            action="http_request", extra={"kind": exc.kind.value}
        )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": ErrorKind.INVALID_REQUEST.value,
            "detail": "Malformed request",
            "errors": [
                {"loc": [str(part) for part in error["loc"]], "msg": error["msg"]}
                for error in exc.errors()
            ]
        }
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    config = get_config()
    setup_logging(config.log_level, config.log_format, config.log_file)

    app = FastAPI(
        title="Budget Ledger API",
        description="Per-budget bank balances, transactions, transfers and monthly summaries",
        version=__version__
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", config.budget_code_header],
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(banks_router, prefix="/banks", tags=["Banks"])
    app.include_router(transactions_router, prefix="/transactions", tags=["Transactions"])
    app.include_router(transfers_router, prefix="/transfer", tags=["Transfers"])
    app.include_router(summary_router, prefix="/summary", tags=["Summary"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "budget_ledger_api",
            "version": __version__
        }

    return app


app = create_app()


def run_server(host: str = "0.0.0.0", port: int = 5000, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "budget_ledger.api:app",
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )
