import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from splitledger.core.config import settings
from splitledger.core.exceptions import SplitLedgerError, ConflictError
from splitledger.core.observability import ObservabilityMiddleware
from splitledger.api.v1.routes.shared_expense import router as shared_expense_router
from splitledger.api.v1.routes.balances import router as balances_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("splitledger")

app = FastAPI(title=settings.APP_NAME)
app.add_middleware(ObservabilityMiddleware)


@app.exception_handler(SplitLedgerError)
async def split_ledger_error_handler(request: Request, exc: SplitLedgerError):
    if exc.status_code >= 500:
        logger.error("Invariant failure on %s: %s", request.url.path, exc.detail)

    body = {"detail": exc.detail}
    if isinstance(exc, ConflictError) and exc.retryable:
        body["retryable"] = True

    return JSONResponse(status_code=exc.status_code, content=body)


@app.get("/")
async def root():
    return {"message": "SplitLedger Backend is live"}

app.include_router(shared_expense_router, prefix="/api/v1/shared-expenses")
app.include_router(balances_router, prefix="/api/v1/balances")
