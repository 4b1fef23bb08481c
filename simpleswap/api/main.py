"""FastAPI application for the exchange pool.

Note: authentication is intentionally not implemented. Callers name the
acting account in the request body, as they would when submitting a signed
transaction through a trusted relayer.
"""

import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from simpleswap import __version__
from simpleswap.api.endpoints import router
from simpleswap.errors import PoolError
from simpleswap.ledger import TransferError
from simpleswap.safe_int import SafeIntError

logger = structlog.get_logger()

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("SIMPLESWAP_HOST", "0.0.0.0")
PORT = int(os.environ.get("SIMPLESWAP_PORT", "8000"))
DEBUG = os.environ.get("SIMPLESWAP_DEBUG", "false").lower() in ("true", "1", "yes")

app = FastAPI(
    title="SimpleSwap",
    description="A two-asset constant product exchange pool",
    version=__version__,
)


@app.exception_handler(PoolError)
async def pool_error_handler(request: Request, exc: PoolError) -> JSONResponse:
    """Render a refused pool operation as 400 with its structured details."""
    logger.info("request_rejected", path=request.url.path, kind=exc.kind.value)
    return JSONResponse(status_code=400, content=jsonable_details(exc))


@app.exception_handler(TransferError)
@app.exception_handler(SafeIntError)
async def ledger_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a ledger refusal or amount overflow as 400."""
    logger.info("request_rejected", path=request.url.path, kind="ledger_rejected")
    return JSONResponse(status_code=400, content={"error": "ledger_rejected", "detail": str(exc)})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log anything the pool did not anticipate and answer 500."""
    logger.exception("unexpected_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "internal", "detail": str(exc)})


def jsonable_details(exc: PoolError) -> dict[str, object]:
    """Error body with integer details rendered as decimal strings."""
    return {
        key: str(value) if isinstance(value, int) and not isinstance(value, bool) else value
        for key, value in exc.to_dict().items()
    }


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok"}


def run() -> None:
    """Run the exchange API server.

    Configuration via environment variables:
    - SIMPLESWAP_HOST: Host to bind to (default: 0.0.0.0)
    - SIMPLESWAP_PORT: Port to bind to (default: 8000)
    - SIMPLESWAP_DEBUG: Enable debug/reload mode (default: false)
    """
    uvicorn.run(
        "simpleswap.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
