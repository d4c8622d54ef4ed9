from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from carbonledger.core.config import settings
from carbonledger.core.logging import configure_logger, api_logger
from carbonledger.core.database import init_db
from carbonledger.api.v1.endpoints import router as api_router
from carbonledger.exceptions.ledger_exceptions import LedgerError
from carbonledger.middleware.request_logger import RequestLoggerMiddleware
from carbonledger.services.report_worker import get_report_worker

# Initialize logger
logger = configure_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting Carbon Ledger API...")

    try:
        await init_db()
        logger.info("✅ Database connection established.")
    except Exception as e:
        logger.error(f"❌ Database init failed: {e}")

    worker = get_report_worker()
    await worker.start()
    try:
        recovered = await worker.recover()
        logger.info(f"📄 Report worker ready ({recovered} job(s) recovered)")
    except Exception as e:
        logger.error(f"❌ Report job recovery failed: {e}")

    api_logger.info("✅ Request logging middleware initialized")
    yield

    await worker.stop()
    logger.info("👋 Carbon Ledger API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Carbon accounting: emission inventories, supplier networks and report generation.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Middleware: CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add request logger middleware
    app.add_middleware(RequestLoggerMiddleware)

    # Routers
    app.include_router(api_router, prefix=settings.API_V1_STR)

    # Health check
    @app.get("/", tags=["Health"])
    async def health():
        return JSONResponse(
            status_code=200,
            content={"success": True, "status": "ok", "service": settings.PROJECT_NAME},
        )

    # Exception handling
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"HTTP error: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("Validation error", exc_info=True)
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "message": "Validation failed",
                "errors": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(LedgerError)
    async def ledger_exception_handler(request: Request, exc: LedgerError):
        logger.warning(f"{type(exc).__name__}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})

    return app


# Entry point
app = create_app()

if __name__ == "__main__":
    uvicorn.run("carbonledger.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
