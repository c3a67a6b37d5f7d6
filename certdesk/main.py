"""
main.py
FastAPI application factory and startup configuration.
"""
from contextlib import asynccontextmanager

import motor.motor_asyncio
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from certdesk.core.config import settings
from certdesk.core.errors import CertDeskError
from certdesk.db.request_store import RequestStore
from certdesk.db.user_store import UserStore
from certdesk.services.signing_client import SigningClient
from certdesk.utils.helpers import get_logger

logger = get_logger(__name__)

# ── Shared clients (module-level, shared across requests) ──────────────────────
client: motor.motor_asyncio.AsyncIOMotorClient | None = None
db: motor.motor_asyncio.AsyncIOMotorDatabase | None = None
signing_client: SigningClient | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and tear down resources on startup/shutdown."""
    global client, db, signing_client
    logger.info("Connecting to MongoDB...")
    client = motor.motor_asyncio.AsyncIOMotorClient(settings.MONGO_URI)
    db = client[settings.MONGO_DB_NAME]

    await RequestStore(db).ensure_indexes()
    await UserStore(db).ensure_indexes()
    logger.info(f"Connected to MongoDB: {settings.MONGO_DB_NAME}")

    signing_client = SigningClient()
    logger.info(f"Signing service: {settings.SIGNING_SERVICE_URL}")

    yield  # App is running

    logger.info("Shutting down: closing signing client and MongoDB connection.")
    await signing_client.aclose()
    client.close()


# ── App factory ────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Certificate Request Desk",
    description="Submit, review, sign and reject certificate requests.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS middleware ────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error handlers ─────────────────────────────────────────────────────────────
@app.exception_handler(CertDeskError)
async def domain_exception_handler(request: Request, exc: CertDeskError):
    logger.info(f"{request.method} {request.url.path} -> {type(exc).__name__}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": type(exc).__name__},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})


# ── Include routers ────────────────────────────────────────────────────────────
from certdesk.api.requests import router as requests_router
from certdesk.api.templates import router as templates_router
from certdesk.api.users import router as users_router
app.include_router(requests_router)
app.include_router(users_router)
app.include_router(templates_router)


# ── Health check ───────────────────────────────────────────────────────────────
@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": "Certificate Request Desk"}


# For running with: python -m certdesk.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT)
