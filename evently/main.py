# evently/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from evently.api.v1.api import api_router
from evently.core.config import settings
from evently.core.limiter import limiter
from evently.crud.base import TransientStorageError
from evently.db.base_class import Base
from evently.db.session import engine
from evently import models  # noqa: F401  registers tables on Base.metadata
from evently.scheduler import init_scheduler, shutdown_scheduler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    if settings.ENV == "local":
        # Production schemas are managed by Alembic migrations.
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables checked and created if necessary.")
    if settings.ENABLE_SCHEDULER:
        init_scheduler()
    yield
    shutdown_scheduler()
    logger.info("Application shutting down...")


app = FastAPI(
    title="Evently Event Service",
    version="1.0.0",
    description="""
        **Evently Event Management Service**

        ## Features

        * **Accounts**: Signup and login with bearer tokens
        * **Event Management**: Create, update, list and delete events
        * **RSVP**: Join and leave events with capacity-safe admission control
        * **Attendee Roster**: Event creators can see who is coming

        ## Authentication

        Most endpoints require JWT authentication via the `Authorization: Bearer <token>` header.
        """,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TransientStorageError)
async def transient_storage_error_handler(request: Request, exc: TransientStorageError):
    # Detail of the underlying fault is already logged where it was raised.
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Temporarily unavailable, please retry"},
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"status": "Evently service is running"}
