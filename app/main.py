"""Main FastAPI application."""
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager

from app.core.exceptions import WaitlistError
from app.core.logging import setup_logging
from app.db.database import init_db
from app.api import auth, health, waitlist, webhooks
from app.api.errors import internal_error_handler, validation_error_handler, waitlist_error_handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    yield


app = FastAPI(
    title="Easy Waitlist",
    description="Waitlist call confirmation service",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(auth.router, tags=["auth"])
app.include_router(webhooks.voice.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(waitlist.router, tags=["waitlist"])

app.add_exception_handler(WaitlistError, waitlist_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, internal_error_handler)
