import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.auth.router import router as auth_router
from app.api.v1.chat.router import router as chat_router
from app.api.v1.inbox.router import router as inbox_router
from app.api.v1.profile.router import router as profile_router
from app.api.v1.public.router import router as public_router
from app.core.config import settings
from app.core.database import init_tables
from app.core.logging_config import setup_logging

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # BootstrapFailure propagates and aborts startup
    await init_tables()
    logger.info("BazChat API started")
    yield


app = FastAPI(
    title="BazChat API",
    description="Business storefront chat: owner profiles, catalog and customer conversations",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(profile_router, prefix="/api/v1/profile", tags=["Profile"])
app.include_router(public_router, prefix="/api/v1/public", tags=["Public"])
app.include_router(chat_router, prefix="/api/v1")
app.include_router(inbox_router, prefix="/api/v1/inbox", tags=["Inbox"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
