"""
Investor Platform — FastAPI Backend
Account creation request store, Governor review and admin dashboard.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from db.database import engine
from routers import account_requests, admin

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("🚀 Investor Platform API starting...")
    yield
    await engine.dispose()
    logger.info("🛑 Investor Platform API shut down.")


app = FastAPI(
    title="Investor Platform API",
    description="Investor onboarding requests, Governor review and dashboard metrics",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ───────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ────────────────────────────────────────────────
app.include_router(account_requests.router, prefix="/api/account-requests", tags=["Account Requests"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin Dashboard"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "Investor Platform API"}


@app.get("/health/db")
async def health_db():
    """Verify DB connection."""
    from sqlalchemy import text
    try:
        async with engine.connect() as conn:
            row = (await conn.execute(text("SELECT current_database(), current_user"))).first()
        return {"status": "ok", "database": row[0], "user": row[1]}
    except Exception as e:
        return {"status": "error", "detail": str(e)}
