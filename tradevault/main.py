"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tradevault.config import settings
from tradevault.database import create_db_and_tables
from tradevault.utils.logging import setup_logging
from tradevault.api import auth, trades, imports, brokers, journal, system


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging()
    create_db_and_tables()
    from tradevault.engine.scheduler import start_scheduler, stop_scheduler
    start_scheduler()

    yield

    stop_scheduler()


app = FastAPI(
    title="TradeVault",
    description="Trade journal ledger with CSV, bulk and broker imports",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(auth.router)
app.include_router(trades.router)
app.include_router(imports.router)
app.include_router(brokers.router)
app.include_router(journal.router)
app.include_router(system.router)
