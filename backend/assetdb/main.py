# backend/assetdb/main.py
import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from .database import SessionLocal

from .apps.inventory.router import router as inventory_router
from .apps.inventory.reconciliation import reconcile_available_quantities
from .apps.waybills.router import router as waybills_router

logger = logging.getLogger(__name__)


def _allowed_origins() -> List[str]:
    """
    Parse CORS_ALLOWED_ORIGINS from env.

    Accepts comma-separated origins. If unset, defaults to local dev ports.
    """
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if raw:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
        if origins:
            return origins
    return [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://localhost:4173",
    ]


def _reconcile_on_startup() -> bool:
    return os.getenv("ASSETDB_RECONCILE_ON_STARTUP", "true").lower() in {"1", "true", "yes", "on"}


def run_startup_reconciliation(db: Session) -> Optional[dict]:
    """
    Heal drifted available quantities before serving requests.

    A database without the ledger tables yet (migrations not applied) is
    logged and skipped rather than blocking startup.
    """
    try:
        return reconcile_available_quantities(db)
    except (OperationalError, ProgrammingError):
        db.rollback()
        logger.warning("Skipping startup reconciliation; ledger tables are not available")
        return None


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if _reconcile_on_startup():
        db = SessionLocal()
        try:
            run_startup_reconciliation(db)
        finally:
            db.close()
    yield


app = FastAPI(title="Asset Ledger API", version="1.0.0", lifespan=lifespan)
cors_origins = _allowed_origins()
allow_credentials = "*" not in cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/", tags=["health"])
def read_root():
    return {"status": "ok", "message": "Asset ledger backend is running"}

@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}

app.include_router(inventory_router)
app.include_router(waybills_router)
