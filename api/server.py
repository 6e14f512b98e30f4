"""
Practice OS API Server - REST API for recurring work and demand forecasting.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
import os
from datetime import datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.practice_router import practice_router
from api.response_models import MutationResponse
from practice import paths
from practice.config import load_settings
from practice.database import Database
from practice.observability import configure_logging

logger = logging.getLogger(__name__)

# FastAPI app initialization
app = FastAPI(
    title="Practice OS API",
    description="Recurring tasks, instance generation and skill demand forecasting",
    version="0.1.0",
)

# CORS middleware - configurable via CORS_ORIGINS env var
cors_origins_env = os.getenv("CORS_ORIGINS", "*")
cors_origins = (
    ["*"] if cors_origins_env == "*" else [o.strip() for o in cors_origins_env.split(",")]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(practice_router)


# ==== DB Startup ====
@app.on_event("startup")
def init_db_on_startup():
    """Create the schema and log where the database lives."""
    db = Database(paths.db_path())
    try:
        logger.info("=== Practice OS Startup ===")
        logger.info(f"DB path: {db.db_path}")
        db.init_schema()
    finally:
        db.close()


@app.get("/api/health", response_model=MutationResponse)
def health_check():
    """Health check endpoint."""
    return {"success": True, "status": "healthy", "timestamp": datetime.now().isoformat()}


# ==== Main ====


def main():
    """Run the server."""
    settings = load_settings()
    configure_logging(settings.log_level)
    app.state.settings = settings
    port = int(os.environ.get("PORT", 8420))
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
