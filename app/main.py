"""
FastAPI application for the Fraud Ring Detection Engine.

Endpoints:
    POST /api/analyze — Accept {"transactions": [...]}, return detection results
    POST /upload      — Accept CSV, return detection results as JSON
    GET  /health      — System health check
    GET  /metrics     — Processing statistics
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from api.routes import router, shutdown_executor
from app.config import APP_VERSION, CORS_ORIGINS, LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Fraud Ring Detection Engine",
    description="Detects cycles, smurfing and shell chains in transaction batches.",
    version=APP_VERSION,
)

allowed_origins = [origin.strip() for origin in CORS_ORIGINS.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Compress large JSON responses (ring member lists can be long).
app.add_middleware(GZipMiddleware, minimum_size=1024)

app.include_router(router)


@app.on_event("shutdown")
def _shutdown() -> None:
    logger.info("Shutting down analysis worker pool.")
    shutdown_executor()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
