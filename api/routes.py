"""
API Routes — analyze, upload, health, and metrics endpoints.

Analyses are CPU-bound, so they run on a bounded worker pool instead of
the event loop; concurrent requests each get their own pipeline instance.
"""

import asyncio
import concurrent.futures
import io
import logging
import threading
from typing import Any, Dict, List

import pandas as pd
from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse

from app.config import ANALYSIS_WORKERS, APP_VERSION, MAX_TRANSACTIONS
from core.output.transaction_patterns import tag_transaction_patterns
from services.processing_pipeline import analyze_transactions
from utils.metrics import MetricsTracker
from utils.time_utils import MalformedTimestampError
from utils.validators import (
    InvalidTransactionError,
    records_from_frame,
    validate_csv,
    validate_records,
)

logger = logging.getLogger(__name__)

router = APIRouter()
metrics_tracker = MetricsTracker()
_executor: concurrent.futures.ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def _get_executor() -> concurrent.futures.ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=ANALYSIS_WORKERS, thread_name_prefix="analysis"
            )
        return _executor


def shutdown_executor() -> None:
    global _executor
    with _executor_lock:
        if _executor is not None:
            _executor.shutdown(wait=False)
            _executor = None


def _reject(detail: str) -> HTTPException:
    logger.warning("Rejected request: %s", detail)
    return HTTPException(status_code=400, detail=detail)


async def _run_analysis(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    if len(records) > MAX_TRANSACTIONS:
        raise _reject(f"Batch exceeds the limit of {MAX_TRANSACTIONS} transactions.")

    loop = asyncio.get_running_loop()
    try:
        result = await loop.run_in_executor(_get_executor(), analyze_transactions, records)
    except (InvalidTransactionError, MalformedTimestampError) as e:
        metrics_tracker.record_failure()
        raise _reject(str(e)) from e
    except Exception as e:
        metrics_tracker.record_failure()
        logger.exception("Analysis failed")
        raise HTTPException(
            status_code=500, detail="Internal server error during analysis"
        ) from e

    metrics_tracker.record(result["summary"])
    return result


@router.get("/health")
async def health():
    """Return system health status."""
    return {"status": "healthy", "version": APP_VERSION}


@router.get("/metrics")
async def metrics():
    """Return processing statistics from the most recent run."""
    return metrics_tracker.get_metrics()


@router.post("/api/analyze")
async def analyze(request: Request, include_patterns: bool = False):
    """
    Accept a JSON body {"transactions": [...]} and return the detection
    result. With include_patterns=true the response also carries a
    transaction_id → pattern map for edge colouring.
    """
    try:
        payload = await request.json()
    except ValueError as e:
        raise _reject("Request body must be valid JSON.") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("transactions"), list):
        raise _reject("Invalid transactions data")

    records = payload["transactions"]
    validation_error = validate_records(records)
    if validation_error:
        raise _reject(validation_error)

    result = await _run_analysis(records)
    if include_patterns:
        result["transaction_patterns"] = tag_transaction_patterns(records, result["fraud_rings"])
    return JSONResponse(content=result)


@router.post("/upload")
async def upload_csv(file: UploadFile = File(...)):
    """
    Accept CSV upload, perform fraud ring detection,
    and return a structured JSON response.
    """
    if not file.filename or not file.filename.endswith(".csv"):
        raise _reject("Only CSV files are accepted.")

    try:
        contents = await file.read()
        df = pd.read_csv(io.StringIO(contents.decode("utf-8")))
    except Exception as e:
        raise _reject(f"Failed to parse CSV: {str(e)}") from e

    validation_error = validate_csv(df)
    if validation_error:
        raise _reject(validation_error)

    result = await _run_analysis(records_from_frame(df))
    return JSONResponse(content=result)
