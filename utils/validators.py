"""
Input validation for transaction batches.

Checks uploaded CSV frames and JSON record lists before they reach the
detection core. Validators return an error message, or None when valid.

Time Complexity: O(n) where n = number of rows
Memory: O(n) for the duplicate-id set
"""

import math
from typing import Any, Dict, List

import numpy as np
import pandas as pd

REQUIRED_COLUMNS = [
    "transaction_id",
    "sender_id",
    "receiver_id",
    "amount",
    "timestamp",
]


class InvalidTransactionError(ValueError):
    """The batch or one of its records is structurally invalid."""


def validate_csv(df: pd.DataFrame) -> str | None:
    """
    Validate CSV structure. Returns error message if invalid, None if valid.

    Checks:
        1. All required columns present
        2. At least one row
        3. No null values in required columns
        4. 'amount' is numeric and non-negative
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        return f"Missing required columns: {', '.join(missing)}"

    if df.empty:
        return "CSV file is empty."

    null_cols = [col for col in REQUIRED_COLUMNS if df[col].isnull().any()]
    if null_cols:
        return f"Null values found in columns: {', '.join(null_cols)}"

    try:
        amounts = pd.to_numeric(df["amount"], errors="raise")
    except (ValueError, TypeError):
        return "Column 'amount' must contain numeric values."
    if not np.isfinite(amounts.astype(float)).all():
        return "Column 'amount' must contain finite values."
    if (amounts < 0).any():
        return "Column 'amount' must not contain negative values."

    duplicated = df["transaction_id"].astype(str).duplicated()
    if duplicated.any():
        first = df["transaction_id"].astype(str)[duplicated].iloc[0]
        return f"Duplicate transaction_id: {first}"

    return None


def _amount_error(value: Any) -> str | None:
    if isinstance(value, bool):
        return "must be numeric"
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return "must be numeric"
    if not math.isfinite(amount):
        return "must be a finite number"
    if amount < 0:
        return "must not be negative"
    return None


def validate_records(records: Any) -> str | None:
    """
    Validate a JSON transaction batch. Returns error message if invalid.

    The batch must be a list of objects, each carrying every required field
    with a non-negative numeric amount and a unique transaction_id.
    Timestamps are checked by the detection core when it parses them.
    """
    if not isinstance(records, list):
        return "Invalid transactions data: expected a list of transactions."

    seen_ids = set()
    for idx, record in enumerate(records):
        if not isinstance(record, dict):
            return f"Transaction at index {idx} is not an object."

        missing = [f for f in REQUIRED_COLUMNS if record.get(f) is None]
        if missing:
            return f"Transaction at index {idx} is missing required fields: {', '.join(missing)}"

        problem = _amount_error(record["amount"])
        if problem:
            return f"Transaction at index {idx}: 'amount' {problem}."

        tx_id = str(record["transaction_id"])
        if tx_id in seen_ids:
            return f"Duplicate transaction_id: {tx_id}"
        seen_ids.add(tx_id)

    return None


def ensure_valid_records(records: Any) -> None:
    """Raise InvalidTransactionError when validate_records reports a problem."""
    error = validate_records(records)
    if error:
        raise InvalidTransactionError(error)


def records_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Convert a validated CSV frame into transaction records.

    Identifiers become strings and amounts floats; timestamps are passed
    through untouched for the core to parse.
    """
    frame = df[REQUIRED_COLUMNS].copy()
    for col in ("transaction_id", "sender_id", "receiver_id"):
        frame[col] = frame[col].astype(str)
    frame["amount"] = pd.to_numeric(frame["amount"]).astype(float)
    return frame.to_dict(orient="records")
