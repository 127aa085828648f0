"""
Central configuration for the fraud ring detection engine.

All detector thresholds live here so nothing is scattered across modules.
Service-level tunables can be overridden through environment variables.
"""

import os

# ── Cycle detection ────────────────────────────────────────────────────
CYCLE_MIN_LENGTH: int = 3
CYCLE_MAX_LENGTH: int = 5
CYCLE_RISK: float = 0.85

# ── Smurfing detection ─────────────────────────────────────────────────
SMURFING_WINDOW_HOURS: int = 72
SMURFING_MIN_COUNTERPARTIES: int = 10
SMURFING_SENDER_SATURATION: float = 30.0
SMURFING_HUB_SATURATION: float = 40.0
SMURFING_RISK_THRESHOLD: float = 0.65

# ── Shell chain detection ──────────────────────────────────────────────
SHELL_MIN_TRANSACTIONS: int = 2
SHELL_MAX_TRANSACTIONS: int = 3
# Allows up to 40% skimming per hop
SHELL_PASSTHROUGH_RATIO_MIN: float = 0.6
SHELL_FAST_SPREAD_HOURS: int = 24
SHELL_RISK_FLOOR: float = 0.6

# ── False positive control ─────────────────────────────────────────────
MERCHANT_MIN_FAN_IN: int = 100
MERCHANT_MIN_AVG_AMOUNT: float = 2000.0
PAYROLL_MIN_RECEIVERS: int = 100
PAYROLL_MAX_INCOMING: int = 5

# ── Service ────────────────────────────────────────────────────────────
APP_VERSION: str = "1.0.0"
MAX_TRANSACTIONS: int = int(os.getenv("MAX_TRANSACTIONS", "50000"))
ANALYSIS_WORKERS: int = int(os.getenv("ANALYSIS_WORKERS", "4"))
DETECTOR_PARALLELISM: bool = os.getenv("DETECTOR_PARALLELISM", "1").lower() not in ("0", "false", "no")
CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

HOUR_MS: int = 60 * 60 * 1000
