"""
JSON Output Formatter.

Produces the detection result structure:
{
    "suspicious_accounts": [...],
    "fraud_rings": [...],
    "summary": {...}
}

Rings are listed in registration order; suspicious accounts are already
sorted by the registry.

Time Complexity: O(V + R)
Memory: O(V + R)
"""

from typing import Any, Dict

from core.output.summary_builder import build_summary
from core.risk.ring_registry import RingRegistry


def format_output(
    registry: RingRegistry,
    total_accounts: int,
    processing_time: float = 0.0,
) -> Dict[str, Any]:
    """Build the final JSON-compatible output dict."""
    suspicious_accounts = [
        {**acct, "detected_patterns": list(acct["detected_patterns"])}
        for acct in registry.suspicious_accounts()
    ]
    fraud_rings = [
        {**ring, "member_accounts": list(ring["member_accounts"])}
        for ring in registry.fraud_rings
    ]

    return {
        "suspicious_accounts": suspicious_accounts,
        "fraud_rings": fraud_rings,
        "summary": build_summary(
            total_accounts=total_accounts,
            suspicious_count=len(suspicious_accounts),
            rings_count=len(fraud_rings),
            processing_time=processing_time,
        ),
    }
