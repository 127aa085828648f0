"""
Smurfing Detection Module — Fan-In / Fan-Out Aggregation.

For every non-merchant account:
  1. Sort incoming transactions by time and locate the densest
     SMURFING_WINDOW_HOURS window (most transactions, earliest on ties)
  2. Require ≥ SMURFING_MIN_COUNTERPARTIES transactions and unique senders
     inside that window
  3. Re-run the merchant/payroll check with burst-local fan-in and
     average amount
  4. Count unique receivers of outgoing transfers in
     [window_start, window_start + window]; fan-out when ≥ the minimum
  5. Score:
       sender_score = min(senders / 30, 1)
       hub_factor   = min((senders + receivers) / 40, 1)
       fan-in + fan-out: 0.5·sender_score + 0.3·hub_factor + 0.2
       fan-in only:      0.5·sender_score + 0.15
     and emit when risk ≥ SMURFING_RISK_THRESHOLD

Time Complexity: O(A × k log k), k = incoming transactions per account
Memory: O(k) per account
"""

import logging
from typing import Any, Dict, List

import numpy as np

from app.config import (
    SMURFING_HUB_SATURATION,
    SMURFING_MIN_COUNTERPARTIES,
    SMURFING_RISK_THRESHOLD,
    SMURFING_SENDER_SATURATION,
    SMURFING_WINDOW_HOURS,
)
from core.graph.graph_builder import GraphIndex, Transaction
from core.risk.false_positive_filter import MerchantFilter
from utils.time_utils import hours_to_ms

logger = logging.getLogger(__name__)


def densest_window(incoming: List[Transaction], window_ms: int) -> List[Transaction]:
    """
    Densest run of time-sorted transactions spanning at most window_ms.

    Each transaction is tried as the right edge of the window
    [time(right) - window_ms, time(right)]; the window holding the most
    transactions wins, the earliest one on ties.
    """
    if not incoming:
        return []
    times = np.fromiter((t.time_ms for t in incoming), dtype=np.int64, count=len(incoming))
    lefts = np.searchsorted(times, times - window_ms, side="left")
    sizes = np.arange(len(times)) - lefts + 1
    right = int(np.argmax(sizes))
    return incoming[int(lefts[right]) : right + 1]


def smurfing_risk(unique_senders: int, unique_receivers: int, has_fan_out: bool) -> float:
    sender_score = min(unique_senders / SMURFING_SENDER_SATURATION, 1.0)
    if has_fan_out:
        hub_factor = min((unique_senders + unique_receivers) / SMURFING_HUB_SATURATION, 1.0)
        return 0.5 * sender_score + 0.3 * hub_factor + 0.2
    return 0.5 * sender_score + 0.15


def detect_smurfing(index: GraphIndex, merchant_filter: MerchantFilter | None = None) -> List[Dict[str, Any]]:
    """
    Detect fan-in / fan-out aggregation rings.

    Returns:
        ring candidates: {"members", "pattern_type", "risk"}
    """
    merchant_filter = merchant_filter or MerchantFilter(index)
    window_ms = hours_to_ms(SMURFING_WINDOW_HOURS)
    rings: List[Dict[str, Any]] = []

    for account in index.accounts:
        if merchant_filter.is_excluded(account):
            continue

        incoming = sorted(index.incoming(account), key=lambda t: t.time_ms)
        if len(incoming) < SMURFING_MIN_COUNTERPARTIES:
            continue

        burst = densest_window(incoming, window_ms)
        if len(burst) < SMURFING_MIN_COUNTERPARTIES:
            continue

        senders = list(dict.fromkeys(t.sender_id for t in burst))
        if len(senders) < SMURFING_MIN_COUNTERPARTIES:
            continue

        avg_amount = sum(t.amount for t in burst) / len(burst)
        if merchant_filter.is_excluded_burst(account, len(senders), avg_amount):
            continue

        # Fan-out is measured from the burst start, not its last transaction
        window_start = burst[0].time_ms
        window_end = window_start + window_ms
        receivers = list(
            dict.fromkeys(
                t.receiver_id
                for t in index.outgoing(account)
                if window_start <= t.time_ms <= window_end
            )
        )
        has_fan_out = len(receivers) >= SMURFING_MIN_COUNTERPARTIES

        risk = smurfing_risk(len(senders), len(receivers), has_fan_out)
        if risk < SMURFING_RISK_THRESHOLD:
            continue

        members = [account] + senders + (receivers if has_fan_out else [])
        rings.append(
            {
                "members": list(dict.fromkeys(members)),
                "pattern_type": "smurfing",
                "risk": risk,
            }
        )

    logger.debug("Smurfing detection emitted %d rings", len(rings))
    return rings
