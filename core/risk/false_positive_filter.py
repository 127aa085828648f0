"""
False Positive Control Module.

Recognises legitimate high-volume accounts so they are never reported:

Merchant:
  - fan-in > MERCHANT_MIN_FAN_IN
  - no outgoing transactions
  - average incoming amount > MERCHANT_MIN_AVG_AMOUNT

Payroll:
  - unique outgoing receivers > PAYROLL_MIN_RECEIVERS
  - incoming transactions ≤ PAYROLL_MAX_INCOMING

Fan-in and average amount default to full-history statistics; the
smurfing detector re-checks with burst-local values.

Time Complexity: O(k) per account, k = transactions touching it
Memory: O(V) for the per-account cache
"""

from typing import Dict, Set, Tuple

from app.config import (
    MERCHANT_MIN_AVG_AMOUNT,
    MERCHANT_MIN_FAN_IN,
    PAYROLL_MAX_INCOMING,
    PAYROLL_MIN_RECEIVERS,
)
from core.graph.graph_builder import GraphIndex


def _is_merchant(
    index: GraphIndex,
    account: str,
    fan_in: int | None = None,
    avg_amount: float | None = None,
) -> bool:
    incoming = index.incoming(account)
    if index.outgoing(account):
        return False

    effective_fan_in = fan_in if fan_in is not None else len(incoming)
    if avg_amount is not None:
        effective_avg = avg_amount
    elif incoming:
        effective_avg = sum(t.amount for t in incoming) / len(incoming)
    else:
        effective_avg = 0.0

    return effective_fan_in > MERCHANT_MIN_FAN_IN and effective_avg > MERCHANT_MIN_AVG_AMOUNT


def _is_payroll(index: GraphIndex, account: str) -> bool:
    receivers = {t.receiver_id for t in index.outgoing(account)}
    return (
        len(receivers) > PAYROLL_MIN_RECEIVERS
        and len(index.incoming(account)) <= PAYROLL_MAX_INCOMING
    )


def is_merchant_or_payroll(
    index: GraphIndex,
    account: str,
    fan_in: int | None = None,
    avg_amount: float | None = None,
) -> bool:
    """True if the account looks like a merchant or payroll disburser."""
    return _is_merchant(index, account, fan_in, avg_amount) or _is_payroll(index, account)


class MerchantFilter:
    """Caches the full-history verdict per account for one analysis."""

    def __init__(self, index: GraphIndex, excluded: Set[str] | None = None):
        self._index = index
        self._cache: Dict[str, bool] = {}
        if excluded is not None:
            self._cache = {account: account in excluded for account in index.accounts}

    def is_excluded(self, account: str) -> bool:
        verdict = self._cache.get(account)
        if verdict is None:
            verdict = is_merchant_or_payroll(self._index, account)
            self._cache[account] = verdict
        return verdict

    def is_excluded_burst(self, account: str, fan_in: int, avg_amount: float) -> bool:
        """Re-evaluate with statistics taken from a single burst window."""
        return is_merchant_or_payroll(self._index, account, fan_in, avg_amount)


def detect_false_positives(index: GraphIndex) -> Tuple[Set[str], Set[str]]:
    """
    Run all false-positive checks over every account.

    Returns:
        (merchant_accounts, payroll_accounts)
    """
    merchants: Set[str] = set()
    payroll: Set[str] = set()
    for account in index.accounts:
        if _is_merchant(index, account):
            merchants.add(account)
        if _is_payroll(index, account):
            payroll.add(account)
    return merchants, payroll
