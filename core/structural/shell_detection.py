"""
Shell Chain Detection Module — Layered Pass-Through Accounts.

Finds 4-node chains A → B → C → D where B and C are shell intermediaries.

Shell Intermediary Criteria:
  - SHELL_MIN_TRANSACTIONS ≤ total transactions ≤ SHELL_MAX_TRANSACTIONS
  - received a non-zero total amount
  - pass-through ratio min(out/in, in/out) ≥ SHELL_PASSTHROUGH_RATIO_MIN

Chain Criteria:
  - no member of a confirmed cycle among A, B, C; A is not a merchant
  - D ∉ {A, B, C} and no edge D → A (closed loops belong to cycle detection)
  - strictly increasing hop times: t(A→B) < t(B→C) < t(C→D)

Risk is 0.8 when the whole chain moves within SHELL_FAST_SPREAD_HOURS,
0.625 otherwise. Chains are deduplicated by their exact ordered 4-tuple.

Time Complexity: O(V × D³), pruned by the shell intermediary prefilter
Memory: O(V) for the intermediary cache + O(chains)
"""

import logging
from typing import Any, Callable, Dict, List, Set, Tuple

from app.config import (
    SHELL_FAST_SPREAD_HOURS,
    SHELL_MAX_TRANSACTIONS,
    SHELL_MIN_TRANSACTIONS,
    SHELL_PASSTHROUGH_RATIO_MIN,
    SHELL_RISK_FLOOR,
)
from core.graph.graph_builder import GraphIndex
from utils.time_utils import hours_to_ms

logger = logging.getLogger(__name__)


def is_shell_intermediate(index: GraphIndex, account: str) -> bool:
    """True for a low-activity account that forwards what it receives."""
    txs = index.transactions_of(account)
    if len(txs) < SHELL_MIN_TRANSACTIONS or len(txs) > SHELL_MAX_TRANSACTIONS:
        return False

    total_in = sum(t.amount for t in txs if t.receiver_id == account)
    total_out = sum(t.amount for t in txs if t.sender_id == account)
    if total_in == 0 or total_out == 0:
        return False

    ratio = min(total_out / total_in, total_in / total_out)
    return ratio >= SHELL_PASSTHROUGH_RATIO_MIN


def is_temporal_chain(index: GraphIndex, a: str, b: str, c: str, d: str) -> bool:
    """Strict ordering t(A→B) < t(B→C) < t(C→D)."""
    ab = index.transfer_time(a, b)
    bc = index.transfer_time(b, c)
    cd = index.transfer_time(c, d)
    if ab is None or bc is None or cd is None:
        return False
    return ab < bc < cd


def shell_risk(index: GraphIndex, a: str, b: str, c: str, d: str) -> float:
    """Faster flow through the chain means higher laundering suspicion."""
    spread = index.transfer_time(c, d) - index.transfer_time(a, b)
    speed_score = 1.0 if spread < hours_to_ms(SHELL_FAST_SPREAD_HOURS) else 0.75
    return 0.7 * speed_score + 0.1


def detect_shell_chains(
    index: GraphIndex,
    cycle_accounts: Set[str] | None = None,
    skip_root: Callable[[str], bool] | None = None,
) -> List[Dict[str, Any]]:
    """
    Detect layered shell chains.

    Args:
        index: graph to search
        cycle_accounts: members of detected cycles, never part of a chain
        skip_root: predicate for accounts never used as chain origin

    Returns:
        ring candidates: {"members", "pattern_type", "risk"}
    """
    cycle_accounts = cycle_accounts or set()
    shell_cache: Dict[str, bool] = {}

    def is_shell(account: str) -> bool:
        if account not in shell_cache:
            shell_cache[account] = is_shell_intermediate(index, account)
        return shell_cache[account]

    rings: List[Dict[str, Any]] = []
    seen: Set[Tuple[str, str, str, str]] = set()

    for a in index.senders:
        if skip_root is not None and skip_root(a):
            continue
        if a in cycle_accounts:
            continue

        for b in index.successors(a):
            if b in cycle_accounts or not is_shell(b):
                continue

            for c in index.successors(b):
                if c in cycle_accounts or not is_shell(c) or c == a:
                    continue

                for d in index.successors(c):
                    if d in (a, b, c):
                        continue
                    if index.has_edge(d, a):
                        continue
                    if not is_temporal_chain(index, a, b, c, d):
                        continue

                    risk = shell_risk(index, a, b, c, d)
                    if risk < SHELL_RISK_FLOOR:
                        continue

                    chain = (a, b, c, d)
                    if chain not in seen:
                        seen.add(chain)
                        rings.append({"members": list(chain), "pattern_type": "shell", "risk": risk})

    logger.debug("Shell detection emitted %d rings", len(rings))
    return rings
