"""
Transaction Pattern Tagging — edge labels for graph rendering.

Tags a transaction with the pattern of the first fraud ring (in ring
order) that contains both its sender and its receiver. Derived from the
detection result only; transactions outside every ring are left untagged.

Time Complexity: O(T × R) worst case
Memory: O(T)
"""

from typing import Any, Dict, Iterable, List, Mapping


def tag_transaction_patterns(
    transactions: Iterable[Mapping[str, Any]],
    fraud_rings: List[Dict[str, Any]],
) -> Dict[str, str]:
    """Map transaction_id → pattern_type for ring-internal transfers."""
    ring_sets = [(set(r["member_accounts"]), r["pattern_type"]) for r in fraud_rings]
    tags: Dict[str, str] = {}
    for tx in transactions:
        sender, receiver = str(tx["sender_id"]), str(tx["receiver_id"])
        for members, pattern in ring_sets:
            if sender in members and receiver in members:
                tags[str(tx["transaction_id"])] = pattern
                break
    return tags
