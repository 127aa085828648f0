"""
Ring Registry — ring numbering and per-account suspicion merging.

One registry lives for exactly one analysis: ring ids are numbered from
RING_001 in registration order and never shared between analyses.

For every registered ring, each member that is not a merchant/payroll
account is merged into the suspicious-account map:
  - unseen account → score, [pattern], ring_id of this ring
  - seen account   → score and ring_id move to this ring only when its
                     score is strictly higher; the pattern is appended if
                     not already listed
Merchant/payroll accounts stay in the ring's member list but are never
reported as suspicious.

Time Complexity: O(M) per ring, M = members
Memory: O(V + R)
"""

from typing import Any, Callable, Dict, List

from core.risk.normalization import normalize_risk


class RingRegistry:
    """Collects fraud rings and suspicious accounts for one analysis."""

    def __init__(self, is_excluded: Callable[[str], bool] | None = None):
        self._is_excluded = is_excluded or (lambda account: False)
        self._counter = 0
        self.fraud_rings: List[Dict[str, Any]] = []
        self._suspicious: Dict[str, Dict[str, Any]] = {}

    def _next_ring_id(self) -> str:
        self._counter += 1
        return f"RING_{self._counter:03d}"

    def add_ring(self, members: List[str], pattern_type: str, risk: float) -> Dict[str, Any]:
        """Register a ring and merge its members into the suspicious map."""
        ring = {
            "ring_id": self._next_ring_id(),
            "member_accounts": list(members),
            "pattern_type": pattern_type,
            "risk_score": normalize_risk(risk),
        }
        self.fraud_rings.append(ring)

        score = ring["risk_score"]
        for account in ring["member_accounts"]:
            if self._is_excluded(account):
                continue

            existing = self._suspicious.get(account)
            if existing is None:
                self._suspicious[account] = {
                    "account_id": account,
                    "suspicion_score": score,
                    "detected_patterns": [pattern_type],
                    "ring_id": ring["ring_id"],
                }
                continue

            if score > existing["suspicion_score"]:
                existing["suspicion_score"] = score
                existing["ring_id"] = ring["ring_id"]
            if pattern_type not in existing["detected_patterns"]:
                existing["detected_patterns"].append(pattern_type)

        return ring

    def add_candidates(self, candidates: List[Dict[str, Any]]) -> None:
        for candidate in candidates:
            self.add_ring(candidate["members"], candidate["pattern_type"], candidate["risk"])

    def suspicious_accounts(self) -> List[Dict[str, Any]]:
        """Suspicious accounts by descending score; ties keep discovery order."""
        return sorted(
            self._suspicious.values(),
            key=lambda acct: acct["suspicion_score"],
            reverse=True,
        )
