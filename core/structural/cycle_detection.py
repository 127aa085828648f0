"""
Cycle Detection Module — Circular Fund Routing.

Enumerates every simple directed cycle with CYCLE_MIN_LENGTH to
CYCLE_MAX_LENGTH nodes exactly once:
  - depth-first search from every sending account, using an explicit stack
    of successor iterators and an on-path set toggled on push/pop
  - a closing edge back to the start node with ≥ min nodes on the path
    is a candidate
  - candidates are reduced to a canonical key (smallest of all rotations
    of the cycle and of its reversal); a global key set suppresses the
    same cycle found from another start node or in the other direction

Every emitted cycle carries the fixed risk CYCLE_RISK.

Time Complexity: O(V × d^L), d = out-degree, L = CYCLE_MAX_LENGTH
Memory: O(L) for the search stack + O(C × L) for emitted cycles
"""

import logging
from typing import Any, Callable, Dict, List, Sequence, Set, Tuple

from app.config import CYCLE_MAX_LENGTH, CYCLE_MIN_LENGTH, CYCLE_RISK
from core.graph.graph_builder import GraphIndex

logger = logging.getLogger(__name__)

_EXHAUSTED = object()


def canonical_cycle_key(cycle: Sequence[str]) -> str:
    """
    Stable key for a cycle regardless of start node or direction.

    The smallest "|"-joined string over all rotations of the cycle and of
    its reversal. A→B→C, B→C→A and C→B→A all map to the same key.
    """
    nodes = list(cycle)
    reversed_nodes = nodes[::-1]
    candidates: List[str] = []
    for seq in (nodes, reversed_nodes):
        for i in range(len(seq)):
            candidates.append("|".join(seq[i:] + seq[:i]))
    return min(candidates)


def find_cycles(
    index: GraphIndex,
    min_length: int = CYCLE_MIN_LENGTH,
    max_length: int = CYCLE_MAX_LENGTH,
    skip_root: Callable[[str], bool] | None = None,
) -> List[List[str]]:
    """
    Return the first-found node sequence of every distinct simple cycle.

    Args:
        index: graph to search
        min_length / max_length: inclusive bounds on cycle node count
        skip_root: predicate for accounts never used as a search root
    """
    emitted: Set[str] = set()
    cycles: List[List[str]] = []

    for start in index.senders:
        if skip_root is not None and skip_root(start):
            continue

        path = [start]
        on_path = {start}
        stack = [iter(index.successors(start))]

        while stack:
            nxt = next(stack[-1], _EXHAUSTED)
            if nxt is _EXHAUSTED:
                stack.pop()
                on_path.discard(path.pop())
                continue

            if nxt == start and len(path) >= min_length:
                key = canonical_cycle_key(path)
                if key not in emitted:
                    emitted.add(key)
                    cycles.append(list(path))

            if nxt not in on_path and len(path) < max_length:
                path.append(nxt)
                on_path.add(nxt)
                stack.append(iter(index.successors(nxt)))

    return cycles


def detect_cycles(
    index: GraphIndex,
    skip_root: Callable[[str], bool] | None = None,
) -> Tuple[List[Dict[str, Any]], Set[str]]:
    """
    Detect circular fund routing.

    Returns:
        (ring_candidates, cycle_member_accounts)
    """
    rings: List[Dict[str, Any]] = []
    members: Set[str] = set()
    for cycle in find_cycles(index, skip_root=skip_root):
        rings.append({"members": cycle, "pattern_type": "cycle", "risk": CYCLE_RISK})
        members.update(cycle)

    logger.debug("Cycle detection emitted %d rings", len(rings))
    return rings, members
