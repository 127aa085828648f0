"""
Graph Builder — structural graph and per-account transaction index.

Builds, in a single pass over the batch:
  - a NetworkX DiGraph (multi-edges between the same ordered pair collapse
    into one structural edge, successor order follows first appearance)
  - account_id → every transaction touching the account, in batch order
  - the first transfer time seen for every ordered (sender, receiver) pair

Timestamps are parsed exactly once per transaction into epoch milliseconds
and stored on an immutable Transaction wrapper; caller records are never
modified.

Time Complexity: O(T) where T = number of transactions
Memory: O(V + T)
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Tuple

import networkx as nx

from utils.time_utils import MalformedTimestampError, parse_timestamp_ms


@dataclass(frozen=True)
class Transaction:
    """A transaction record paired with its parsed epoch-millisecond time."""

    transaction_id: str
    sender_id: str
    receiver_id: str
    amount: float
    timestamp: Any
    time_ms: int

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Transaction":
        tx_id = str(record["transaction_id"])
        try:
            time_ms = parse_timestamp_ms(record["timestamp"])
        except MalformedTimestampError as exc:
            raise MalformedTimestampError(exc.value, tx_id) from exc
        return cls(
            transaction_id=tx_id,
            sender_id=str(record["sender_id"]),
            receiver_id=str(record["receiver_id"]),
            amount=float(record["amount"]),
            timestamp=record["timestamp"],
            time_ms=time_ms,
        )


class GraphIndex:
    """Read-only adjacency and transaction index shared by all detectors."""

    def __init__(self, transactions: List[Transaction]):
        self.transactions = transactions
        self.graph = nx.DiGraph()
        # Ordered set of accounts that send at least once
        self._senders: Dict[str, None] = {}
        self._tx_index: Dict[str, List[Transaction]] = {}
        self._first_transfer: Dict[Tuple[str, str], int] = {}

        for tx in transactions:
            sender, receiver = tx.sender_id, tx.receiver_id
            self._senders.setdefault(sender, None)
            self.graph.add_edge(sender, receiver)

            self._tx_index.setdefault(sender, [])
            self._tx_index.setdefault(receiver, [])
            self._tx_index[sender].append(tx)
            self._tx_index[receiver].append(tx)

            self._first_transfer.setdefault((sender, receiver), tx.time_ms)

    @property
    def senders(self) -> List[str]:
        """Accounts with outgoing edges, in order of their first transfer."""
        return list(self._senders)

    @property
    def accounts(self) -> List[str]:
        """Every account in order of first appearance as sender or receiver."""
        return list(self._tx_index)

    @property
    def total_accounts(self) -> int:
        return self.graph.number_of_nodes()

    def successors(self, account: str) -> Iterable[str]:
        if account not in self.graph:
            return iter(())
        return self.graph.successors(account)

    def has_edge(self, sender: str, receiver: str) -> bool:
        return self.graph.has_edge(sender, receiver)

    def transactions_of(self, account: str) -> List[Transaction]:
        """All transactions touching the account, one entry per role played."""
        return self._tx_index.get(account, [])

    def incoming(self, account: str) -> List[Transaction]:
        return [t for t in self.transactions_of(account) if t.receiver_id == account]

    def outgoing(self, account: str) -> List[Transaction]:
        return [t for t in self.transactions_of(account) if t.sender_id == account]

    def transfer_time(self, sender: str, receiver: str) -> int | None:
        """
        Time of the first transaction found for the ordered pair.

        Repeated transfers between the same pair are not aggregated; the
        first one in batch order represents the pair.
        """
        return self._first_transfer.get((sender, receiver))


def build_graph(records: Iterable[Mapping[str, Any]]) -> GraphIndex:
    """
    Parse a transaction batch and build its GraphIndex.

    Raises:
        MalformedTimestampError: any record has an unparseable timestamp.
    """
    transactions = [
        r if isinstance(r, Transaction) else Transaction.from_record(r)
        for r in records
    ]
    return GraphIndex(transactions)
