"""
Processing Pipeline — Detection Orchestrator.

Coordinates one analysis of a transaction batch:
   1. Validate records, parse timestamps & build the graph index;
      flag merchant / payroll accounts
   2. Cycle detection            ┐ run concurrently when
   3. Smurfing detection         ┘ DETECTOR_PARALLELISM is on
   4. Shell chain detection (after cycles; cycle members are excluded)
   5. Register rings (cycles → smurfing → shell) and merge account scores
   6. Format JSON output

Every call builds its own graph index, merchant filter and ring registry,
so concurrent analyses never share state or ring numbering.

Performance: dominated by cycle enumeration on dense graphs.
Memory: O(V + T) for the index + O(R) for rings.
"""

import concurrent.futures
import contextlib
import logging
import time
from typing import Any, Dict, List, Mapping

import pandas as pd

from app.config import DETECTOR_PARALLELISM
from core.graph.graph_builder import build_graph
from core.output.json_formatter import format_output
from core.ring_detection.smurfing import detect_smurfing
from core.risk.false_positive_filter import MerchantFilter, detect_false_positives
from core.risk.ring_registry import RingRegistry
from core.structural.cycle_detection import detect_cycles
from core.structural.shell_detection import detect_shell_chains
from utils.validators import ensure_valid_records, records_from_frame

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def log_timer(label: str):
    start = time.perf_counter()
    yield
    elapsed = time.perf_counter() - start
    logger.info("Module [%s] took %.4f seconds", label, elapsed)


def _timed(label: str, func, *args):
    with log_timer(label):
        return func(*args)


class ProcessingService:
    """Orchestrates the fraud ring detection pipeline."""

    def __init__(self, parallel: bool = DETECTOR_PARALLELISM):
        self.parallel = parallel

    def process(self, df: pd.DataFrame) -> Dict[str, Any]:
        """Run the pipeline on a validated transaction DataFrame."""
        return self.analyze(records_from_frame(df))

    def analyze(self, records: List[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Run the full pipeline on a batch of transaction records.

        Returns:
            JSON-compatible dict with suspicious_accounts, fraud_rings, summary

        Raises:
            InvalidTransactionError: the batch or a record is malformed
            MalformedTimestampError: a timestamp cannot be parsed
        """
        t_start = time.perf_counter()
        ensure_valid_records(records)

        with log_timer("graph_build"):
            index = build_graph(records)
        with log_timer("false_positive_filter"):
            merchants, payroll = detect_false_positives(index)
        logger.info(
            "Excluding %d merchant and %d payroll accounts from suspicion",
            len(merchants),
            len(payroll),
        )
        merchant_filter = MerchantFilter(index, excluded=merchants | payroll)
        skip_root = merchant_filter.is_excluded

        if self.parallel:
            with concurrent.futures.ThreadPoolExecutor(max_workers=2) as pool:
                f_cycles = pool.submit(_timed, "cycle_detection", detect_cycles, index, skip_root)
                f_smurf = pool.submit(_timed, "smurfing_detection", detect_smurfing, index, merchant_filter)
                cycle_rings, cycle_accounts = f_cycles.result()
                shell_rings = _timed(
                    "shell_detection", detect_shell_chains, index, cycle_accounts, skip_root
                )
                smurf_rings = f_smurf.result()
        else:
            cycle_rings, cycle_accounts = _timed("cycle_detection", detect_cycles, index, skip_root)
            smurf_rings = _timed("smurfing_detection", detect_smurfing, index, merchant_filter)
            shell_rings = _timed(
                "shell_detection", detect_shell_chains, index, cycle_accounts, skip_root
            )

        registry = RingRegistry(is_excluded=skip_root)
        registry.add_candidates(cycle_rings)
        registry.add_candidates(smurf_rings)
        registry.add_candidates(shell_rings)

        result = format_output(
            registry,
            total_accounts=index.total_accounts,
            processing_time=time.perf_counter() - t_start,
        )
        logger.info(
            "Analysed %d transactions: %d rings (%d cycle, %d smurfing, %d shell), %d suspicious accounts",
            len(index.transactions),
            len(registry.fraud_rings),
            len(cycle_rings),
            len(smurf_rings),
            len(shell_rings),
            result["summary"]["suspicious_accounts_flagged"],
        )
        return result


def analyze_transactions(
    records: List[Mapping[str, Any]],
    parallel: bool = DETECTOR_PARALLELISM,
) -> Dict[str, Any]:
    """Analyse one batch with a fresh service instance."""
    return ProcessingService(parallel=parallel).analyze(records)
