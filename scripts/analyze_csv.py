"""Run the detection pipeline over a CSV file and print a score distribution."""

import argparse
import json
import os
import sys
import time
from collections import Counter

import numpy as np
import pandas as pd

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.processing_pipeline import ProcessingService
from utils.validators import validate_csv


def main():
    parser = argparse.ArgumentParser(description="Analyse a transaction CSV for fraud rings")
    parser.add_argument("csv", help="Path to a CSV with transaction_id, sender_id, receiver_id, amount, timestamp")
    parser.add_argument("--output", help="Optional path to write the JSON result")
    parser.add_argument("--sequential", action="store_true", help="Run detectors one after another")
    args = parser.parse_args()

    if not os.path.exists(args.csv):
        print(f"Error: {args.csv} not found")
        sys.exit(1)

    df = pd.read_csv(args.csv)
    error = validate_csv(df)
    if error:
        print(f"Error: {error}")
        sys.exit(1)

    start_time = time.time()
    results = ProcessingService(parallel=not args.sequential).process(df)
    proc_time = time.time() - start_time
    print(f"Processing Time: {proc_time:.2f} seconds")

    rings = results["fraud_rings"]
    by_pattern = Counter(r["pattern_type"] for r in rings)
    print(f"Fraud Rings: {len(rings)}")
    for pattern in ("cycle", "smurfing", "shell"):
        print(f"  {pattern}: {by_pattern.get(pattern, 0)}")

    scores = np.array([a["suspicion_score"] for a in results["suspicious_accounts"]])
    if scores.size == 0:
        print("No suspicious accounts found.")
    else:
        print(f"\nTotal Suspicious Accounts: {scores.size}")
        print(f"Max Score: {scores.max()}")
        print(f"Min Score: {scores.min()}")
        print(f"Avg Score: {scores.mean():.2f}")

        high_risk = int((scores >= 80).sum())
        med_risk = int(((scores >= 65) & (scores < 80)).sum())
        low_risk = int((scores < 65).sum())
        print("\nScore Distribution:")
        print(f"  High Risk (>=80):  {high_risk} ({high_risk / scores.size * 100:.1f}%)")
        print(f"  Med Risk (65-79):  {med_risk} ({med_risk / scores.size * 100:.1f}%)")
        print(f"  Low Risk (<65):    {low_risk} ({low_risk / scores.size * 100:.1f}%)")

    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            json.dump(results, fh, indent=2)
        print(f"\nResult written to {os.path.abspath(args.output)}")


if __name__ == "__main__":
    main()
