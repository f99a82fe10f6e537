"""
main.py
--------
Entry point for the Recurring Calendar Engine.

Reads a normalized transactions CSV, runs recurring series detection and
writes the series table plus the annotated transactions to outputs/.

Usage (from the project root):
    python main.py --input path/to/transactions.csv

    # With optional arguments:
    python main.py --input txns.csv --month 2024-03
    python main.py --input txns.csv --min-occurrences 4 --grouping-substring amzn
"""

import sys
import os
import argparse
import logging
from datetime import datetime

# Ensure project root is on path (for runs from any working directory)
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

import pandas as pd

from ingestion.transaction_loader import load_transactions
from pipeline import RecurringCalendarPipeline, serialize_transactions


# =============================================================================
# LOGGING SETUP
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("main")


# =============================================================================
# ARGUMENT PARSING
# =============================================================================

def _month(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m")
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM, got '{value}'")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Recurring Calendar Engine: detect monthly recurring transactions."
    )
    parser.add_argument(
        "--input", type=str, required=True,
        help="Path to a normalized transactions CSV (id, date, description, amount, ...)."
    )
    parser.add_argument(
        "--month", type=_month, default=None,
        help="Also write the series active in this month (YYYY-MM)."
    )
    parser.add_argument(
        "--output-dir", type=str, default=None,
        help="Output directory. Defaults to outputs/ in project root."
    )
    parser.add_argument(
        "--min-occurrences", type=int, default=None,
        help="Minimum monthly occurrences per series. Defaults to config value (3)."
    )
    parser.add_argument(
        "--min-span-days", type=int, default=None,
        help="Minimum days between first and last occurrence. Defaults to config value (90)."
    )
    parser.add_argument(
        "--max-span-days", type=int, default=None,
        help="Maximum days between first and last occurrence. Defaults to config value (370)."
    )
    parser.add_argument(
        "--grouping-substring", action="append", default=None, dest="grouping_substrings",
        help="Merchant alias that forces matching labels into one group. Repeatable."
    )
    return parser.parse_args(argv)


def _options_from_args(args: argparse.Namespace) -> dict:
    options = {
        "min_occurrences": args.min_occurrences,
        "min_span_days": args.min_span_days,
        "max_span_days": args.max_span_days,
        "grouping_substrings": args.grouping_substrings,
    }
    return {k: v for k, v in options.items() if v is not None}


# =============================================================================
# MAIN
# =============================================================================

def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # --- Resolve paths ---
    output_dir = args.output_dir or os.path.join(PROJECT_ROOT, "outputs")
    os.makedirs(output_dir, exist_ok=True)

    # --- Load transactions ---
    logger.info(f"Loading transactions from: {args.input}")
    if not os.path.exists(args.input):
        logger.error(f"Input file not found: {args.input}")
        return 1

    transactions = load_transactions(args.input)
    logger.info(f"Loaded {len(transactions):,} transactions.")

    # --- Run pipeline ---
    pipeline = RecurringCalendarPipeline(_options_from_args(args))
    output = pipeline.run(transactions)

    # --- Output ---
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    series_path = os.path.join(output_dir, f"recurring_series_{timestamp}.csv")
    output.series_df.to_csv(series_path, index=False)
    logger.info(f"Series saved to: {series_path}")

    annotated_path = os.path.join(output_dir, f"annotated_transactions_{timestamp}.csv")
    serialize_transactions(output.annotated).to_csv(annotated_path, index=False)
    logger.info(f"Annotated transactions saved to: {annotated_path}")

    if args.month is not None:
        month_df = pipeline.run_for_month(transactions, args.month.date())
        month_path = os.path.join(output_dir, f"recurring_series_{args.month:%Y_%m}_{timestamp}.csv")
        month_df.to_csv(month_path, index=False)
        logger.info(f"Series for {args.month:%Y-%m} saved to: {month_path}")

    _print_summary(output.series_df, len(output.detection.orphan_ids))
    return 0


def _print_summary(df: pd.DataFrame, orphan_count: int):
    """Prints a clean summary table to the console."""
    if df.empty:
        print("\n  No recurring series detected.\n")
        return

    print("\n" + "=" * 80)
    print("  RECURRING SERIES SUMMARY")
    print("=" * 80)

    for direction, title in (("out", "Outgoing"), ("in", "Incoming")):
        subset = df[df["direction"] == direction]
        if subset.empty:
            continue
        print(f"\n  {title}:")
        print("  " + "-" * 60)
        for _, row in subset.iterrows():
            amount = f"{row['currency_symbol']}{row['median_amount']:,.2f}"
            print(
                f"    {row['label'][:30]:30s}  {amount:>12s}  "
                f"{row['occurrence_count']:>3} months  (last {row['last_occurrence']})"
            )

    print(f"\n  Transactions not part of any series: {orphan_count:,}")
    print("=" * 80 + "\n")


if __name__ == "__main__":
    sys.exit(main())
